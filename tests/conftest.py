"""Shared fixtures for catalog tests."""

import pytest

from package_catalog.models.dataset import Dataset
from package_catalog.models.package import (
    Dependencies,
    Dependency,
    GroupPackages,
    Package,
    PackageGroup,
    PlatformOverride,
)


@pytest.fixture
def sample_dataset():
    return Dataset(
        version=3,
        last_updated="2026-10-01T00:00:00+00:00",
        packages=(
            Package(
                name="git",
                description="Distributed version control system",
                category="essential",
                popularity=100,
                platforms={"apt": "git", "brew": "git", "dnf": "git", "pacman": "git"},
                related=["tig", "lazygit"],
                tags=["vcs", "essential"],
                website="https://git-scm.com",
                license="GPL-2.0",
            ),
            Package(
                name="neovim",
                description="Hyperextensible Vim-based text editor",
                category="editor",
                popularity=90,
                platforms={"apt": "neovim", "brew": "neovim"},
                dependencies=Dependencies(
                    optional=[Dependency(package="ripgrep", reason="Telescope live grep")],
                ),
                alternatives=["vim", "helix"],
                tags=["editor", "vim"],
            ),
            Package(
                name="vim",
                description="Vi IMproved text editor",
                category="editor",
                popularity=80,
                platforms={"apt": "vim", "brew": "vim"},
                alternatives=["neovim"],
                tags=["editor", "vim"],
            ),
            Package(
                name="ripgrep",
                description="Recursively search directories for a regex pattern",
                category="terminal",
                popularity=70,
                platforms={"apt": "ripgrep", "brew": "ripgrep"},
                tags=["search", "cli"],
            ),
        ),
        groups=(
            PackageGroup(
                id="editors",
                name="Editors",
                description="Terminal text editors",
                category="editor",
                packages=GroupPackages(required=["neovim"], optional=["vim"]),
                platform_overrides={"brew": PlatformOverride(packages=["ripgrep"], casks=["neovide"])},
            ),
        ),
    )


@pytest.fixture
def sample_bytes(sample_dataset):
    return sample_dataset.to_bytes()
