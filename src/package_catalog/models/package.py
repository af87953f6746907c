"""
Package Model — Catalog records for packages and package groups.

Mirrors the records produced by the upstream catalog compiler. Every record
round-trips through plain dictionaries so the dataset can be stored as JSON.
"""

from dataclasses import asdict, dataclass, field


MAX_POPULARITY = 255


@dataclass
class Dependency:
    """A reference to another package plus why it is needed."""

    package: str
    reason: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "Dependency":
        return cls(package=data["package"], reason=data.get("reason", ""))


@dataclass
class Dependencies:
    required: list[Dependency] = field(default_factory=list)
    optional: list[Dependency] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict | None) -> "Dependencies":
        data = data or {}
        return cls(
            required=[Dependency.from_dict(d) for d in data.get("required", [])],
            optional=[Dependency.from_dict(d) for d in data.get("optional", [])],
        )


@dataclass(frozen=True)
class Package:
    """
    A known software package.

    `platforms` maps a platform name ("apt", "brew", "dnf", "pacman", "mas")
    to the identifier its installer uses. Platforms without an identifier
    are left out of the mapping.

    Packages are frozen and keep their name lists as tuples, since a
    Dataset indexes them by name, category and tag.
    """

    name: str
    description: str = ""
    category: str = ""
    popularity: int = 0
    platforms: dict[str, str] = field(default_factory=dict)
    dependencies: Dependencies = field(default_factory=Dependencies)
    alternatives: tuple[str, ...] = ()
    related: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()
    website: str | None = None
    license: str | None = None
    source: str | None = None

    def __post_init__(self):
        for name in ("alternatives", "related", "tags"):
            object.__setattr__(self, name, tuple(getattr(self, name)))
        if not 0 <= self.popularity <= MAX_POPULARITY:
            raise ValueError(
                f"Package {self.name!r}: popularity {self.popularity} outside 0-{MAX_POPULARITY}"
            )

    def installer_for(self, platform: str) -> str | None:
        """Return the installer identifier for a platform, if the package has one."""
        return self.platforms.get(platform)

    def to_dict(self) -> dict:
        """Serialize to JSON-compatible dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "Package":
        """Deserialize from dictionary."""
        platforms = {
            platform: str(identifier)
            for platform, identifier in (data.get("platforms") or {}).items()
            if identifier is not None
        }
        return cls(
            name=data["name"],
            description=data.get("description", ""),
            category=data.get("category", ""),
            popularity=int(data.get("popularity", 0)),
            platforms=platforms,
            dependencies=Dependencies.from_dict(data.get("dependencies")),
            alternatives=tuple(data.get("alternatives", [])),
            related=tuple(data.get("related", [])),
            tags=tuple(data.get("tags", [])),
            website=data.get("website"),
            license=data.get("license"),
            source=data.get("source"),
        )


@dataclass
class GroupPackages:
    required: list[str] = field(default_factory=list)
    optional: list[str] = field(default_factory=list)


@dataclass
class PlatformOverride:
    """Extra packages and casks a group pulls in on one platform."""

    packages: list[str] = field(default_factory=list)
    casks: list[str] = field(default_factory=list)


@dataclass
class PackageGroup:
    """A curated bundle of packages, e.g. "web-dev" or "python-data"."""

    id: str
    name: str
    description: str = ""
    category: str = ""
    packages: GroupPackages = field(default_factory=GroupPackages)
    platform_overrides: dict[str, PlatformOverride] = field(default_factory=dict)

    def packages_for(self, platform: str, include_optional: bool = False) -> list[str]:
        """
        Resolve the package names this group installs on a platform.

        Required packages come first, then optional ones when requested,
        then the platform override's packages and casks. Duplicates are
        dropped, keeping the first occurrence.
        """
        names = list(self.packages.required)
        if include_optional:
            names.extend(self.packages.optional)

        override = self.platform_overrides.get(platform)
        if override:
            names.extend(override.packages)
            names.extend(override.casks)

        return list(dict.fromkeys(names))

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "PackageGroup":
        packages = data.get("packages") or {}
        return cls(
            id=data["id"],
            name=data["name"],
            description=data.get("description", ""),
            category=data.get("category", ""),
            packages=GroupPackages(
                required=list(packages.get("required", [])),
                optional=list(packages.get("optional", [])),
            ),
            platform_overrides={
                platform: PlatformOverride(
                    packages=list(override.get("packages", [])),
                    casks=list(override.get("casks", [])),
                )
                for platform, override in (data.get("platform_overrides") or {}).items()
            },
        )
