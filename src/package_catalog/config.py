"""
Catalog settings.

Defaults point at the upstream GitHub release assets and a per-user cache
directory. Each value can be overridden from the environment, and the CLI
overrides the environment.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

DATABASE_URL = "https://github.com/limistah/heimdal-packages/releases/latest/download/packages.db"
CHECKSUM_URL = "https://github.com/limistah/heimdal-packages/releases/latest/download/packages.db.sha256"
DEFAULT_MAX_AGE_DAYS = 7

ENV_PREFIX = "PACKAGE_CATALOG_"


def default_cache_dir() -> Path:
    """Return the per-user cache directory (~/.package-catalog/cache)."""
    return Path.home() / ".package-catalog" / "cache"


@dataclass
class CatalogSettings:
    cache_dir: Path = field(default_factory=default_cache_dir)
    database_url: str = DATABASE_URL
    checksum_url: str = CHECKSUM_URL
    max_age_days: int = DEFAULT_MAX_AGE_DAYS
    timeout: float | None = None  # None keeps httpx's default

    @classmethod
    def from_env(cls, environ: dict | None = None) -> "CatalogSettings":
        """
        Build settings from PACKAGE_CATALOG_* environment variables.

        Raises:
            ValueError: If a numeric variable does not parse.
        """
        env = os.environ if environ is None else environ
        settings = cls()

        if cache_dir := env.get(f"{ENV_PREFIX}CACHE_DIR"):
            settings.cache_dir = Path(cache_dir).expanduser()
        if database_url := env.get(f"{ENV_PREFIX}DATABASE_URL"):
            settings.database_url = database_url
        if checksum_url := env.get(f"{ENV_PREFIX}CHECKSUM_URL"):
            settings.checksum_url = checksum_url
        if max_age := env.get(f"{ENV_PREFIX}MAX_AGE_DAYS"):
            settings.max_age_days = _parse_int(max_age, "MAX_AGE_DAYS")
        if timeout := env.get(f"{ENV_PREFIX}TIMEOUT"):
            try:
                settings.timeout = float(timeout)
            except ValueError:
                raise ValueError(f"{ENV_PREFIX}TIMEOUT must be a number, got {timeout!r}") from None

        return settings


def _parse_int(value: str, name: str) -> int:
    try:
        parsed = int(value)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}{name} must be an integer, got {value!r}") from None
    if parsed < 0:
        raise ValueError(f"{ENV_PREFIX}{name} must not be negative, got {parsed}")
    return parsed
