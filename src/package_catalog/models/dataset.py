"""
Dataset — the decoded, queryable snapshot of the package catalog.

The lookup indexes are derived from the package list when the dataset is
built and are never read from the serialized form, so they always agree
with the lists they point into.
"""

import difflib
import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import IntEnum
from types import MappingProxyType

from package_catalog.exceptions import CorruptDataError
from package_catalog.models.package import Package, PackageGroup

FUZZY_THRESHOLD = 0.6


class MatchKind(IntEnum):
    """How a search result matched, strongest first."""

    EXACT = 0
    NAME_CONTAINS = 1
    DESCRIPTION_CONTAINS = 2
    TAG_CONTAINS = 3
    FUZZY = 4


@dataclass(frozen=True)
class SearchResult:
    package: Package
    score: int
    match_kind: MatchKind


@dataclass(frozen=True)
class Dataset:
    """
    Immutable catalog snapshot.

    Attributes:
        version: Schema version of the catalog (monotonic).
        last_updated: Timestamp the upstream compiler stamped on the catalog.
        packages: Packages in catalog order.
        groups: Package groups in catalog order.
        index_by_name: Package name -> position in `packages`.
        index_by_category: Category -> positions in `packages`.
        index_by_tag: Tag -> positions in `packages`.
    """

    version: int
    last_updated: str
    packages: tuple[Package, ...] = ()
    groups: tuple[PackageGroup, ...] = ()
    index_by_name: Mapping[str, int] = field(init=False, repr=False, compare=False)
    index_by_category: Mapping[str, tuple[int, ...]] = field(init=False, repr=False, compare=False)
    index_by_tag: Mapping[str, tuple[int, ...]] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "packages", tuple(self.packages))
        object.__setattr__(self, "groups", tuple(self.groups))

        by_name: dict[str, int] = {}
        by_category: dict[str, list[int]] = {}
        by_tag: dict[str, list[int]] = {}
        for position, package in enumerate(self.packages):
            if package.name in by_name:
                raise ValueError(f"Duplicate package name: {package.name!r}")
            by_name[package.name] = position
            by_category.setdefault(package.category, []).append(position)
            for tag in dict.fromkeys(package.tags):
                by_tag.setdefault(tag, []).append(position)

        group_ids = [group.id for group in self.groups]
        if len(set(group_ids)) != len(group_ids):
            raise ValueError("Duplicate package group id")

        object.__setattr__(self, "index_by_name", MappingProxyType(by_name))
        object.__setattr__(
            self, "index_by_category", MappingProxyType({k: tuple(v) for k, v in by_category.items()})
        )
        object.__setattr__(self, "index_by_tag", MappingProxyType({k: tuple(v) for k, v in by_tag.items()}))

    # ──────────────────────────────────────────────
    # Serialization
    # ──────────────────────────────────────────────

    def to_dict(self) -> dict:
        """Serialize to JSON-compatible dictionary, indexes included."""
        return {
            "version": self.version,
            "last_updated": self.last_updated,
            "packages": [p.to_dict() for p in self.packages],
            "groups": [g.to_dict() for g in self.groups],
            "index_by_name": dict(self.index_by_name),
            "index_by_category": {k: list(v) for k, v in self.index_by_category.items()},
            "index_by_tag": {k: list(v) for k, v in self.index_by_tag.items()},
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Dataset":
        """Deserialize from dictionary. Serialized indexes are ignored and rebuilt."""
        return cls(
            version=int(data["version"]),
            last_updated=str(data.get("last_updated", "")),
            packages=tuple(Package.from_dict(p) for p in data.get("packages", [])),
            groups=tuple(PackageGroup.from_dict(g) for g in data.get("groups", [])),
        )

    def to_bytes(self) -> bytes:
        return json.dumps(self.to_dict(), separators=(",", ":")).encode("utf-8")

    @classmethod
    def from_bytes(cls, data: bytes) -> "Dataset":
        """
        Decode a serialized catalog.

        Raises:
            CorruptDataError: If the bytes are not a valid catalog document.
        """
        try:
            document = json.loads(data.decode("utf-8"))
            if not isinstance(document, dict):
                raise TypeError(f"expected a JSON object, got {type(document).__name__}")
            return cls.from_dict(document)
        except (ValueError, KeyError, TypeError, AttributeError, RecursionError) as e:
            raise CorruptDataError(f"Failed to deserialize package database: {e}") from e

    # ──────────────────────────────────────────────
    # Lookups
    # ──────────────────────────────────────────────

    def get(self, name: str) -> Package | None:
        position = self.index_by_name.get(name)
        return None if position is None else self.packages[position]

    def contains(self, name: str) -> bool:
        return name in self.index_by_name

    def by_category(self, category: str) -> list[Package]:
        """Packages in a category (case-insensitive), most popular first."""
        wanted = category.lower()
        positions = [
            position
            for key, members in self.index_by_category.items()
            if key.lower() == wanted
            for position in members
        ]
        return self._by_popularity(positions)

    def by_tag(self, tag: str) -> list[Package]:
        """Packages with a tag containing `tag` (case-insensitive), most popular first."""
        wanted = tag.lower()
        positions = {
            position
            for key, members in self.index_by_tag.items()
            if wanted in key.lower()
            for position in members
        }
        return self._by_popularity(positions)

    def popular(self, limit: int) -> list[Package]:
        return self._by_popularity(range(len(self.packages)))[:limit]

    def alternatives(self, name: str) -> list[Package]:
        package = self.get(name)
        if package is None:
            return []
        return [alt for alt in map(self.get, package.alternatives) if alt is not None]

    def related(self, name: str) -> list[Package]:
        package = self.get(name)
        if package is None:
            return []
        return [rel for rel in map(self.get, package.related) if rel is not None]

    def get_group(self, group_id: str) -> PackageGroup | None:
        for group in self.groups:
            if group.id == group_id:
                return group
        return None

    def groups_by_category(self, category: str) -> list[PackageGroup]:
        wanted = category.lower()
        return [g for g in self.groups if g.category.lower() == wanted]

    def search(self, query: str) -> list[SearchResult]:
        """
        Rank packages against a free-text query.

        Exact name matches rank highest, followed by name, description and
        tag substring matches, then fuzzy name/tag similarity. Popularity
        boosts the score within each tier.
        """
        query = query.strip().lower()
        if not query:
            return []

        results = []
        for package in self.packages:
            result = self._score(package, query)
            if result is not None:
                results.append(result)

        results.sort(key=lambda r: (-r.score, -r.package.popularity, r.package.name))
        return results

    def _score(self, package: Package, query: str) -> SearchResult | None:
        name = package.name.lower()
        tags = [t.lower() for t in package.tags]
        pop = package.popularity

        if name == query:
            return SearchResult(package, 10000 + pop * 10, MatchKind.EXACT)
        if query in name:
            return SearchResult(package, 5000 + pop * 10, MatchKind.NAME_CONTAINS)
        if query in package.description.lower():
            return SearchResult(package, 2500 + pop * 5, MatchKind.DESCRIPTION_CONTAINS)
        if any(query in t for t in tags):
            return SearchResult(package, 1500 + pop * 5, MatchKind.TAG_CONTAINS)

        ratio = max(difflib.SequenceMatcher(None, query, candidate).ratio() for candidate in [name, *tags])
        if ratio >= FUZZY_THRESHOLD:
            return SearchResult(package, int(ratio * 100) + pop, MatchKind.FUZZY)
        return None

    def _by_popularity(self, positions) -> list[Package]:
        packages = [self.packages[i] for i in positions]
        packages.sort(key=lambda p: (-p.popularity, p.name))
        return packages
