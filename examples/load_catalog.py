"""
Example: Load the package catalog and look up a package.

Usage:
    python examples/load_catalog.py git
"""

import logging
import sys

from package_catalog import CatalogLoader


def main(name: str):
    logging.basicConfig(level=logging.INFO)

    # Refresh if the cached copy is older than a week; fall back to it offline
    with CatalogLoader() as loader:
        dataset = loader.load_with_auto_update(max_age_days=7)
        info = loader.get_cache_info()

    print(f"Catalog v{dataset.version}: {info.package_count} packages")

    package = dataset.get(name)
    if package is None:
        print(f"No package named {name!r}. Closest matches:")
        for result in dataset.search(name)[:5]:
            print(f"  {result.package.name}: {result.package.description}")
        return

    print(f"{package.name}: {package.description}")
    for platform, identifier in sorted(package.platforms.items()):
        print(f"  {platform}: {identifier}")


if __name__ == "__main__":
    main(sys.argv[1] if len(sys.argv) > 1 else "git")
