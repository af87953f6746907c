"""
Package Catalog CLI — manage and query the cached package database.

Usage:
    package-catalog update --force
    package-catalog info
    package-catalog clear
    package-catalog search editor --limit 10
    package-catalog show git
    package-catalog groups
"""

import logging
from datetime import datetime, timezone

import click
from rich.console import Console
from rich.table import Table

console = Console()
err_console = Console(stderr=True)


def _make_loader(ctx: click.Context):
    from package_catalog.core.loader import CatalogLoader

    return CatalogLoader(settings=ctx.obj["settings"])


def _fail(message: str, exc: Exception) -> None:
    from package_catalog.exceptions import format_error_chain

    err_console.print(f"[bold red]{message}[/bold red]")
    err_console.print(format_error_chain(exc), style="red", markup=False, highlight=False)
    raise SystemExit(1)


def _print_metadata(metadata) -> None:
    console.print(f"  Version: {metadata.version}")
    console.print(f"  Last updated: {metadata.last_updated}")
    console.print(f"  Packages: {metadata.package_count}")
    console.print(f"  Size: {metadata.size_bytes // 1024} KB")


@click.group()
@click.version_option(package_name="package-catalog")
@click.option("--cache-dir", type=click.Path(file_okay=False), default=None, help="Cache directory.")
@click.option("--max-age-days", type=click.IntRange(min=0), default=None, help="Refresh when the cache is this old.")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging.")
@click.pass_context
def cli(ctx, cache_dir, max_age_days, verbose):
    """Package Catalog — cached, verified package database."""
    from pathlib import Path

    from package_catalog.config import CatalogSettings

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        settings = CatalogSettings.from_env()
    except ValueError as e:
        raise click.BadParameter(str(e)) from e
    if cache_dir:
        settings.cache_dir = Path(cache_dir).expanduser()
    if max_age_days is not None:
        settings.max_age_days = max_age_days

    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


@cli.command()
@click.option("--force", "-f", is_flag=True, help="Re-download even if the cache is current.")
@click.pass_context
def update(ctx, force):
    """Download the latest package database."""
    from package_catalog.exceptions import CatalogError

    console.print("[bold cyan]Package Database Update[/bold cyan]")
    with _make_loader(ctx) as loader:
        try:
            current = loader.get_cache_info()
        except CatalogError:
            current = None
        if current:
            console.print("Current database:")
            _print_metadata(current)

        console.print("Force updating package database..." if force else "Updating package database...")
        try:
            with console.status("[bold cyan]Downloading...[/bold cyan]"):
                metadata = loader.download()
        except CatalogError as e:
            _fail("Failed to update package database", e)

    console.print("[bold green]Package database updated successfully![/bold green]")
    console.print("New database:")
    _print_metadata(metadata)


@cli.command()
@click.pass_context
def info(ctx):
    """Show information about the cached package database."""
    from package_catalog.exceptions import CatalogError

    with _make_loader(ctx) as loader:
        try:
            metadata = loader.get_cache_info()
        except CatalogError as e:
            _fail("Failed to read cache info", e)

    if metadata is None:
        console.print("No cached database found.")
        console.print("Download the package database with: [cyan]package-catalog update[/cyan]")
        return

    console.print(f"[bold]Version[/bold]: {metadata.version}")
    console.print(f"[bold]Last Updated[/bold]: {metadata.last_updated}")
    console.print(f"[bold]Packages[/bold]: {metadata.package_count}")
    console.print(f"[bold]Size[/bold]: {metadata.size_bytes // 1024} KB ({metadata.size_bytes} bytes)")

    elapsed = datetime.now(timezone.utc) - metadata.updated_at()
    days, hours = elapsed.days, elapsed.seconds // 3600
    if days > 0:
        console.print(f"[bold]Age[/bold]: {days} days, {hours} hours ago")
    else:
        console.print(f"[bold]Age[/bold]: {hours} hours ago")

    if days >= ctx.obj["settings"].max_age_days:
        console.print(f"Database is more than {ctx.obj['settings'].max_age_days} days old. Consider updating:")
        console.print("  [cyan]package-catalog update[/cyan]")


@cli.command()
@click.pass_context
def clear(ctx):
    """Remove the cached package database."""
    from package_catalog.exceptions import CatalogError

    with _make_loader(ctx) as loader:
        try:
            loader.clear_cache()
        except CatalogError as e:
            _fail("Failed to clear cache", e)

    console.print("[bold green]Package database cache cleared![/bold green]")


def _load_dataset(ctx):
    from package_catalog.exceptions import CatalogError

    settings = ctx.obj["settings"]
    with _make_loader(ctx) as loader:
        try:
            return loader.load_with_auto_update(settings.max_age_days)
        except CatalogError as e:
            _fail("Failed to load package database", e)


@cli.command()
@click.argument("query")
@click.option("--limit", "-l", type=click.IntRange(min=1), default=20, help="Maximum results to show.")
@click.pass_context
def search(ctx, query, limit):
    """Search packages by name, description or tag."""
    dataset = _load_dataset(ctx)
    results = dataset.search(query)
    if not results:
        console.print(f"No packages found matching '{query}'.")
        return

    table = Table(title=f"Packages matching '{query}'")
    table.add_column("Name", style="bold")
    table.add_column("Category")
    table.add_column("Popularity", justify="right")
    table.add_column("Description")
    for result in results[:limit]:
        pkg = result.package
        table.add_row(pkg.name, pkg.category, str(pkg.popularity), pkg.description)
    console.print(table)


@cli.command()
@click.argument("name")
@click.pass_context
def show(ctx, name):
    """Show details for a single package."""
    dataset = _load_dataset(ctx)
    pkg = dataset.get(name)
    if pkg is None:
        err_console.print(f"[red]Unknown package: {name}[/red]")
        raise SystemExit(1)

    console.print(f"[bold]{pkg.name}[/bold]: {pkg.description}")
    console.print(f"Category: {pkg.category}  Popularity: {pkg.popularity}")
    if pkg.tags:
        console.print(f"Tags: {', '.join(pkg.tags)}")
    for platform, identifier in sorted(pkg.platforms.items()):
        console.print(f"  {platform}: {identifier}")
    for dep in pkg.dependencies.required:
        console.print(f"Requires {dep.package}: {dep.reason}")
    for dep in pkg.dependencies.optional:
        console.print(f"Optional {dep.package}: {dep.reason}")
    alternatives = [alt.name for alt in dataset.alternatives(pkg.name)]
    if alternatives:
        console.print(f"Alternatives: {', '.join(alternatives)}")
    for label, value in (("Website", pkg.website), ("License", pkg.license), ("Source", pkg.source)):
        if value:
            console.print(f"{label}: {value}")


@cli.command()
@click.pass_context
def groups(ctx):
    """List curated package groups."""
    dataset = _load_dataset(ctx)
    table = Table(title="Package Groups")
    table.add_column("ID", style="bold")
    table.add_column("Name")
    table.add_column("Category")
    table.add_column("Packages", justify="right")
    for group in dataset.groups:
        count = len(group.packages.required) + len(group.packages.optional)
        table.add_row(group.id, group.name, group.category, str(count))
    console.print(table)


if __name__ == "__main__":
    cli()
