"""
aurdeps CLI: AUR dependency resolution.

Usage:
    aurdeps resolve cower --download-dir ~/aur
    aurdeps deps cower
    aurdeps foreign
"""

import asyncio
import logging
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from aurdeps.config import Config
from aurdeps.exceptions import AurDepsError


def _configure_logging(verbose: int, quiet: bool) -> None:
    if verbose:
        log_level = logging.DEBUG
    elif quiet:
        log_level = logging.WARNING
    else:
        log_level = logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _fail(console: Console, error: AurDepsError) -> None:
    console.print(f"[bold red]::[/bold red] {error}")
    raise SystemExit(1)


@click.group()
@click.version_option(package_name="aurdeps")
def cli():
    """aurdeps: AUR dependency resolution."""
    pass


@cli.command()
@click.argument("package")
@click.option(
    "--download-dir",
    "-d",
    type=click.Path(file_okay=False),
    default=None,
    help="Directory holding package build directories (default: current directory).",
)
@click.option("--jobs", "-j", type=click.IntRange(min=1), default=None, help="Parallel lookups.")
@click.option(
    "--pacman-conf",
    type=click.Path(dir_okay=False),
    default=None,
    help="pacman.conf to read repositories from.",
)
@click.option("--verbose", "-v", count=True, help="Enable verbose logging.")
@click.option("--quiet", "-q", is_flag=True, help="Only report errors and the result.")
@click.option("--no-color", is_flag=True, help="Disable colored output.")
def resolve(package, download_dir, jobs, pacman_conf, verbose, quiet, no_color):
    """Fetch the AUR dependencies of PACKAGE."""
    from aurdeps.core.resolver import DependencyResolver
    from aurdeps.sources.aur import AURClient
    from aurdeps.sources.pacman import open_databases

    _configure_logging(verbose, quiet)
    config = Config.from_env(
        download_dir=Path(download_dir) if download_dir else None,
        jobs=jobs,
        pacman_conf=Path(pacman_conf) if pacman_conf else None,
        verbosity=verbose,
        quiet=quiet,
        color=not no_color,
    )
    console = Console(no_color=not config.color)

    async def run():
        local_db, sync_dbs = open_databases(config.pacman_conf)
        async with AURClient(base_url=config.aur_url, timeout=config.timeout) as aur:
            resolver = DependencyResolver(config, local_db, sync_dbs, aur)
            return await resolver.resolve(package)

    try:
        result = asyncio.run(run())
    except AurDepsError as e:
        _fail(console, e)
    except OSError as e:
        _fail(console, AurDepsError(f"Could not read pacman configuration: {e}"))

    if not config.quiet and result.dependencies:
        table = Table(title=f"Dependencies of {package}")
        table.add_column("Name", style="bold")
        table.add_column("Status")
        table.add_column("Source")
        for dep in result.dependencies:
            source = dep.repository or (dep.aur_package.version if dep.aur_package else "")
            status = dep.classification.value
            if dep.aur_package and not dep.fetched:
                status += " (fetch failed)"
            table.add_row(dep.name, status, source or "")
        console.print(table)

    console.print(f"{result.fetched_count}")


@cli.command()
@click.argument("package")
@click.option(
    "--download-dir",
    "-d",
    type=click.Path(file_okay=False),
    default=None,
    help="Directory holding package build directories (default: current directory).",
)
def deps(package, download_dir):
    """Show the dependency arrays declared in PACKAGE's PKGBUILD."""
    from aurdeps.parsers.pkgbuild import parse_pkgbuild
    from aurdeps.sources.recipe import read_recipe

    config = Config.from_env(download_dir=Path(download_dir) if download_dir else None)
    console = Console()

    try:
        content = asyncio.run(read_recipe(config.working_dir() / package))
        arrays = parse_pkgbuild(content)
    except AurDepsError as e:
        _fail(console, e)

    title = arrays.pkgname or package
    if arrays.pkgver:
        title += f" {arrays.pkgver}"
    console.print(f"[bold cyan]{title}[/bold cyan]")
    for label, values in (
        ("Depends", arrays.depends),
        ("Make Depends", arrays.makedepends),
        ("Optional Deps", arrays.optdepends),
    ):
        console.print(f"{label:<14}: {'  '.join(values) if len(values) else 'None'}", markup=False)


@cli.command()
@click.option(
    "--pacman-conf",
    type=click.Path(dir_okay=False),
    default=None,
    help="pacman.conf to read repositories from.",
)
def foreign(pacman_conf):
    """List installed packages not found in any sync repository."""
    from aurdeps.sources.pacman import open_databases, query_foreign

    config = Config.from_env(pacman_conf=Path(pacman_conf) if pacman_conf else None)
    console = Console()

    try:
        local_db, sync_dbs = open_databases(config.pacman_conf)
    except OSError as e:
        _fail(console, AurDepsError(f"Could not read pacman configuration: {e}"))

    for name in query_foreign(local_db, sync_dbs):
        console.print(name)


if __name__ == "__main__":
    cli()
