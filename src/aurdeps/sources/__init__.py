"""Package sources: PKGBUILD files, pacman databases and the AUR."""

from aurdeps.sources.aur import AURClient
from aurdeps.sources.base import AURSource, LocalDatabase, RecipeReader, SyncDatabases
from aurdeps.sources.pacman import LocalDB, SyncDB, SyncDBs, open_databases
from aurdeps.sources.recipe import read_recipe

__all__ = [
    "AURClient",
    "AURSource",
    "LocalDatabase",
    "RecipeReader",
    "SyncDatabases",
    "LocalDB",
    "SyncDB",
    "SyncDBs",
    "open_databases",
    "read_recipe",
]
