"""
Collaborator protocols consumed by the classifier and resolver.

Anything that satisfies these protocols can stand in for pacman's
databases or the AUR, including in-memory fakes.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from aurdeps.models.package import AURPackage


@runtime_checkable
class LocalDatabase(Protocol):
    """Installed-package index."""

    def contains(self, name: str) -> bool:
        """Exact-name membership test."""
        ...


@runtime_checkable
class SyncDatabases(Protocol):
    """All configured sync repositories, in priority order."""

    def find(self, name: str) -> str | None:
        """Return the first repository carrying ``name``, or None."""
        ...


@runtime_checkable
class AURSource(Protocol):
    """AUR metadata query and tarball retrieval."""

    async def info(self, name: str) -> list[AURPackage]:
        """Exact-name query. Raises AURError on failure."""
        ...

    async def download(self, package: AURPackage, dest: Path) -> Path:
        """Fetch and unpack the package tarball under ``dest``. Raises AURError."""
        ...


class RecipeReader(Protocol):
    """Returns the PKGBUILD text for a package directory."""

    async def __call__(self, package_dir: Path) -> str:
        ...
