"""PKGBUILD file access."""

import logging
from pathlib import Path

import aiofiles

from aurdeps.exceptions import RecipeUnavailable

logger = logging.getLogger(__name__)

PKGBUILD = "PKGBUILD"


async def read_recipe(package_dir: Path) -> str:
    """
    Read ``<package_dir>/PKGBUILD``.

    Raises:
        RecipeUnavailable: The file is missing or unreadable.
    """
    path = Path(package_dir) / PKGBUILD
    try:
        async with aiofiles.open(path, encoding="utf-8", errors="replace") as f:
            content = await f.read()
    except OSError as e:
        raise RecipeUnavailable(path, e.strerror or str(e)) from e

    logger.debug(f"Read {len(content)} bytes from {path}")
    return content
