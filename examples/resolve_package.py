"""
Example: Resolve and fetch the AUR dependencies of a package.

Usage:
    mkdir -p ~/aur && cd ~/aur
    (place or download <package>/PKGBUILD here)
    python examples/resolve_package.py <package>
"""

import asyncio
import logging
import sys
from pathlib import Path

from aurdeps import DependencyResolver
from aurdeps.config import Config
from aurdeps.sources import AURClient, open_databases


async def main(package: str):
    config = Config.from_env(download_dir=Path.cwd(), jobs=4)
    local_db, sync_dbs = open_databases(config.pacman_conf)

    async with AURClient(base_url=config.aur_url) as aur:
        resolver = DependencyResolver(config, local_db, sync_dbs, aur)
        result = await resolver.resolve(package)

    for dep in result.dependencies:
        print(f"{dep.name:<30} {dep.classification.value}")
    print(f"\n{result.fetched_count} dependencies fetched from the AUR")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main(sys.argv[1]))
