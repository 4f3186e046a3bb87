"""
Dependency resolution driver.

Reads a package's PKGBUILD, extracts its depends and makedepends, classifies
each one and reports how many had to be fetched from the AUR.
"""

import asyncio
import logging
from pathlib import Path

from aurdeps.config import Config
from aurdeps.core.classifier import DependencyClassifier
from aurdeps.models.package import ClassifiedPackage, ResolveResult
from aurdeps.parsers.pkgbuild import get_deps
from aurdeps.sources.aur import AURClient
from aurdeps.sources.base import AURSource, LocalDatabase, RecipeReader, SyncDatabases
from aurdeps.sources.pacman import open_databases
from aurdeps.sources.recipe import read_recipe

logger = logging.getLogger(__name__)


class DependencyResolver:
    """
    Resolves the dependencies of packages whose PKGBUILDs sit in the
    working directory (``<dir>/<package>/PKGBUILD``).

    Collaborators are passed in explicitly; a fresh classifier is created
    for every ``resolve`` call, so downloads are deduplicated per pass.
    """

    def __init__(
        self,
        config: Config,
        local_db: LocalDatabase,
        sync_dbs: SyncDatabases,
        aur: AURSource,
        reader: RecipeReader = read_recipe,
    ):
        self.config = config
        self.local_db = local_db
        self.sync_dbs = sync_dbs
        self.aur = aur
        self.reader = reader

    async def resolve(self, package_name: str) -> ResolveResult:
        """
        Classify every dependency of ``package_name``.

        Raises:
            RecipeUnavailable: The PKGBUILD could not be read.
            ParseMalformed: A dependency array is never closed.
        """
        workdir: Path = self.config.working_dir()
        content = await self.reader(workdir / package_name)
        deps = get_deps(content)

        logger.info(f"Fetching uninstalled dependencies for {package_name}...")

        classifier = DependencyClassifier(self.local_db, self.sync_dbs, self.aur, workdir)
        sem = asyncio.Semaphore(max(1, self.config.jobs))

        async def classify_one(name: str) -> ClassifiedPackage:
            async with sem:
                return await classifier.classify(name)

        outcomes = await asyncio.gather(*(classify_one(name) for name in deps))
        result = ResolveResult(package=package_name, dependencies=list(outcomes))

        logger.debug(
            f"{package_name}: {len(result.installed)} installed, "
            f"{len(result.repository)} in repositories, {len(result.aur)} from AUR, "
            f"{len(result.unresolved)} unresolved"
        )
        return result


async def resolve_dependencies(package_name: str, config: Config | None = None) -> int:
    """
    Resolve ``package_name`` against the system's pacman databases and the
    AUR. Returns the number of AUR dependencies fetched.
    """
    config = config or Config.from_env()
    local_db, sync_dbs = open_databases(config.pacman_conf)

    async with AURClient(base_url=config.aur_url, timeout=config.timeout) as aur:
        resolver = DependencyResolver(config, local_db, sync_dbs, aur)
        result = await resolver.resolve(package_name)

    return result.fetched_count
