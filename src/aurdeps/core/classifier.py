"""
Dependency classification.

Decides where a single dependency comes from: already installed, a sync
repository, or the AUR. AUR hits are downloaded as a side effect.
"""

import asyncio
import logging
from pathlib import Path

from aurdeps.exceptions import AURError
from aurdeps.models.package import Classification, ClassifiedPackage
from aurdeps.sources.base import AURSource, LocalDatabase, SyncDatabases

logger = logging.getLogger(__name__)


class DependencyClassifier:
    """
    Classifies dependency names for one resolution pass.

    Lookup order is local database, sync repositories, then the AUR; the
    first hit wins. Results are memoized per instance so every name is
    looked up, and downloaded, at most once.
    """

    def __init__(
        self,
        local_db: LocalDatabase,
        sync_dbs: SyncDatabases,
        aur: AURSource,
        download_dir: Path,
    ):
        self.local_db = local_db
        self.sync_dbs = sync_dbs
        self.aur = aur
        self.download_dir = download_dir
        self._tasks: dict[str, asyncio.Future] = {}

    async def classify(self, name: str) -> ClassifiedPackage:
        task = self._tasks.get(name)
        if task is None:
            task = asyncio.ensure_future(self._classify(name))
            self._tasks[name] = task
        return await task

    async def _classify(self, name: str) -> ClassifiedPackage:
        logger.debug(f"Attempting to find {name}")

        if self.local_db.contains(name):
            logger.debug(f"{name} is installed")
            return ClassifiedPackage(name, Classification.INSTALLED)

        repository = self.sync_dbs.find(name)
        if repository is not None:
            logger.info(f"{name} is available in {repository}")
            return ClassifiedPackage(name, Classification.REPOSITORY, repository=repository)

        try:
            results = await self.aur.info(name)
        except AURError as e:
            logger.warning(f"[AUR] Query for {name} failed: {e}")
            results = []

        if not results:
            logger.debug(f"{name} not found in any repository or the AUR")
            return ClassifiedPackage(name, Classification.UNRESOLVED)

        logger.debug(f"{name} is in the AUR")
        package = results[0]
        outcome = ClassifiedPackage(name, Classification.AUR, aur_package=package)
        try:
            await self.aur.download(package, self.download_dir)
        except AURError as e:
            logger.error(f"[AUR] Failed to fetch {package.name}: {e}")
        else:
            outcome.fetched = True
        return outcome
