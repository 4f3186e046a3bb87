"""Shared in-memory fakes for the pacman databases and the AUR."""

from pathlib import Path

import pytest

from aurdeps.exceptions import AURError
from aurdeps.models.package import AURPackage


class FakeLocalDB:
    def __init__(self, names=()):
        self.names = set(names)
        self.lookups: list[str] = []

    def contains(self, name: str) -> bool:
        self.lookups.append(name)
        return name in self.names


class FakeSyncDBs:
    def __init__(self, repos: dict[str, set[str]] | None = None):
        self.repos = repos or {}

    def find(self, name: str) -> str | None:
        for repo, names in self.repos.items():
            if name in names:
                return repo
        return None


class FakeAUR:
    """Serves ``packages`` by exact name; records queries and downloads."""

    def __init__(self, packages=(), failing_queries=(), failing_downloads=()):
        self.packages = {p.name: p for p in packages}
        self.failing_queries = set(failing_queries)
        self.failing_downloads = set(failing_downloads)
        self.queries: list[str] = []
        self.downloads: list[str] = []

    async def info(self, name: str) -> list[AURPackage]:
        self.queries.append(name)
        if name in self.failing_queries:
            raise AURError(f"query for {name} failed")
        package = self.packages.get(name)
        return [package] if package else []

    async def download(self, package: AURPackage, dest: Path) -> Path:
        self.downloads.append(package.name)
        if package.name in self.failing_downloads:
            raise AURError(f"download of {package.name} failed")
        return Path(dest) / package.name


def aur_package(name: str, version: str = "1.0-1") -> AURPackage:
    return AURPackage(
        name=name,
        version=version,
        url_path=f"/cgit/aur.git/snapshot/{name}.tar.gz",
    )


@pytest.fixture
def local_db():
    return FakeLocalDB({"glibc", "bash"})


@pytest.fixture
def sync_dbs():
    return FakeSyncDBs({"core": {"glibc", "bash", "curl"}, "extra": {"python", "git"}})


@pytest.fixture
def aur():
    return FakeAUR([aur_package("cower"), aur_package("python-foo")])
