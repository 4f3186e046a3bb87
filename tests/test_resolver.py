"""Tests for the dependency resolution driver."""

import io
import tarfile
from pathlib import Path

import httpx
import pytest

from aurdeps.config import Config
from aurdeps.core import resolver as resolver_module
from aurdeps.core.resilience import ExponentialBackoff
from aurdeps.core.resolver import DependencyResolver, resolve_dependencies
from aurdeps.exceptions import ParseMalformed, RecipeUnavailable
from aurdeps.models.package import Classification
from aurdeps.sources.aur import AURClient
from conftest import FakeAUR, FakeLocalDB, FakeSyncDBs, aur_package

PKGBUILD = """
pkgname=foo
pkgver=1.0
pkgrel=1
depends=('x' 'y>=2.0' 'z')
makedepends=('x' 'z')
optdepends=('w: optional feature')
"""


def write_pkgbuild(root: Path, name: str, content: str) -> None:
    pkgdir = root / name
    pkgdir.mkdir(parents=True)
    (pkgdir / "PKGBUILD").write_text(content)


@pytest.fixture
def fakes():
    return (
        FakeLocalDB({"x"}),
        FakeSyncDBs({"extra": {"y"}}),
        FakeAUR([aur_package("z"), aur_package("w")]),
    )


def make_resolver(tmp_path, fakes, **config) -> DependencyResolver:
    local_db, sync_dbs, aur = fakes
    return DependencyResolver(Config(download_dir=tmp_path, **config), local_db, sync_dbs, aur)


class TestResolve:
    @pytest.mark.asyncio
    async def test_mixed_dependencies(self, tmp_path, fakes):
        write_pkgbuild(tmp_path, "foo", PKGBUILD)
        result = await make_resolver(tmp_path, fakes).resolve("foo")

        assert [d.name for d in result.dependencies] == ["x", "y", "z"]
        assert [d.classification for d in result.dependencies] == [
            Classification.INSTALLED,
            Classification.REPOSITORY,
            Classification.AUR,
        ]
        assert result.fetched_count == 1
        assert fakes[2].downloads == ["z"]

    @pytest.mark.asyncio
    async def test_optdepends_not_acted_upon(self, tmp_path, fakes):
        write_pkgbuild(tmp_path, "foo", PKGBUILD)
        await make_resolver(tmp_path, fakes).resolve("foo")
        assert "w" not in fakes[2].queries

    @pytest.mark.asyncio
    async def test_missing_recipe(self, tmp_path, fakes):
        local_db, _, aur = fakes
        with pytest.raises(RecipeUnavailable) as exc:
            await make_resolver(tmp_path, fakes).resolve("nothere")
        assert exc.value.path == tmp_path.resolve() / "nothere" / "PKGBUILD"
        assert local_db.lookups == []
        assert aur.queries == []
        assert aur.downloads == []

    @pytest.mark.asyncio
    async def test_malformed_recipe(self, tmp_path, fakes):
        write_pkgbuild(tmp_path, "foo", "depends=(x y\n")
        with pytest.raises(ParseMalformed):
            await make_resolver(tmp_path, fakes).resolve("foo")
        assert fakes[0].lookups == []

    @pytest.mark.asyncio
    async def test_no_dependencies(self, tmp_path, fakes):
        write_pkgbuild(tmp_path, "foo", "pkgname=foo\n")
        result = await make_resolver(tmp_path, fakes).resolve("foo")
        assert result.dependencies == []
        assert result.fetched_count == 0

    @pytest.mark.asyncio
    async def test_failed_fetch_not_counted(self, tmp_path):
        write_pkgbuild(tmp_path, "foo", "depends=(a b)\n")
        aur = FakeAUR([aur_package("a"), aur_package("b")], failing_downloads=["b"])
        resolver = DependencyResolver(
            Config(download_dir=tmp_path), FakeLocalDB(), FakeSyncDBs(), aur
        )
        result = await resolver.resolve("foo")
        assert len(result.aur) == 2
        assert result.fetched_count == 1

    @pytest.mark.asyncio
    async def test_unresolved_is_silent(self, tmp_path, fakes):
        write_pkgbuild(tmp_path, "foo", "depends=(sh)\n")
        result = await make_resolver(tmp_path, fakes).resolve("foo")
        assert result.unresolved[0].name == "sh"
        assert result.fetched_count == 0

    @pytest.mark.asyncio
    async def test_parallel_matches_sequential(self, tmp_path):
        names = [f"dep{i}" for i in range(12)]
        write_pkgbuild(tmp_path, "foo", f"depends=({' '.join(names)})\n")
        local_db = FakeLocalDB(names[:4])
        sync_dbs = FakeSyncDBs({"extra": set(names[4:8])})

        results = []
        for jobs in (1, 4):
            aur = FakeAUR([aur_package(n) for n in names[8:]])
            resolver = DependencyResolver(
                Config(download_dir=tmp_path, jobs=jobs), local_db, sync_dbs, aur
            )
            result = await resolver.resolve("foo")
            results.append(result)
            assert sorted(aur.downloads) == names[8:]

        sequential, parallel = results
        assert [d.name for d in parallel.dependencies] == names
        assert [d.classification for d in parallel.dependencies] == [
            d.classification for d in sequential.dependencies
        ]
        assert parallel.fetched_count == sequential.fetched_count == 4

    @pytest.mark.asyncio
    async def test_custom_reader(self, tmp_path, fakes):
        seen = []

        async def reader(package_dir: Path) -> str:
            seen.append(package_dir)
            return "depends=(z)\n"

        local_db, sync_dbs, aur = fakes
        resolver = DependencyResolver(
            Config(download_dir=tmp_path), local_db, sync_dbs, aur, reader=reader
        )
        result = await resolver.resolve("foo")
        assert seen == [tmp_path.resolve() / "foo"]
        assert result.fetched_count == 1

    @pytest.mark.asyncio
    async def test_defaults_to_current_directory(self, tmp_path, fakes, monkeypatch):
        write_pkgbuild(tmp_path, "foo", "depends=(z)\n")
        monkeypatch.chdir(tmp_path)
        local_db, sync_dbs, aur = fakes
        resolver = DependencyResolver(Config(), local_db, sync_dbs, aur)
        result = await resolver.resolve("foo")
        assert result.fetched_count == 1


class TestResolveDependencies:
    @pytest.mark.asyncio
    async def test_builds_collaborators_from_config(self, tmp_path, monkeypatch):
        write_pkgbuild(tmp_path, "foo", "depends=(x z)\n")
        aur = FakeAUR([aur_package("z")])
        opened = []

        class FakeClient:
            def __init__(self, base_url, timeout):
                self.base_url = base_url

            async def __aenter__(self):
                return aur

            async def __aexit__(self, *exc_info):
                return None

        def fake_open_databases(conf_path):
            opened.append(conf_path)
            return FakeLocalDB({"x"}), FakeSyncDBs()

        monkeypatch.setattr(resolver_module, "AURClient", FakeClient)
        monkeypatch.setattr(resolver_module, "open_databases", fake_open_databases)

        config = Config(download_dir=tmp_path, pacman_conf=tmp_path / "pacman.conf")
        count = await resolve_dependencies("foo", config)

        assert count == 1
        assert opened == [tmp_path / "pacman.conf"]
        assert aur.downloads == ["z"]


# ═══════════════════════════════════════════
# Against the AUR client
# ═══════════════════════════════════════════


def aur_handler(names, results=None):
    """Serve ``names`` from a mocked AUR; ``results`` overrides every info reply."""

    def tarball(name):
        buf = io.BytesIO()
        with tarfile.open(fileobj=buf, mode="w:gz") as tar:
            data = f"pkgname={name}\n".encode()
            info = tarfile.TarInfo(f"{name}/PKGBUILD")
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))
        return buf.getvalue()

    def handler(request):
        if request.url.path == "/rpc/":
            name = request.url.params["arg[]"]
            if results is not None:
                payload = results
            elif name in names:
                payload = [{"Name": name, "PackageBase": name, "URLPath": f"/snapshot/{name}.tar.gz"}]
            else:
                payload = []
            return httpx.Response(200, json={"type": "multiinfo", "results": payload})
        name = request.url.path.rsplit("/", 1)[-1].removesuffix(".tar.gz")
        return httpx.Response(200, content=tarball(name))

    return handler


def aur_client(handler) -> AURClient:
    return AURClient(
        base_url="https://aur.example.org",
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        backoff=ExponentialBackoff(base_delay=0.0, max_delay=0.0, max_retries=0),
    )


class TestResolveWithAURClient:
    @pytest.mark.asyncio
    async def test_unwritable_download_does_not_abort(self, tmp_path):
        write_pkgbuild(tmp_path, "foo", "depends=(a b)\n")
        (tmp_path / "a.tar.gz").mkdir()

        async with aur_client(aur_handler({"a", "b"})) as aur:
            resolver = DependencyResolver(Config(download_dir=tmp_path), FakeLocalDB(), FakeSyncDBs(), aur)
            result = await resolver.resolve("foo")

        assert [d.name for d in result.dependencies] == ["a", "b"]
        assert [d.classification for d in result.dependencies] == [Classification.AUR] * 2
        assert [d.fetched for d in result.dependencies] == [False, True]
        assert result.fetched_count == 1
        assert (tmp_path / "b" / "PKGBUILD").exists()

    @pytest.mark.asyncio
    async def test_malformed_rpc_result_is_unresolved(self, tmp_path):
        write_pkgbuild(tmp_path, "foo", "depends=(a b)\n")

        async with aur_client(aur_handler({"a", "b"}, results=[{"Version": "1"}])) as aur:
            resolver = DependencyResolver(Config(download_dir=tmp_path), FakeLocalDB(), FakeSyncDBs(), aur)
            result = await resolver.resolve("foo")

        assert result.fetched_count == 0
        assert [d.classification for d in result.dependencies] == [Classification.UNRESOLVED] * 2
