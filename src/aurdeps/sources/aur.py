"""
AUR RPC client.

Queries package metadata through the AUR RPC interface (v5) and downloads
snapshot tarballs, with exponential backoff on transient failures and a
circuit breaker per endpoint.
"""

import asyncio
import logging
import tarfile
from pathlib import Path

import aiofiles
import httpx

from aurdeps.config import AUR_URL
from aurdeps.core.merge import compare_names, merge_dedupe, sort_dedupe
from aurdeps.core.resilience import CircuitBreaker, ExponentialBackoff
from aurdeps.exceptions import AURError
from aurdeps.models.package import AURPackage

logger = logging.getLogger(__name__)

RPC_VERSION = 5
RETRY_STATUS = {429, 500, 502, 503, 504}


def _compare_packages(a: AURPackage, b: AURPackage) -> int:
    return compare_names(a.name, b.name)


class AURClient:
    """
    Async client for the AUR.

    Use as an async context manager; an ``httpx.AsyncClient`` may be passed
    in instead, in which case the caller owns it.
    """

    def __init__(
        self,
        base_url: str = AUR_URL,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
        backoff: ExponentialBackoff | None = None,
        circuit_breaker: CircuitBreaker | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.backoff = backoff or ExponentialBackoff()
        self.circuit_breaker = circuit_breaker or CircuitBreaker()
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> "AURClient":
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
            )
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("AURClient used outside of 'async with'")
        return self._client

    # ──────────────────────────────────────────────
    # HTTP Layer
    # ──────────────────────────────────────────────

    async def _request(self, url: str, endpoint: str, params=None) -> httpx.Response:
        """GET with retries. Raises AURError once retries are exhausted."""
        if self.circuit_breaker.is_open(endpoint):
            raise AURError(f"AUR {endpoint} endpoint unavailable (circuit open)")

        attempt = 0
        while True:
            try:
                resp = await self.client.get(url, params=params)
            except (httpx.TimeoutException, httpx.ConnectError) as e:
                error = f"{type(e).__name__}: {e}"
            except httpx.HTTPError as e:
                self.circuit_breaker.record_failure(endpoint)
                raise AURError(f"Request to {url} failed: {e}") from e
            else:
                if resp.status_code == 200:
                    self.circuit_breaker.record_success(endpoint)
                    return resp
                if resp.status_code not in RETRY_STATUS:
                    raise AURError(f"{url} returned HTTP {resp.status_code}")
                error = f"HTTP {resp.status_code}"

            if not self.backoff.should_retry(attempt):
                self.circuit_breaker.record_failure(endpoint)
                raise AURError(f"Request to {url} failed after {attempt + 1} attempts ({error})")

            delay = self.backoff.calculate_delay(attempt)
            logger.debug(f"[AUR] {error}, retry {attempt + 1} after {delay:.1f}s")
            await asyncio.sleep(delay)
            attempt += 1

    async def _rpc(self, query_type: str, params: dict) -> list[dict]:
        resp = await self._request(
            f"{self.base_url}/rpc/",
            "rpc",
            params={"v": RPC_VERSION, "type": query_type, **params},
        )
        try:
            data = resp.json()
        except ValueError as e:
            raise AURError(f"Invalid RPC response: {e}") from e

        if not isinstance(data, dict):
            raise AURError(f"Unexpected RPC response: {type(data).__name__}")
        if data.get("type") == "error":
            raise AURError(f"AUR RPC error: {data.get('error')}")
        results = data.get("results", [])
        if not isinstance(results, list):
            raise AURError("Unexpected RPC response: results is not a list")
        return results

    def _packages(self, results: list[dict]) -> list[AURPackage]:
        try:
            return [AURPackage.from_rpc(r) for r in results]
        except (KeyError, TypeError) as e:
            raise AURError(f"Malformed RPC result: {e!r}") from e

    # ──────────────────────────────────────────────
    # Queries
    # ──────────────────────────────────────────────

    async def info(self, name: str) -> list[AURPackage]:
        """Exact-name metadata lookup; an empty list means not in the AUR."""
        results = await self._rpc("info", {"arg[]": name})
        return self._packages(results)

    async def search(self, term: str, by: str = "name-desc") -> list[AURPackage]:
        """Search the AUR; results are sorted by name without duplicates."""
        results = await self._rpc("search", {"by": by, "arg": term})
        return sort_dedupe(self._packages(results), _compare_packages)

    async def multi_search(self, terms: list[str]) -> list[AURPackage]:
        """Search several terms and merge the hits into one sorted list."""
        merged: list[AURPackage] = []
        for term in terms:
            merged = merge_dedupe(merged, await self.search(term), _compare_packages)
        return merged

    # ──────────────────────────────────────────────
    # Downloads
    # ──────────────────────────────────────────────

    async def download(self, package: AURPackage, dest: Path) -> Path:
        """
        Download the snapshot tarball and unpack it under ``dest``.

        Returns:
            The directory the tarball unpacked into.
        """
        if not package.url_path:
            raise AURError(f"{package.name} has no tarball location")

        dest = Path(dest)
        url = f"{self.base_url}{package.url_path}"
        resp = await self._request(url, "download")

        archive = dest / package.url_path.rsplit("/", 1)[-1]
        try:
            dest.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(archive, "wb") as f:
                await f.write(resp.content)
        except OSError as e:
            raise AURError(f"Could not save {archive.name}: {e}") from e

        try:
            with tarfile.open(archive, "r:*") as tar:
                tar.extractall(dest, filter="data")
        except (tarfile.TarError, OSError) as e:
            raise AURError(f"Could not unpack {archive.name}: {e}") from e
        finally:
            if archive.is_file():
                archive.unlink()

        target = dest / (package.package_base or package.name)
        logger.info(f"[AUR] {package.name} downloaded to {target}")
        return target
