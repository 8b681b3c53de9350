"""Resolve, validate and download the patches requested for a build."""

import asyncio
from collections.abc import Awaitable, Iterable
from dataclasses import dataclass
import logging
from pathlib import Path
from typing import TypeVar

from image_tool.cache import DownloadCache, cache_key

from .catalog import Category, ReleaseCatalogClient
from .conflicts import ConflictChecker, ConflictReport
from .patches import LATEST, PatchLocator, PatchMetadata
from .transport import AruTransport

__all__ = [
    "ResolvedPatches",
    "PatchService",
]

_LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


async def _gather_settled(aws: Iterable[Awaitable[T]]) -> list[T]:
    """Wait for every awaitable to finish, then raise the first failure."""
    results = await asyncio.gather(*aws, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return results  # type: ignore[return-value]


@dataclass(frozen=True)
class ResolvedPatches:
    """Patches located in a single release."""

    release_id: str
    patches: list[PatchMetadata]

    @property
    def patch_ids(self) -> list[str]:
        return [patch.patch_id for patch in self.patches]


class PatchService:
    """Ties together the locator, conflict checker, cache and downloader."""

    def __init__(
        self,
        transport: AruTransport,
        cache: DownloadCache,
        locator: PatchLocator | None = None,
        checker: ConflictChecker | None = None,
    ) -> None:
        """Initialize PatchService."""
        self._transport = transport
        self._cache = cache
        self._locator = locator or PatchLocator(transport)
        self._checker = checker or ConflictChecker(transport)

    @property
    def catalog(self) -> ReleaseCatalogClient:
        return self._locator.catalog

    @property
    def cache(self) -> DownloadCache:
        return self._cache

    async def resolve(
        self, category: Category, version: str, bugs: list[str]
    ) -> ResolvedPatches:
        """Locate every requested bug number in the release of a version."""
        release_id = await self.catalog.resolve_release_id(category, version)
        patches = await _gather_settled(
            self._locator.locate_in_release(category, release_id, bug) for bug in bugs
        )
        return ResolvedPatches(release_id=release_id, patches=list(patches))

    async def latest(self, category: Category, version: str) -> PatchMetadata:
        """Return the latest patch set update for a version."""
        return await self._locator.locate(category, version, LATEST)

    async def patch_set_updates(
        self, category: Category, version: str
    ) -> list[PatchMetadata]:
        """Return every patch set update of a version, most recent first."""
        return await self._locator.patch_set_updates(category, version)

    async def check_conflicts(self, resolved: ResolvedPatches) -> ConflictReport:
        """Check the resolved patches for conflicts with each other."""
        return await self._checker.check(resolved.release_id, resolved.patch_ids)

    async def download(self, patch: PatchMetadata) -> Path:
        """Return the local archive for a patch, downloading it if not cached."""
        key = (
            cache_key(patch.bug_name, patch.release_id)
            if patch.bug_name and patch.release_id
            else None
        )
        if key is None or patch.file_name is None:
            # The expected location is unknown so only a previously cached
            # file can satisfy the request
            if key and (cached := self._cache.get(key)) is not None:
                _LOGGER.info("Using cached patch %s for %s", cached, key)
                return cached
            patch.require_download()
        assert key and patch.file_name
        expected_path = self._cache.cache_dir / patch.file_name

        async def fetch(target: Path) -> None:
            url, _ = patch.require_download()
            await self._transport.download(url, target)

        return await self._cache.ensure(key, expected_path, fetch)

    async def download_all(self, patches: list[PatchMetadata]) -> list[Path]:
        """Download patches concurrently, saving the cache index afterwards.

        Every download runs to completion before the index is saved, so a
        failure does not drop the entries of the downloads that succeeded.
        """
        try:
            paths = await _gather_settled(self.download(patch) for patch in patches)
        finally:
            await self._cache.flush()
        return list(paths)
