"""Cache of downloaded patch archives.

The cache index maps a key made of the patch name and release id to the
absolute path of the downloaded file. It is stored as YAML in the cache
directory and is only written when `flush` is called:

```python
cache = await DownloadCache.load(Path("~/.cache/image-tool").expanduser())
try:
    path = await cache.ensure(cache_key("p28186730", "600000000073715"), target, fetch)
finally:
    await cache.flush()
```
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
import logging
from pathlib import Path

import aiofiles
from mashumaro import DataClassDictMixin
from mashumaro.codecs.yaml import yaml_decode, yaml_encode

from .exceptions import InputException

__all__ = [
    "cache_key",
    "CacheIndex",
    "DownloadCache",
]

_LOGGER = logging.getLogger(__name__)

CACHE_KEY_SEPARATOR = "##"
INDEX_FILE = ".metadata"

Fetch = Callable[[Path], Awaitable[object]]


def cache_key(bug_name: str, release_id: str) -> str:
    """Return the cache key for a patch of a release."""
    return f"{bug_name}{CACHE_KEY_SEPARATOR}{release_id}"


@dataclass
class CacheIndex(DataClassDictMixin):
    """Serialized form of the cache index."""

    entries: dict[str, str] = field(default_factory=dict)


class DownloadCache:
    """Persistent mapping from cache key to a downloaded file."""

    def __init__(self, cache_dir: Path, index: CacheIndex | None = None) -> None:
        """Initialize DownloadCache."""
        self._cache_dir = cache_dir
        self._index = index or CacheIndex()
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}
        self._dirty = False

    @property
    def cache_dir(self) -> Path:
        return self._cache_dir

    @property
    def index_file(self) -> Path:
        return self._cache_dir / INDEX_FILE

    @property
    def entries(self) -> dict[str, str]:
        """Return a copy of the index entries."""
        return dict(self._index.entries)

    @classmethod
    async def load(cls, cache_dir: Path) -> "DownloadCache":
        """Load the cache index from the cache directory, if present."""
        index_file = cache_dir / INDEX_FILE
        if not index_file.exists():
            _LOGGER.debug("No cache index at %s", index_file)
            return cls(cache_dir)
        async with aiofiles.open(index_file) as index_fd:
            content = await index_fd.read()
        if not content.strip():
            return cls(cache_dir)
        try:
            index = yaml_decode(content, CacheIndex)
        except Exception as err:
            raise InputException(
                f"Unable to read cache index {index_file}: {err}"
            ) from err
        _LOGGER.debug("Loaded %d cache entries from %s", len(index.entries), index_file)
        return cls(cache_dir, index)

    async def flush(self) -> None:
        """Write the cache index if it changed since it was loaded."""
        if not self._dirty:
            return
        self._cache_dir.mkdir(parents=True, exist_ok=True)
        content = yaml_encode(self._index, CacheIndex)
        async with aiofiles.open(self.index_file, mode="w") as index_fd:
            await index_fd.write(str(content))
        self._dirty = False

    def get(self, key: str) -> Path | None:
        """Return the cached file for a key when it still exists on disk."""
        if (value := self._index.entries.get(key)) is None:
            return None
        path = Path(value)
        if not path.exists():
            _LOGGER.debug("Cache entry %s points at missing file %s", key, path)
            return None
        return path

    def has_matching(self, key: str, expected_path: Path) -> bool:
        """Return True if the key is cached at exactly the expected path."""
        if (path := self.get(key)) is None:
            return False
        return path == expected_path.absolute()

    def add(self, key: str, path: Path) -> None:
        """Record a downloaded file for a key."""
        self._index.entries[key] = str(path.absolute())
        self._dirty = True

    async def ensure(self, key: str, expected_path: Path, fetch: Fetch) -> Path:
        """Return the cached file for a key, fetching it into place if needed.

        The cached entry is used only if it points at the expected path and
        the file exists. Callers resolving the same key wait for each other.
        """
        expected_path = expected_path.absolute()
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            async with lock:
                if self.has_matching(key, expected_path):
                    _LOGGER.info(
                        "Patch %s already downloaded for %s", expected_path, key
                    )
                    return expected_path
                await fetch(expected_path)
                self.add(key, expected_path)
        finally:
            # Drop the lock once no caller holds or waits for it
            self._lock_users[key] -= 1
            if not self._lock_users[key]:
                del self._lock_users[key]
                del self._locks[key]
        return expected_path
