"""Tests for the download cache."""

import asyncio
from pathlib import Path

import pytest

from image_tool.cache import DownloadCache, cache_key
from image_tool.exceptions import InputException


def test_cache_key() -> None:
    """Test the key combines the patch name and release."""
    assert cache_key("p28186730", "600000000073715") == "p28186730##600000000073715"


async def test_ensure_fetches_once(cache_dir: Path) -> None:
    """Test a cached file is not fetched again."""
    cache = DownloadCache(cache_dir)
    fetched: list[Path] = []

    async def fetch(target: Path) -> None:
        fetched.append(target)
        target.write_bytes(b"content")

    expected = cache_dir / "p1.zip"
    assert await cache.ensure("p1##R1", expected, fetch) == expected
    assert await cache.ensure("p1##R1", expected, fetch) == expected
    assert fetched == [expected]
    assert cache.get("p1##R1") == expected


async def test_ensure_path_mismatch(cache_dir: Path) -> None:
    """Test an entry pointing at a different file is fetched again."""
    old = cache_dir / "old.zip"
    old.write_bytes(b"old")
    cache = DownloadCache(cache_dir)
    cache.add("p1##R1", old)
    fetched: list[Path] = []

    async def fetch(target: Path) -> None:
        fetched.append(target)
        target.write_bytes(b"new")

    expected = cache_dir / "p1.zip"
    assert not cache.has_matching("p1##R1", expected)
    assert await cache.ensure("p1##R1", expected, fetch) == expected
    assert fetched == [expected]
    assert cache.entries == {"p1##R1": str(expected)}


async def test_stale_entry(cache_dir: Path) -> None:
    """Test an entry whose file was removed is treated as missing."""
    cache = DownloadCache(cache_dir)
    cache.add("p1##R1", cache_dir / "gone.zip")
    assert cache.get("p1##R1") is None

    async def fetch(target: Path) -> None:
        target.write_bytes(b"content")

    path = await cache.ensure("p1##R1", cache_dir / "gone.zip", fetch)
    assert path.read_bytes() == b"content"


async def test_ensure_fetch_failure(cache_dir: Path) -> None:
    """Test a failed fetch does not add an entry."""
    cache = DownloadCache(cache_dir)

    async def fetch(target: Path) -> None:
        raise InputException("boom")

    with pytest.raises(InputException, match="boom"):
        await cache.ensure("p1##R1", cache_dir / "p1.zip", fetch)
    assert cache.entries == {}
    assert not cache._locks  # pylint: disable=protected-access


async def test_ensure_single_flight(cache_dir: Path) -> None:
    """Test concurrent callers of the same key wait for a single fetch."""
    cache = DownloadCache(cache_dir)
    started = asyncio.Event()
    release = asyncio.Event()
    calls = 0

    async def fetch(target: Path) -> None:
        nonlocal calls
        calls += 1
        started.set()
        await release.wait()
        target.write_bytes(b"content")

    expected = cache_dir / "p1.zip"
    tasks = [
        asyncio.create_task(cache.ensure("p1##R1", expected, fetch)) for _ in range(3)
    ]
    await started.wait()
    release.set()
    assert await asyncio.gather(*tasks) == [expected] * 3
    assert calls == 1
    assert not cache._locks  # pylint: disable=protected-access


async def test_load_and_flush(cache_dir: Path) -> None:
    """Test the index survives a reload."""
    archive = cache_dir / "p1.zip"
    archive.write_bytes(b"content")

    cache = await DownloadCache.load(cache_dir)
    assert cache.entries == {}
    cache.add("p1##R1", archive)
    await cache.flush()
    assert cache.index_file == cache_dir / ".metadata"
    assert cache.index_file.exists()

    reloaded = await DownloadCache.load(cache_dir)
    assert reloaded.entries == {"p1##R1": str(archive)}
    assert reloaded.get("p1##R1") == archive


async def test_flush_unchanged(cache_dir: Path) -> None:
    """Test the index is not written when nothing was added."""
    cache = await DownloadCache.load(cache_dir)
    await cache.flush()
    assert not cache.index_file.exists()


async def test_load_invalid_index(cache_dir: Path) -> None:
    """Test an unreadable index is reported."""
    (cache_dir / ".metadata").write_text("entries: [not, a, mapping]\n")
    with pytest.raises(InputException, match="Unable to read cache index"):
        await DownloadCache.load(cache_dir)
