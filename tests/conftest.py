"""Test fixtures for image-tool."""

from collections.abc import AsyncGenerator
import pathlib

import httpx
import pytest

from image_tool.aru import AruTransport, Credentials
from image_tool.config import CatalogConfig

from .fakes import BASE_URL, FakeCatalog


@pytest.fixture(name="catalog")
def catalog_fixture() -> FakeCatalog:
    """Fixture for the fake catalog service."""
    return FakeCatalog()


@pytest.fixture(name="credentials")
def credentials_fixture() -> Credentials:
    return Credentials("user@example.com", "secret")


@pytest.fixture(name="transport")
async def transport_fixture(
    catalog: FakeCatalog, credentials: Credentials
) -> AsyncGenerator[AruTransport, None]:
    """Fixture for a transport talking to the fake catalog."""
    client = httpx.AsyncClient(transport=httpx.MockTransport(catalog.handler))
    async with client:
        yield AruTransport(credentials, CatalogConfig(base_url=BASE_URL), client=client)


@pytest.fixture(name="cache_dir")
def cache_dir_fixture(tmp_path: pathlib.Path) -> pathlib.Path:
    cache_dir = tmp_path / "cache"
    cache_dir.mkdir()
    return cache_dir
