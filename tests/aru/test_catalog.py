"""Tests for the release catalog client."""

import httpx
import pytest

from image_tool.aru import AruTransport, Category, Credentials, ReleaseCatalogClient
from image_tool.config import CatalogConfig
from image_tool.exceptions import CatalogUnavailable, Unauthorized, VersionNotFound

from ..fakes import BASE_URL, FakeCatalog


async def test_releases_filtered_by_category(transport: AruTransport) -> None:
    """Test that only releases with the category prefix are returned."""
    client = ReleaseCatalogClient(transport)

    releases = await client.releases(Category.PRODUCT)
    assert [(r.name, r.release_id) for r in releases] == [
        ("12.2.1.3.0", "R1"),
        ("12.2.1.4.0", "R2"),
    ]

    releases = await client.releases(Category.PLATFORM_UPGRADE)
    assert [(r.name, r.release_id) for r in releases] == [("12.2.1.3.0", "R9")]
    assert releases[0].description == "Fusion Middleware Upgrade 12.2.1.3.0"


@pytest.mark.parametrize(
    ("category", "version", "expected"),
    [
        (Category.PRODUCT, "12.2.1.3.0", "R1"),
        (Category.PRODUCT, "12.2.1.4.0", "R2"),
        (Category.PLATFORM_UPGRADE, "12.2.1.3.0", "R9"),
    ],
)
async def test_resolve_release_id(
    transport: AruTransport, category: Category, version: str, expected: str
) -> None:
    """Test resolving a version string to a release id."""
    client = ReleaseCatalogClient(transport)
    assert await client.resolve_release_id(category, version) == expected


@pytest.mark.parametrize(
    ("category", "version"),
    [
        (Category.PRODUCT, "14.1.1.0.0"),
        (Category.PRODUCT, "12.2.1.3"),
        (Category.PLATFORM_UPGRADE, "12.2.1.4.0"),
    ],
)
async def test_version_not_found(
    transport: AruTransport, category: Category, version: str
) -> None:
    """Test a version without a release in the category."""
    client = ReleaseCatalogClient(transport)
    with pytest.raises(VersionNotFound, match=version):
        await client.resolve_release_id(category, version)


async def test_release_missing_id_is_skipped(
    catalog: FakeCatalog, transport: AruTransport
) -> None:
    """Test that an entry without an id is never resolved to an empty id."""
    catalog.releases = (
        '<results><release id="" name="12.2.1.3.0">'
        "Oracle WebLogic Server 12.2.1.3.0</release></results>"
    )
    client = ReleaseCatalogClient(transport)
    assert await client.releases(Category.PRODUCT) == []
    with pytest.raises(VersionNotFound):
        await client.resolve_release_id(Category.PRODUCT, "12.2.1.3.0")


async def test_unauthorized(catalog: FakeCatalog, transport: AruTransport) -> None:
    """Test that rejected credentials raise Unauthorized."""
    catalog.password = "changed"
    client = ReleaseCatalogClient(transport)
    with pytest.raises(Unauthorized):
        await client.releases(Category.PRODUCT)


async def test_check_credentials(
    catalog: FakeCatalog, transport: AruTransport, credentials: Credentials
) -> None:
    """Test probing the credentials."""
    client = ReleaseCatalogClient(transport)
    assert await client.check_credentials(credentials)
    assert not await client.check_credentials(
        Credentials("user@example.com", "wrong")
    )
    assert not await client.check_credentials(Credentials("user@example.com", ""))
    assert len(catalog.paths("/Orion/Services/metadata")) == 2


async def test_check_credentials_transport_failure(credentials: Credentials) -> None:
    """Test that a network failure is not reported as bad credentials."""

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        transport = AruTransport(
            credentials, CatalogConfig(base_url=BASE_URL), client=client
        )
        catalog_client = ReleaseCatalogClient(transport)
        assert await catalog_client.check_credentials()
        with pytest.raises(CatalogUnavailable) as exc_info:
            await catalog_client.releases(Category.PRODUCT)
        assert not isinstance(exc_info.value, Unauthorized)


async def test_server_error(credentials: Credentials) -> None:
    """Test that a server error is reported as CatalogUnavailable."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        transport = AruTransport(
            credentials, CatalogConfig(base_url=BASE_URL), client=client
        )
        with pytest.raises(CatalogUnavailable, match="503"):
            await ReleaseCatalogClient(transport).releases(Category.PRODUCT)


async def test_invalid_xml(catalog: FakeCatalog, transport: AruTransport) -> None:
    """Test a response that is not an XML document."""
    catalog.releases = "<html><body>Maintenance"
    with pytest.raises(CatalogUnavailable, match="not valid XML"):
        await ReleaseCatalogClient(transport).releases(Category.PRODUCT)
