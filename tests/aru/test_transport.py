"""Tests for the catalog transport."""

from pathlib import Path

import httpx
import pytest

from image_tool.aru import AruTransport, Credentials
from image_tool.aru.transport import proxy_mounts
from image_tool.exceptions import CatalogUnavailable, Unauthorized
from image_tool.proxy import ProxySettings

from ..fakes import DOWNLOAD_HOST, FakeCatalog


def test_proxy_mounts_none() -> None:
    """Test no mounts are created without proxies."""
    assert proxy_mounts(ProxySettings()) == {}


def test_proxy_mounts() -> None:
    """Test proxies are mounted per scheme with no_proxy hosts bypassed."""
    mounts = proxy_mounts(
        ProxySettings(
            http="http://proxy:80",
            https="http://proxy:443",
            no_proxy="localhost, .example.com",
        )
    )
    assert isinstance(mounts["http://"], httpx.AsyncHTTPTransport)
    assert isinstance(mounts["https://"], httpx.AsyncHTTPTransport)
    assert mounts["all://localhost"] is None
    assert mounts["all://*.example.com"] is None


def test_proxy_mounts_wildcard() -> None:
    """Test a wildcard no_proxy disables the proxies."""
    assert proxy_mounts(ProxySettings(http="http://proxy:80", no_proxy="*")) == {}


def test_credentials_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test reading the password from the environment."""
    monkeypatch.setenv("MY_PASSWORD", "hunter2")
    assert Credentials.from_env("me@example.com", "MY_PASSWORD") == Credentials(
        "me@example.com", "hunter2"
    )
    assert Credentials.from_env(None, "MY_PASSWORD") is None
    assert "hunter2" not in repr(Credentials("me@example.com", "hunter2"))


async def test_download(
    catalog: FakeCatalog, transport: AruTransport, tmp_path: Path
) -> None:
    """Test downloading a file to the target path."""
    catalog.files["p1.zip"] = b"x" * 100_000
    target = tmp_path / "downloads" / "p1.zip"

    result = await transport.download(
        f"{DOWNLOAD_HOST}/Orion/Download/process_form?patch_file=p1.zip", target
    )

    assert result == target
    assert target.read_bytes() == b"x" * 100_000
    assert list(target.parent.iterdir()) == [target]


async def test_download_failure(transport: AruTransport, tmp_path: Path) -> None:
    """Test a failed download does not leave a partial file."""
    target = tmp_path / "p1.zip"
    with pytest.raises(CatalogUnavailable):
        await transport.download(
            f"{DOWNLOAD_HOST}/Orion/Download/process_form?patch_file=p1.zip", target
        )
    assert list(tmp_path.iterdir()) == []


async def test_download_unauthorized(
    catalog: FakeCatalog, transport: AruTransport, tmp_path: Path
) -> None:
    """Test a rejected download is reported as unauthorized."""
    catalog.password = "other"
    with pytest.raises(Unauthorized):
        await transport.download(
            f"{DOWNLOAD_HOST}/Orion/Download/process_form?patch_file=p1.zip",
            tmp_path / "p1.zip",
        )


async def test_network_error(tmp_path: Path) -> None:
    """Test connection errors are reported as an unavailable catalog."""

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        transport = AruTransport(None, client=client)
        with pytest.raises(CatalogUnavailable, match="connection refused"):
            await transport.get_xml("/Orion/Services/metadata")
        with pytest.raises(CatalogUnavailable):
            await transport.post_xml("/Orion/Services/conflict_checks", "<a/>")


async def test_owned_client_closed() -> None:
    """Test the transport closes the client it created."""
    async with AruTransport(None) as transport:
        assert transport.base_url == "https://updates.oracle.com"
        assert transport.url("/x") == "https://updates.oracle.com/x"
    assert transport._client.is_closed  # pylint: disable=protected-access
