"""HTTP transport for the release catalog.

All catalog requests use HTTP basic authentication. Failures are reported as
`Unauthorized` when the server rejects the credentials and as
`CatalogUnavailable` for every other network or protocol error, so callers
never need to inspect the underlying httpx exception.
"""

from dataclasses import dataclass, field
import logging
import os
from pathlib import Path
from types import TracebackType
from xml.etree import ElementTree

import aiofiles
import httpx

from image_tool.config import CatalogConfig
from image_tool.exceptions import CatalogUnavailable, Unauthorized
from image_tool.proxy import ProxySettings

__all__ = [
    "AruTransport",
    "Credentials",
    "proxy_mounts",
]

_LOGGER = logging.getLogger(__name__)

_CHUNK_SIZE = 64 * 1024

DEFAULT_PASSWORD_ENV = "ORACLE_SUPPORT_PASSWORD"


@dataclass(frozen=True)
class Credentials:
    """Support account used to query the catalog and download patches."""

    username: str
    password: str = field(repr=False)

    @classmethod
    def from_env(
        cls, username: str | None, password_env: str = DEFAULT_PASSWORD_ENV
    ) -> "Credentials | None":
        """Return credentials with the password read from an environment variable."""
        if not username:
            return None
        return cls(username=username, password=os.environ.get(password_env, ""))


def proxy_mounts(proxy: ProxySettings) -> dict[str, httpx.AsyncBaseTransport | None]:
    """Return httpx transport mounts that route requests through the proxies."""
    mounts: dict[str, httpx.AsyncBaseTransport | None] = {}
    if proxy.http:
        mounts["http://"] = httpx.AsyncHTTPTransport(proxy=proxy.http)
    if proxy.https:
        mounts["https://"] = httpx.AsyncHTTPTransport(proxy=proxy.https)
    if mounts:
        for host in proxy.no_proxy_hosts:
            if host == "*":
                return {}
            # A None mount falls back to the direct transport
            pattern = f"*{host}" if host.startswith(".") else host
            mounts[f"all://{pattern}"] = None
    return mounts


class AruTransport:
    """Authenticated client for the catalog endpoints.

    The transport is an async context manager owning an `httpx.AsyncClient`;
    a client may be passed in instead, in which case the caller owns it.
    """

    def __init__(
        self,
        credentials: Credentials | None,
        config: CatalogConfig | None = None,
        proxy: ProxySettings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize AruTransport."""
        self._config = config or CatalogConfig()
        self._credentials = credentials
        self._owns_client = client is None
        if client is None:
            client = httpx.AsyncClient(
                timeout=self._config.timeout,
                follow_redirects=True,
                mounts=proxy_mounts(proxy) if proxy else None,
                trust_env=proxy is None,
            )
        self._client = client

    @property
    def base_url(self) -> str:
        """Return the root url of the catalog."""
        return self._config.base_url

    @property
    def credentials(self) -> Credentials | None:
        """Return the credentials used for requests."""
        return self._credentials

    def url(self, path: str) -> str:
        """Return the absolute url for a catalog path."""
        return f"{self._config.base_url}{path}"

    async def __aenter__(self) -> "AruTransport":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._owns_client:
            await self._client.aclose()

    def _auth(self, credentials: Credentials | None = None) -> httpx.BasicAuth | None:
        credentials = credentials or self._credentials
        if not credentials:
            return None
        return httpx.BasicAuth(credentials.username, credentials.password)

    def _check(self, response: httpx.Response) -> None:
        if response.status_code == httpx.codes.UNAUTHORIZED:
            raise Unauthorized(f"Catalog rejected the credentials for {response.url}")
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as err:
            raise CatalogUnavailable(
                f"Catalog request {response.url} failed: {response.status_code}"
            ) from err

    def _parse(self, response: httpx.Response) -> ElementTree.Element:
        try:
            return ElementTree.fromstring(response.content)
        except ElementTree.ParseError as err:
            raise CatalogUnavailable(
                f"Catalog response from {response.url} is not valid XML: {err}"
            ) from err

    async def get_xml(
        self,
        path: str,
        params: dict[str, str] | None = None,
        credentials: Credentials | None = None,
    ) -> ElementTree.Element:
        """Fetch a catalog document and return its root element."""
        url = self.url(path)
        _LOGGER.debug("GET %s %s", url, params or "")
        try:
            response = await self._client.get(
                url, params=params, auth=self._auth(credentials)
            )
        except httpx.HTTPError as err:
            raise CatalogUnavailable(f"Catalog request {url} failed: {err}") from err
        self._check(response)
        return self._parse(response)

    async def post_xml(self, path: str, payload: str) -> ElementTree.Element:
        """Post an XML payload and return the root element of the response."""
        url = self.url(path)
        _LOGGER.debug("POST %s", url)
        try:
            response = await self._client.post(
                url,
                content=payload.encode("utf-8"),
                headers={"Content-Type": "application/xml"},
                auth=self._auth(),
            )
        except httpx.HTTPError as err:
            raise CatalogUnavailable(f"Catalog request {url} failed: {err}") from err
        self._check(response)
        return self._parse(response)

    async def download(self, url: str, target: Path) -> Path:
        """Download a file to the target path.

        The content is written to a temporary file next to the target and
        renamed when complete, so an interrupted download never leaves a
        partial file at the target path.
        """
        _LOGGER.info("Downloading %s to %s", url, target)
        target.parent.mkdir(parents=True, exist_ok=True)
        partial = target.with_name(f".{target.name}.part")
        try:
            async with self._client.stream("GET", url, auth=self._auth()) as response:
                self._check(response)
                async with aiofiles.open(partial, mode="wb") as out:
                    async for chunk in response.aiter_bytes(_CHUNK_SIZE):
                        await out.write(chunk)
        except httpx.HTTPError as err:
            partial.unlink(missing_ok=True)
            raise CatalogUnavailable(f"Download of {url} failed: {err}") from err
        except CatalogUnavailable:
            partial.unlink(missing_ok=True)
            raise
        os.replace(partial, target)
        return target
