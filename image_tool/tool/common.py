"""Flags and helpers shared by the image-tool commands."""

from argparse import ArgumentParser
from collections.abc import AsyncGenerator, Callable
from contextlib import AsyncExitStack, asynccontextmanager
import logging
import os
from typing import Any

from image_tool.aru import AruTransport, Category, Credentials, PatchService
from image_tool.aru.transport import DEFAULT_PASSWORD_ENV
from image_tool.cache import DownloadCache
from image_tool.config import ToolConfig
from image_tool.exceptions import InputException
from image_tool.proxy import ProxySettings

_LOGGER = logging.getLogger(__name__)

DEFAULT_VERSION = "12.2.1.3.0"


def comma_list(value: str) -> list[str]:
    """Split a comma separated flag value."""
    return [item.strip() for item in value.split(",") if item.strip()]


def add_credentials_flags(args: ArgumentParser) -> None:
    """Add flags for the support account."""
    args.add_argument(
        "--user",
        type=str,
        default=None,
        help="Oracle support email id used to query the catalog and download patches",
    )
    args.add_argument(
        "--password-env",
        type=str,
        default=DEFAULT_PASSWORD_ENV,
        help="Name of the environment variable holding the support password",
    )


def add_catalog_flags(args: ArgumentParser) -> None:
    """Add flags selecting a product release in the catalog."""
    args.add_argument(
        "--category",
        type=Category,
        choices=list(Category),
        default=Category.PRODUCT,
        help="Product category of the release",
    )
    args.add_argument(
        "--version",
        type=str,
        default=DEFAULT_VERSION,
        help="Product version e.g. 12.2.1.3.0",
    )
    add_credentials_flags(args)


def add_patch_flags(args: ArgumentParser) -> None:
    """Add flags selecting the patches to apply."""
    args.add_argument(
        "--patches",
        type=comma_list,
        default=[],
        help="Comma separated list of bug numbers to apply",
    )
    args.add_argument(
        "--latest-psu",
        default=False,
        action="store_true",
        help="Apply the latest patch set update of the version",
    )


def add_proxy_flags(args: ArgumentParser) -> None:
    """Add proxy flags, defaulting to the proxy environment variables."""
    args.add_argument(
        "--http-proxy-url",
        type=str,
        default=None,
        help="Proxy for the http protocol e.g. http://myproxy:80",
    )
    args.add_argument(
        "--https-proxy-url",
        type=str,
        default=None,
        help="Proxy for the https protocol e.g. http://myproxy:80",
    )
    args.add_argument(
        "--no-proxy",
        type=str,
        default=None,
        help="Comma separated list of hosts that bypass the proxy",
    )


def credentials(  # type: ignore[no-untyped-def]
    user: str | None, password_env: str, **kwargs
) -> Credentials | None:
    """Create credentials from the flags."""
    creds = Credentials.from_env(user, password_env)
    if creds is not None and not creds.password:
        raise InputException(
            f"Environment variable {password_env} must hold the password for {user}"
        )
    return creds


def proxy(  # type: ignore[no-untyped-def]
    http_proxy_url: str | None = None,
    https_proxy_url: str | None = None,
    no_proxy: str | None = None,
    **kwargs,
) -> ProxySettings:
    """Resolve proxy settings from the flags and environment."""
    return ProxySettings.resolve(http_proxy_url, https_proxy_url, no_proxy, os.environ)


@asynccontextmanager
async def patch_service_factory(
    config: ToolConfig, creds: Credentials | None
) -> AsyncGenerator[Callable[[ProxySettings], PatchService], None]:
    """Yield a factory for patch services, closing their transports on exit."""
    cache = await DownloadCache.load(config.cache_dir)
    async with AsyncExitStack() as stack:

        def factory(proxy_settings: ProxySettings) -> PatchService:
            transport = AruTransport(creds, config.catalog, proxy_settings)
            stack.push_async_callback(transport.aclose)
            return PatchService(transport, cache)

        yield factory


def require(value: Any, message: str) -> Any:
    """Raise an InputException when a required value is missing."""
    if not value:
        raise InputException(message)
    return value
