"""Image-tool action for listing the releases of a product category."""

from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
import logging
from typing import cast

from tabulate import tabulate

from image_tool.aru import AruTransport, ReleaseCatalogClient
from image_tool.config import ToolConfig

from . import common

_LOGGER = logging.getLogger(__name__)


class ReleasesAction:
    """Image-tool releases action."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "releases",
                help="List the releases of a product category",
                description="Print the versions and release ids known to the catalog.",
            ),
        )
        common.add_catalog_flags(args)
        common.add_proxy_flags(args)
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        config = ToolConfig.from_env()
        creds = common.require(
            common.credentials(**kwargs), "--user is required to query the catalog"
        )
        async with AruTransport(
            creds, config.catalog, common.proxy(**kwargs)
        ) as transport:
            releases = await ReleaseCatalogClient(transport).releases(
                kwargs["category"]
            )
        print(
            tabulate(
                [
                    [release.name, release.release_id, release.description]
                    for release in releases
                ],
                headers=["VERSION", "RELEASE", "DESCRIPTION"],
            )
        )
