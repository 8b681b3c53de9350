"""Image-tool action for checking the support credentials."""

from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
import logging
import sys
from typing import cast

from image_tool.aru import AruTransport, Credentials, ReleaseCatalogClient
from image_tool.config import ToolConfig

from . import common

_LOGGER = logging.getLogger(__name__)


class CheckCredentialsAction:
    """Image-tool check-credentials action."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "check-credentials",
                help="Check that the catalog accepts the support credentials",
            ),
        )
        common.add_credentials_flags(args)
        common.add_proxy_flags(args)
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        config = ToolConfig.from_env()
        creds = Credentials.from_env(kwargs.get("user"), kwargs["password_env"])
        async with AruTransport(
            creds, config.catalog, common.proxy(**kwargs)
        ) as transport:
            valid = await ReleaseCatalogClient(transport).check_credentials(creds)
        if not valid:
            print("Credentials were rejected")
            sys.exit(1)
        print("Credentials are valid")
