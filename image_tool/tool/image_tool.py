"""Command line tool for building container images with patches applied."""

import argparse
import asyncio
import logging
import sys
import traceback

from image_tool.exceptions import ImageToolException
from . import build, check_credentials, patches, releases

_LOGGER = logging.getLogger(__name__)


def _make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Command line utility for building patched container images.",
    )
    parser.add_argument(
        "--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    )

    subparsers = parser.add_subparsers(dest="command", help="Command", required=True)

    build.BuildAction.register(subparsers)
    releases.ReleasesAction.register(subparsers)
    patches.PatchesAction.register(subparsers)
    check_credentials.CheckCredentialsAction.register(subparsers)
    return parser


def main() -> None:
    """Image-tool command line tool main entry point."""
    parser = _make_parser()
    args = parser.parse_args()

    if args.log_level:
        logging.basicConfig(level=args.log_level)

    action = args.cls()
    try:
        asyncio.run(action.run(**vars(args)))
    except ImageToolException as err:
        if args.log_level == "DEBUG":
            traceback.print_exc(file=sys.stderr)
        print(f"image-tool error: {err}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
