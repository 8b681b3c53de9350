"""Image-tool action for downloading patches into the cache."""

from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
import logging
from typing import cast

from tabulate import tabulate

from image_tool.aru import LATEST, Category, Credentials
from image_tool.config import ToolConfig
from image_tool.exceptions import ConflictDetected

from . import common

_LOGGER = logging.getLogger(__name__)


class PatchesAction:
    """Image-tool patches action."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "patches",
                help="Download patches into the cache without building an image",
                description="""Locate the requested patches in the catalog, check
                    them for conflicts and download them into the cache.""",
            ),
        )
        common.add_catalog_flags(args)
        common.add_patch_flags(args)
        common.add_proxy_flags(args)
        args.add_argument(
            "--list",
            dest="list_updates",
            default=False,
            action="store_true",
            help="List the patch set updates of the version instead of downloading",
        )
        args.add_argument(
            "--skip-conflict-check",
            default=False,
            action="store_true",
            help="Download the patches even if they conflict with each other",
        )
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        category: Category,
        version: str,
        patches: list[str],
        latest_psu: bool,
        skip_conflict_check: bool,
        list_updates: bool,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        config = ToolConfig.from_env()
        creds = common.require(
            common.credentials(**kwargs), "--user is required to download patches"
        )
        if list_updates:
            await self._list(config, creds, category, version, **kwargs)
            return
        bugs = ([LATEST] if latest_psu else []) + patches
        common.require(bugs, "Specify --patches, --latest-psu or --list")
        async with common.patch_service_factory(config, creds) as factory:
            service = factory(common.proxy(**kwargs))
            resolved = await service.resolve(category, version, bugs)
            if not skip_conflict_check:
                report = await service.check_conflicts(resolved)
                if report.has_conflicts:
                    print(report.format())
                    raise ConflictDetected(report)
            paths = await service.download_all(resolved.patches)
        print(
            tabulate(
                [
                    [patch.bug, patch.bug_name, patch.release_id, str(path)]
                    for patch, path in zip(resolved.patches, paths)
                ],
                headers=["BUG", "NAME", "RELEASE", "FILE"],
            )
        )

    async def _list(  # type: ignore[no-untyped-def]
        self,
        config: ToolConfig,
        creds: Credentials,
        category: Category,
        version: str,
        **kwargs,
    ) -> None:
        async with common.patch_service_factory(config, creds) as factory:
            service = factory(common.proxy(**kwargs))
            updates = await service.patch_set_updates(category, version)
        print(
            tabulate(
                [
                    [patch.bug_name, patch.release_id, patch.file_name]
                    for patch in updates
                ],
                headers=["NAME", "RELEASE", "FILE"],
            )
        )
