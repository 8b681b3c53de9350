"""Image-tool build action."""

from argparse import (
    ArgumentParser,
    _SubParsersAction as SubParsersAction,
    BooleanOptionalAction,
)
import logging
import pathlib
from typing import cast

import aiofiles

from image_tool import command, dockerfile
from image_tool.assembler import BuildOptionAssembler
from image_tool.build_command import BuildCommandBuilder
from image_tool.config import ToolConfig
from image_tool.exceptions import ConflictDetected
from image_tool.options import (
    DEFAULT_CHOWN,
    DEFAULT_ENGINE,
    BuildRequest,
    PackageManager,
)
from image_tool.probe import DockerImageProbe

from . import common

_LOGGER = logging.getLogger(__name__)

BEGIN_DOCKERFILE = "########## BEGIN DOCKERFILE ##########"
END_DOCKERFILE = "########## END DOCKERFILE ##########"


class BuildAction:
    """Image-tool build action."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "build",
                help="Build a container image with the requested patches",
                description="""Assembles the build options, resolves and downloads
                    the requested patches, then runs the container build.""",
            ),
        )
        args.add_argument(
            "--tag",
            type=str,
            required=True,
            help="Tag for the final build image e.g. store/oracle/weblogic:12.2.1.3.0",
        )
        args.add_argument(
            "--from-image",
            type=str,
            default=None,
            help="Container image to use as the base image",
        )
        args.add_argument(
            "--docker",
            dest="engine_path",
            type=str,
            default=DEFAULT_ENGINE,
            help="Path to the docker executable",
        )
        args.add_argument(
            "--docker-log",
            type=pathlib.Path,
            default=None,
            help="File to write the output of the docker build to",
        )
        args.add_argument(
            "--skip-cleanup",
            default=False,
            action=BooleanOptionalAction,
            help="Keep the build context folder, intermediate images and failed build containers",
        )
        args.add_argument(
            "--chown",
            type=str,
            default=DEFAULT_CHOWN,
            help="userid:groupid for the installs and patches",
        )
        args.add_argument(
            "--additional-build-commands",
            type=pathlib.Path,
            default=None,
            help="Path to a file with additional build commands",
        )
        args.add_argument(
            "--additional-build-files",
            type=lambda x: [pathlib.Path(p) for p in common.comma_list(x)],
            default=[],
            help="Comma separated list of files to copy to the build context folder",
        )
        args.add_argument(
            "--dry-run",
            default=False,
            action=BooleanOptionalAction,
            help="Skip the docker build and print the Dockerfile to stdout",
        )
        args.add_argument(
            "--build-network",
            type=str,
            default=None,
            help="Networking mode for the RUN instructions during the build",
        )
        args.add_argument(
            "--pull",
            default=False,
            action=BooleanOptionalAction,
            help="Always attempt to pull a newer version of the base image",
        )
        args.add_argument(
            "--package-manager",
            type=lambda x: PackageManager(x.upper()),
            choices=list(PackageManager),
            default=PackageManager.OS_DEFAULT,
            help="Linux package manager used to install OS packages",
        )
        common.add_proxy_flags(args)
        common.add_catalog_flags(args)
        common.add_patch_flags(args)
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        tag: str,
        from_image: str | None,
        engine_path: str,
        docker_log: pathlib.Path | None,
        skip_cleanup: bool,
        chown: str,
        additional_build_commands: pathlib.Path | None,
        additional_build_files: list[pathlib.Path],
        dry_run: bool,
        build_network: str | None,
        pull: bool,
        package_manager: PackageManager,
        patches: list[str],
        latest_psu: bool,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        config = ToolConfig.from_env()
        request = BuildRequest(
            tag=tag,
            from_image=from_image,
            http_proxy=kwargs.get("http_proxy_url"),
            https_proxy=kwargs.get("https_proxy_url"),
            no_proxy=kwargs.get("no_proxy"),
            chown=chown,
            additional_build_commands=additional_build_commands,
            additional_build_files=additional_build_files,
            package_manager=package_manager,
            engine_path=engine_path,
            network=build_network,
            pull=pull,
            skip_cleanup=skip_cleanup,
            dry_run=dry_run,
            category=kwargs["category"],
            version=kwargs["version"],
            patches=patches,
            latest_psu=latest_psu,
            credentials=(
                common.credentials(**kwargs) if patches or latest_psu else None
            ),
        )

        async with common.patch_service_factory(
            config, request.credentials
        ) as factory:
            assembler = BuildOptionAssembler(
                request,
                build_dir=config.build_dir,
                probe=DockerImageProbe(engine_path),
                patch_service=factory,
            )
            try:
                try:
                    spec = await assembler.assemble()
                except ConflictDetected as err:
                    print(err.report.format())
                    raise

                for warning in spec.warnings:
                    _LOGGER.warning("%s", warning)
                content = dockerfile.render(spec)
                build = BuildCommandBuilder().build(spec)
                _LOGGER.info("docker cmd = %s", build)

                if spec.dry_run:
                    print(BEGIN_DOCKERFILE)
                    print(content)
                    print(END_DOCKERFILE)
                    return

                async with aiofiles.open(
                    spec.context_dir / "Dockerfile", mode="w"
                ) as dockerfile_fd:
                    await dockerfile_fd.write(content)
                out = await command.run(build.command())
                if docker_log:
                    async with aiofiles.open(docker_log, mode="w") as log_fd:
                        await log_fd.write(out)
                print(f"Build of {spec.tag} completed")
            finally:
                assembler.cleanup()
