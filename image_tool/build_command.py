"""Project a build specification onto a container build engine invocation."""

from dataclasses import dataclass, field
import logging
import os
from pathlib import Path

from .command import Command
from .exceptions import BuildEngineException
from .options import DEFAULT_ENGINE, BuildSpecification

__all__ = [
    "BuildCommand",
    "BuildCommandBuilder",
]

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class BuildCommand:
    """A `docker build` invocation."""

    tag: str
    context: Path
    build_args: dict[str, str] = field(default_factory=dict)
    """Build arguments in the order they are passed to the engine."""

    network: str | None = None
    pull: bool = False
    force_rm: bool = True
    engine: str = DEFAULT_ENGINE

    @property
    def args(self) -> list[str]:
        """Return the full command line."""
        args = [self.engine, "build"]
        if self.force_rm:
            args.append("--force-rm")
        args.extend(["--tag", self.tag])
        if self.network:
            args.extend(["--network", self.network])
        if self.pull:
            args.append("--pull")
        for key, value in self.build_args.items():
            args.extend(["--build-arg", f"{key}={value}"])
        args.append(str(self.context))
        return args

    def command(self) -> Command:
        """Return the command that runs the build."""
        return Command(self.args, exc=BuildEngineException)

    def __str__(self) -> str:
        return self.command().string


def _is_executable(path: str) -> bool:
    return os.path.isfile(path) and os.access(path, os.X_OK)


class BuildCommandBuilder:
    """Builds the engine invocation for a build specification."""

    def build(self, spec: BuildSpecification) -> BuildCommand:
        """Return the build command for a specification."""
        engine = DEFAULT_ENGINE
        if spec.engine_path and _is_executable(spec.engine_path):
            engine = os.path.abspath(spec.engine_path)
        elif spec.engine_path != DEFAULT_ENGINE:
            _LOGGER.debug(
                "Build engine %s is not an executable file, using %s",
                spec.engine_path,
                DEFAULT_ENGINE,
            )
        return BuildCommand(
            tag=spec.tag,
            context=spec.context_dir,
            build_args=spec.proxy.build_args(),
            network=spec.network,
            pull=spec.pull,
            force_rm=not spec.skip_cleanup,
            engine=engine,
        )
