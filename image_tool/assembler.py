"""Assemble a build specification from user options and the base image.

The assembler moves through a fixed sequence of states, each one a single
step that either completes or aborts the whole assembly:

    INIT -> PROXY_RESOLVED -> BASE_IMAGE_INTROSPECTED -> PATCHES_RESOLVED
         -> VALIDATED -> ASSEMBLED

Everything that only needs the local disk (proxy settings, the `user:group`
pair, additional build commands and files) is checked in the first step, so
invalid input fails before the base image is probed or the catalog is
contacted. The specification is only returned once the final state is
reached.
"""

from collections.abc import Callable
import enum
import logging
import os
from pathlib import Path
import shutil
import tempfile
import uuid

import aiofiles
from slugify import slugify

from .aru.service import PatchService, ResolvedPatches
from .context import BuildTrace, build_trace, step_trace
from .exceptions import (
    ConflictDetected,
    IncompatibleBaseImage,
    InputException,
    ResourceNotFound,
)
from .options import (
    FALLBACK_PACKAGE_MANAGER,
    BuildRequest,
    BuildSpecification,
    PackageManager,
    validate_identity,
)
from .probe import JAVA_HOME, ORACLE_HOME, PACKAGE_MANAGER, WLS_VERSION, ImageProbe
from .proxy import ProxySettings, resolve_first

__all__ = [
    "AssemblyState",
    "BuildOptionAssembler",
]

_LOGGER = logging.getLogger(__name__)

PatchServiceFactory = Callable[[ProxySettings], PatchService]


class AssemblyState(enum.Enum):
    """Progress of a build specification assembly."""

    INIT = "init"
    PROXY_RESOLVED = "proxy_resolved"
    BASE_IMAGE_INTROSPECTED = "base_image_introspected"
    PATCHES_RESOLVED = "patches_resolved"
    VALIDATED = "validated"
    ASSEMBLED = "assembled"


def _package_manager(value: str | None) -> PackageManager | None:
    """Return the package manager reported by a probe, None when unknown."""
    if not value:
        return None
    try:
        package_manager = PackageManager(value.upper())
    except ValueError as err:
        raise InputException(f"Unsupported package manager '{value}'") from err
    if package_manager == PackageManager.OS_DEFAULT:
        return None
    return package_manager


class BuildOptionAssembler:
    """Turns a BuildRequest into a BuildSpecification."""

    def __init__(
        self,
        request: BuildRequest,
        *,
        build_dir: Path,
        probe: ImageProbe | None = None,
        patch_service: PatchServiceFactory | None = None,
        env: dict[str, str] | None = None,
    ) -> None:
        """Initialize BuildOptionAssembler.

        The probe is required when the request names a base image and the
        patch service factory is required when the request names patches.
        The factory is called with the resolved proxy settings.
        """
        self._request = request
        self._build_dir = build_dir
        self._probe = probe
        self._patch_service_factory = patch_service
        self._env = env
        self._state = AssemblyState.INIT
        self._context_dir: Path | None = None
        self._spec: BuildSpecification | None = None
        self._service: PatchService | None = None
        self._trace: BuildTrace | None = None

    @property
    def state(self) -> AssemblyState:
        """Return the last state reached."""
        return self._state

    @property
    def steps(self) -> list[str]:
        """Return the names of the completed steps, in order."""
        if self._trace is None:
            return []
        return [name for name, _ in self._trace.steps]

    @property
    def context_dir(self) -> Path | None:
        """Return the working directory of the build, once created."""
        return self._context_dir

    def cleanup(self) -> None:
        """Remove the working directory unless cleanup was skipped."""
        if self._context_dir is None or self._request.skip_cleanup:
            return
        _LOGGER.debug("Removing build context %s", self._context_dir)
        shutil.rmtree(self._context_dir, ignore_errors=True)

    async def assemble(self) -> BuildSpecification:
        """Run every assembly step and return the resulting specification."""
        if self._state != AssemblyState.INIT:
            raise InputException("Build options have already been assembled")
        with build_trace(f"Assemble {self._request.tag}") as self._trace:
            await self._step(AssemblyState.PROXY_RESOLVED, self._init)
            await self._step(AssemblyState.BASE_IMAGE_INTROSPECTED, self._introspect)
            resolved = await self._step(
                AssemblyState.PATCHES_RESOLVED, self._resolve_patches
            )
            await self._step(AssemblyState.VALIDATED, self._validate, resolved)
            await self._step(AssemblyState.ASSEMBLED, self._materialize, resolved)
        assert self._spec is not None
        return self._spec

    async def _step(self, state: AssemblyState, func, *args):  # type: ignore[no-untyped-def]
        with step_trace(state.value):
            result = await func(*args)
        self._state = state
        return result

    @property
    def _draft(self) -> BuildSpecification:
        assert self._spec is not None
        return self._spec

    def _warn(self, message: str, *args: object) -> None:
        _LOGGER.warning(message, *args)
        self._draft.warnings.append(message % args)

    async def _init(self) -> None:
        request = self._request
        proxy = ProxySettings.resolve(
            request.http_proxy, request.https_proxy, request.no_proxy, env=self._env
        )
        user, group = validate_identity(request.chown)
        commands = await self._load_build_commands(request.additional_build_commands)
        for path in request.additional_build_files:
            if not path.exists() or not os.access(path, os.R_OK):
                raise ResourceNotFound(path)

        build_id = str(uuid.uuid4())
        self._build_dir.mkdir(parents=True, exist_ok=True)
        self._context_dir = Path(
            tempfile.mkdtemp(
                prefix=f"imagetool-{slugify(request.tag, max_length=40)}-",
                dir=self._build_dir,
            )
        )
        _LOGGER.info("Build %s using context %s", build_id, self._context_dir)
        self._spec = BuildSpecification(
            build_id=build_id,
            tag=request.tag,
            context_dir=self._context_dir,
            proxy=proxy,
            user_id=user,
            group_id=group,
            additional_build_commands=commands,
            engine_path=request.engine_path,
            network=request.network,
            pull=request.pull,
            skip_cleanup=request.skip_cleanup,
            dry_run=request.dry_run,
        )
        self._stage_files(request.additional_build_files)

    async def _load_build_commands(self, path: Path | None) -> list[str]:
        if path is None:
            return []
        if not path.is_file():
            raise ResourceNotFound(path)
        async with aiofiles.open(path) as commands_file:
            content = await commands_file.read()
        return content.splitlines()

    def _stage_files(self, paths: list[Path]) -> None:
        if not paths:
            return
        files_dir = self._draft.files_dir
        files_dir.mkdir()
        for path in paths:
            target = files_dir / path.name
            _LOGGER.info("Copying %s to the build context", path)
            if path.is_dir():
                shutil.copytree(path, target)
            else:
                shutil.copy2(path, target)
            self._draft.additional_files.append((path, target))

    async def _introspect(self) -> None:
        spec = self._draft
        requested = self._request.package_manager
        override = requested if requested != PackageManager.OS_DEFAULT else None
        detected: PackageManager | None = None

        if base_image := self._request.from_image:
            if self._probe is None:
                raise InputException(f"No probe available to inspect {base_image}")
            spec.base_image = base_image
            properties = await self._probe.probe(base_image, spec.context_dir)
            if properties.get(WLS_VERSION):
                raise IncompatibleBaseImage(base_image, properties.get(ORACLE_HOME))
            if java_home := properties.get(JAVA_HOME):
                _LOGGER.info("Using existing JAVA_HOME %s from base image", java_home)
                spec.install_java = False
                spec.java_home = java_home
            detected = (
                _package_manager(properties.get(PACKAGE_MANAGER))
                or FALLBACK_PACKAGE_MANAGER
            )
            _LOGGER.debug("Base image package manager %s", detected)
            if override and override != detected:
                self._warn(
                    "Base image uses package manager %s, overridden with %s",
                    detected,
                    override,
                )

        package_manager = resolve_first(override, detected, FALLBACK_PACKAGE_MANAGER)
        assert package_manager is not None
        spec.package_manager = package_manager

    async def _resolve_patches(self) -> ResolvedPatches | None:
        request = self._request
        if not (bugs := request.requested_patches):
            return None
        if not request.version:
            raise InputException("A product version is required to resolve patches")
        if request.credentials is None:
            raise InputException("Support credentials are required to download patches")
        if self._patch_service_factory is None:
            raise InputException("No catalog available to resolve patches")
        self._service = self._patch_service_factory(self._draft.proxy)
        resolved = await self._service.resolve(request.category, request.version, bugs)
        self._draft.patches = list(resolved.patches)
        return resolved

    async def _validate(self, resolved: ResolvedPatches | None) -> None:
        if resolved is None:
            return
        assert self._service is not None
        report = await self._service.check_conflicts(resolved)
        if report.has_conflicts:
            raise ConflictDetected(report)

    async def _materialize(self, resolved: ResolvedPatches | None) -> None:
        if resolved is None:
            return
        assert self._service is not None
        spec = self._draft
        paths = await self._service.download_all(resolved.patches)
        spec.patches_dir.mkdir(exist_ok=True)
        for path in paths:
            target = spec.patches_dir / path.name
            shutil.copy2(path, target)
            spec.patch_files.append(target)
