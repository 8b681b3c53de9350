"""Data model for the options of an image build.

A `BuildRequest` holds what the user asked for on the command line and a
`BuildSpecification` holds the fully resolved result produced by the
`BuildOptionAssembler`.
"""

from dataclasses import dataclass, field
import enum
import logging
from pathlib import Path
import re

from .aru.catalog import Category
from .aru.patches import LATEST, PatchMetadata
from .aru.transport import Credentials
from .exceptions import InvalidIdentity
from .proxy import ProxySettings

__all__ = [
    "PackageManager",
    "BuildRequest",
    "BuildSpecification",
    "validate_identity",
]

_LOGGER = logging.getLogger(__name__)

DEFAULT_CHOWN = "oracle:oracle"
DEFAULT_ENGINE = "docker"

# POSIX portable account name, optionally ending in `$` for machine accounts.
ACCOUNT_NAME_RE = re.compile(r"^[a-z_]([a-z0-9_-]{0,31}|[a-z0-9_-]{0,30}\$)$")


class PackageManager(str, enum.Enum):
    """Linux package manager used to install OS packages in the image."""

    OS_DEFAULT = "OS_DEFAULT"
    NONE = "NONE"
    YUM = "YUM"
    DNF = "DNF"
    MICRODNF = "MICRODNF"
    APT = "APT"
    ZYPPER = "ZYPPER"

    def __str__(self) -> str:
        return self.value


# The default base image is Oracle Linux 7-slim, which uses yum.
FALLBACK_PACKAGE_MANAGER = PackageManager.YUM


def validate_identity(chown: str) -> tuple[str, str]:
    """Split and validate a `user:group` pair."""
    parts = chown.split(":")
    if len(parts) != 2:
        raise InvalidIdentity("user:group", chown)
    user, group = parts
    if not ACCOUNT_NAME_RE.fullmatch(user):
        raise InvalidIdentity("user", user)
    if not ACCOUNT_NAME_RE.fullmatch(group):
        raise InvalidIdentity("group", group)
    return user, group


@dataclass(kw_only=True)
class BuildRequest:
    """The options a user selected for a build."""

    tag: str
    from_image: str | None = None
    http_proxy: str | None = None
    https_proxy: str | None = None
    no_proxy: str | None = None
    chown: str = DEFAULT_CHOWN
    additional_build_commands: Path | None = None
    additional_build_files: list[Path] = field(default_factory=list)
    package_manager: PackageManager = PackageManager.OS_DEFAULT
    engine_path: str = DEFAULT_ENGINE
    network: str | None = None
    pull: bool = False
    skip_cleanup: bool = False
    dry_run: bool = False

    category: Category = Category.PRODUCT
    version: str | None = None
    patches: list[str] = field(default_factory=list)
    latest_psu: bool = False
    credentials: Credentials | None = None

    @property
    def requested_patches(self) -> list[str]:
        """Return the bug numbers to resolve, with LATEST for the latest PSU."""
        bugs = [LATEST] if self.latest_psu else []
        return bugs + [bug for bug in self.patches if bug not in bugs]


@dataclass(kw_only=True)
class BuildSpecification:
    """The fully resolved options handed to the build command builder."""

    build_id: str
    tag: str
    context_dir: Path
    base_image: str | None = None
    package_manager: PackageManager = FALLBACK_PACKAGE_MANAGER
    install_java: bool = True
    java_home: str | None = None
    proxy: ProxySettings = field(default_factory=ProxySettings)
    user_id: str = "oracle"
    group_id: str = "oracle"
    additional_build_commands: list[str] = field(default_factory=list)
    additional_files: list[tuple[Path, Path]] = field(default_factory=list)
    patches: list[PatchMetadata] = field(default_factory=list)
    patch_files: list[Path] = field(default_factory=list)
    engine_path: str = DEFAULT_ENGINE
    network: str | None = None
    pull: bool = False
    skip_cleanup: bool = False
    dry_run: bool = False
    warnings: list[str] = field(default_factory=list)

    @property
    def files_dir(self) -> Path:
        """Staging folder for additional build files inside the build context."""
        return self.context_dir / "files"

    @property
    def patches_dir(self) -> Path:
        """Staging folder for patch archives inside the build context."""
        return self.context_dir / "patches"
