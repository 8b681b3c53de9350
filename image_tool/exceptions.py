"""Exceptions related to image-tool."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .aru.conflicts import ConflictReport

__all__ = [
    "ImageToolException",
    "InputException",
    "InvalidIdentity",
    "ResourceNotFound",
    "IncompatibleBaseImage",
    "VersionNotFound",
    "CatalogException",
    "CatalogUnavailable",
    "Unauthorized",
    "PatchMetadataMalformed",
    "ConflictDetected",
    "CommandException",
    "BuildEngineException",
    "ProbeException",
]


class ImageToolException(Exception):
    """Generic base exception used for this library."""


class InputException(ImageToolException):
    """Raised when the input files or values are not formatted as expected."""


class InvalidIdentity(InputException):
    """Raised when the user or group of a `user:group` pair is not a valid name."""

    def __init__(self, side: str, value: str) -> None:
        super().__init__(f"Invalid {side} name '{value}' for --chown")
        self.side = side
        self.value = value


class ResourceNotFound(InputException):
    """Raised when an additional build commands file or build file is missing."""

    def __init__(self, path: object) -> None:
        super().__init__(f"Unable to read file or directory: {path}")
        self.path = path


class IncompatibleBaseImage(InputException):
    """Raised when the base image already contains an installed product."""

    def __init__(self, image: str, home: str | None) -> None:
        super().__init__(
            f"Base image {image} already has a product installed at "
            f"{home or 'an unknown location'}, use a different base image"
        )
        self.image = image
        self.home = home


class VersionNotFound(InputException):
    """Raised when the catalog has no release for the requested version."""

    def __init__(self, version: str, category: object | None = None) -> None:
        message = f"No release found for version '{version}'"
        if category is not None:
            message += f" in category {category}"
        super().__init__(message)
        self.version = version


class CatalogException(ImageToolException):
    """Raised when there is a failure talking to the release catalog."""


class CatalogUnavailable(CatalogException):
    """Raised when a catalog request could not be completed."""


class Unauthorized(CatalogUnavailable):
    """Raised when the catalog rejects the supplied credentials."""


class PatchMetadataMalformed(CatalogException):
    """Raised when a patch record is missing fields needed to download it."""

    def __init__(self, bug: str, missing: list[str]) -> None:
        super().__init__(
            f"Patch record for {bug} is missing required fields: {', '.join(missing)}"
        )
        self.bug = bug
        self.missing = missing


class ConflictDetected(CatalogException):
    """Raised when the requested patches conflict with each other."""

    def __init__(self, report: "ConflictReport") -> None:
        super().__init__(
            f"Found {len(report.conflict_sets)} conflict set(s) between the requested patches"
        )
        self.report = report


class CommandException(ImageToolException):
    """Raised when there is a failure running a subcommand."""


class BuildEngineException(CommandException):
    """Raised when the container build engine fails."""


class ProbeException(CommandException):
    """Raised when the base image could not be inspected."""
