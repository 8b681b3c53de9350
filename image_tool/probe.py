"""Inspect a base image for software that is already installed."""

from abc import ABC, abstractmethod
import importlib.resources
import logging
from pathlib import Path

from . import command
from .exceptions import ProbeException

__all__ = [
    "ImageProbe",
    "DockerImageProbe",
    "parse_properties",
]

_LOGGER = logging.getLogger(__name__)

PROBE_SCRIPT = "probe-env.sh"
CONTAINER_DIR = "/tmp/imagetool"
_TIMEOUT = 60.0

# Keys reported by the probe script
WLS_VERSION = "WLS_VERSION"
ORACLE_HOME = "ORACLE_HOME"
JAVA_HOME = "JAVA_HOME"
PACKAGE_MANAGER = "PACKAGE_MANAGER"


def parse_properties(content: str) -> dict[str, str]:
    """Parse KEY=VALUE lines, ignoring blank lines and comments."""
    properties: dict[str, str] = {}
    for line in content.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        properties[key.strip()] = value.strip().strip('"')
    return properties


class ImageProbe(ABC):
    """Reports facts about a container image as key/value properties."""

    @abstractmethod
    async def probe(self, image: str, context_dir: Path) -> dict[str, str]:
        """Return the properties of the image."""


class DockerImageProbe(ImageProbe):
    """Runs the probe script inside a throwaway container of the image."""

    def __init__(self, engine: str = "docker") -> None:
        """Initialize DockerImageProbe."""
        self._engine = engine

    async def probe(self, image: str, context_dir: Path) -> dict[str, str]:
        """Return the properties of the image."""
        script = importlib.resources.files("image_tool.resources") / PROBE_SCRIPT
        (context_dir / PROBE_SCRIPT).write_text(script.read_text())
        cmd = command.Command(
            [
                self._engine,
                "run",
                "--rm",
                "-v",
                f"{context_dir}:{CONTAINER_DIR}",
                image,
                "/bin/sh",
                f"{CONTAINER_DIR}/{PROBE_SCRIPT}",
            ],
            exc=ProbeException,
            timeout=_TIMEOUT,
        )
        _LOGGER.info("Inspecting base image %s", image)
        properties = parse_properties(await command.run(cmd))
        _LOGGER.debug("Base image %s properties: %s", image, properties)
        return properties
