"""Configuration objects for image-tool."""

from dataclasses import dataclass, field
import os
from pathlib import Path
import tempfile

CACHE_DIR_ENV = "IMAGE_TOOL_CACHE_DIR"
BUILD_DIR_ENV = "IMAGE_TOOL_BUILD_DIR"
ARU_URL_ENV = "IMAGE_TOOL_ARU_URL"

DEFAULT_ARU_URL = "https://updates.oracle.com"
DEFAULT_CACHE_DIR = Path.home() / ".cache" / "image-tool"


@dataclass
class CatalogConfig:
    """Configuration for talking to the release catalog."""

    base_url: str = DEFAULT_ARU_URL
    timeout: float = 60.0


@dataclass
class ToolConfig:
    """Configuration for where image-tool keeps its files."""

    cache_dir: Path = DEFAULT_CACHE_DIR
    """Directory holding downloaded patches and the cache index."""

    build_dir: Path = field(default_factory=lambda: Path(tempfile.gettempdir()))
    """Parent directory of the per-build working directories."""

    catalog: CatalogConfig = field(default_factory=CatalogConfig)

    @classmethod
    def from_env(cls, env: dict[str, str] | None = None) -> "ToolConfig":
        """Build a configuration from environment variables."""
        if env is None:
            env = dict(os.environ)
        config = cls()
        if cache_dir := env.get(CACHE_DIR_ENV):
            config.cache_dir = Path(cache_dir)
        if build_dir := env.get(BUILD_DIR_ENV):
            config.build_dir = Path(build_dir)
        if aru_url := env.get(ARU_URL_ENV):
            config.catalog.base_url = aru_url.rstrip("/")
        return config
