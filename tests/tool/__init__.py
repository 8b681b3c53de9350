"""Test helpers for image-tool commands."""

import os
from pathlib import Path
import sys

from image_tool.command import Command, run

IMAGE_TOOL_CMD = [sys.executable, "-m", "image_tool"]


async def run_command(
    args: list[str], tmp_path: Path, env: dict[str, str] | None = None
) -> str:
    """Run image-tool with its working directories inside tmp_path."""
    return await run(
        Command(
            IMAGE_TOOL_CMD + args,
            env={
                "IMAGE_TOOL_CACHE_DIR": str(tmp_path / "cache"),
                "IMAGE_TOOL_BUILD_DIR": str(tmp_path / "build"),
                "PYTHONPATH": os.getcwd(),
                **(env or {}),
            },
        )
    )
