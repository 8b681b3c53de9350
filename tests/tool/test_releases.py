"""Tests for the image-tool catalog commands."""

from pathlib import Path

import pytest

from image_tool.exceptions import CommandException

from . import run_command

# Nothing listens on the discard port, so every request fails to connect
UNREACHABLE = {"IMAGE_TOOL_ARU_URL": "http://127.0.0.1:9", "NO_PROXY": "*"}


async def test_releases_require_user(tmp_path: Path) -> None:
    """Test the catalog can not be queried without a user."""
    with pytest.raises(CommandException, match="--user is required"):
        await run_command(["releases"], tmp_path)


async def test_releases_unavailable(tmp_path: Path) -> None:
    """Test an unreachable catalog is reported as an error."""
    with pytest.raises(CommandException, match="image-tool error: Catalog request"):
        await run_command(
            ["releases", "--user", "user@example.com"],
            tmp_path,
            env={**UNREACHABLE, "ORACLE_SUPPORT_PASSWORD": "secret"},
        )


async def test_check_credentials_missing_user(tmp_path: Path) -> None:
    """Test credentials without a user are rejected without a request."""
    with pytest.raises(CommandException, match="Credentials were rejected"):
        await run_command(["check-credentials"], tmp_path, env=UNREACHABLE)


async def test_list_patch_set_updates_require_user(tmp_path: Path) -> None:
    """Test listing patch set updates requires a user."""
    with pytest.raises(CommandException, match="--user is required"):
        await run_command(["patches", "--list"], tmp_path)


async def test_patches_require_selection(tmp_path: Path) -> None:
    """Test downloading requires at least one patch."""
    with pytest.raises(CommandException, match="Specify --patches"):
        await run_command(
            ["patches", "--user", "user@example.com"],
            tmp_path,
            env={"ORACLE_SUPPORT_PASSWORD": "secret"},
        )
