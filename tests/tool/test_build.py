"""Tests for the image-tool `build` command."""

from pathlib import Path

import pytest

from image_tool.exceptions import CommandException

from . import run_command


async def test_build_dry_run(tmp_path: Path) -> None:
    """Test printing the Dockerfile without running the build."""
    commands = tmp_path / "commands.txt"
    commands.write_text("RUN echo custom\n")

    result = await run_command(
        [
            "build",
            "--tag",
            "wls:1",
            "--dry-run",
            "--chown",
            "app:staff",
            "--package-manager",
            "apt",
            "--additional-build-commands",
            str(commands),
        ],
        tmp_path,
    )

    lines = result.splitlines()
    assert lines[0] == "########## BEGIN DOCKERFILE ##########"
    assert lines[-1] == "########## END DOCKERFILE ##########"
    assert "FROM ghcr.io/oracle/oraclelinux:7-slim" in lines
    assert "RUN echo custom" in lines
    assert "USER app" in lines
    assert any(line.startswith("RUN apt-get") for line in lines)
    # The working directory is removed after the build
    assert list((tmp_path / "build").iterdir()) == []


async def test_build_dry_run_skip_cleanup(tmp_path: Path) -> None:
    """Test the working directory is kept when cleanup is skipped."""
    await run_command(
        ["build", "--tag", "wls:1", "--dry-run", "--skip-cleanup"], tmp_path
    )
    (context_dir,) = (tmp_path / "build").iterdir()
    assert context_dir.name.startswith("imagetool-wls-1-")


async def test_build_missing_commands_file(tmp_path: Path) -> None:
    """Test a missing additional build commands file."""
    with pytest.raises(CommandException, match="Unable to read file or directory"):
        await run_command(
            [
                "build",
                "--tag",
                "wls:1",
                "--dry-run",
                "--additional-build-commands",
                str(tmp_path / "missing.txt"),
            ],
            tmp_path,
        )


async def test_build_invalid_chown(tmp_path: Path) -> None:
    """Test an invalid user:group pair."""
    with pytest.raises(CommandException, match="Invalid user name 'Bad'"):
        await run_command(
            ["build", "--tag", "wls:1", "--dry-run", "--chown", "Bad:oracle"],
            tmp_path,
        )


async def test_build_patches_require_password(tmp_path: Path) -> None:
    """Test requesting patches without a password in the environment."""
    with pytest.raises(CommandException, match="ORACLE_SUPPORT_PASSWORD"):
        await run_command(
            [
                "build",
                "--tag",
                "wls:1",
                "--dry-run",
                "--patches",
                "99999",
                "--user",
                "user@example.com",
            ],
            tmp_path,
            env={"ORACLE_SUPPORT_PASSWORD": ""},
        )
