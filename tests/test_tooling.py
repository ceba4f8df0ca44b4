"""
Tests for metrocli.build.tooling module.

Tests external tool handling including:
- npm executable selection
- node_modules lookup through parent directories
- Strict and non-strict failure policy
"""

from __future__ import annotations

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from metrocli.build.tooling import (
    find_tool,
    install_dependencies,
    npm_command,
    run_tool,
    tool_environment,
)
from metrocli.exceptions import ToolingError

pytestmark = pytest.mark.unit


class TestNpmCommand:
    """Tests for npm_command."""

    def test_windows_uses_npm_cmd(self):
        """Test that Windows gets npm.cmd."""
        with patch("metrocli.build.tooling.sys.platform", "win32"):
            assert npm_command() == "npm.cmd"

    def test_posix_uses_npm(self):
        """Test that other platforms get npm."""
        with patch("metrocli.build.tooling.sys.platform", "linux"):
            assert npm_command() == "npm"


class TestFindTool:
    """Tests for find_tool."""

    def test_found_in_project(self, tmp_test_dir):
        """Test lookup in the start directory."""
        tool = tmp_test_dir / "node_modules" / ".bin" / "rollup"
        tool.parent.mkdir(parents=True)
        tool.write_text("")

        assert find_tool(tmp_test_dir, "node_modules/.bin/rollup") == tool.resolve()

    def test_found_in_parent(self, tmp_test_dir):
        """Test lookup in a parent directory within the search depth."""
        tool = tmp_test_dir / "node_modules" / ".bin" / "esbuild"
        tool.parent.mkdir(parents=True)
        tool.write_text("")
        nested = tmp_test_dir / "packages" / "app"
        nested.mkdir(parents=True)

        assert find_tool(nested, "node_modules/.bin/esbuild") == tool.resolve()

    def test_not_found_beyond_depth(self, tmp_test_dir):
        """Test that lookup stops after the configured number of levels."""
        tool = tmp_test_dir / "node_modules" / ".bin" / "esbuild"
        tool.parent.mkdir(parents=True)
        tool.write_text("")
        nested = tmp_test_dir / "a" / "b" / "c"
        nested.mkdir(parents=True)

        with pytest.raises(ToolingError, match="Required files not found"):
            find_tool(nested, "node_modules/.bin/esbuild")


class TestRunTool:
    """Tests for run_tool."""

    def test_success_returns_true(self, tmp_test_dir, silent_logger):
        """Test that a zero exit code returns True."""
        with patch("metrocli.build.tooling.subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(stdout="done\n", returncode=0)

            ok = run_tool(
                ["npm", "i"],
                tmp_test_dir,
                description="installing app dependencies",
                strict=True,
                logger=silent_logger,
            )

        assert ok is True
        args, kwargs = mock_run.call_args
        assert args[0] == ["npm", "i"]
        assert kwargs["cwd"] == str(tmp_test_dir)
        assert kwargs["check"] is True
        assert kwargs["capture_output"] is True

    def test_failure_non_strict_returns_false(self, tmp_test_dir):
        """Test that failures are tolerated outside strict mode."""
        logger = MagicMock()
        err = subprocess.CalledProcessError(1, ["npm", "i"], output="", stderr="boom")

        with patch("metrocli.build.tooling.subprocess.run", side_effect=err):
            ok = run_tool(
                ["npm", "i"],
                tmp_test_dir,
                description="installing app dependencies",
                strict=False,
                logger=logger,
            )

        assert ok is False
        logger.output.assert_called_once()
        assert logger.output.call_args[0][1] == "boom"
        logger.warning.assert_called_once()

    def test_failure_strict_raises(self, tmp_test_dir, silent_logger):
        """Test that failures raise ToolingError in strict mode."""
        err = subprocess.CalledProcessError(2, ["npm", "i"], output="", stderr="boom")

        with patch("metrocli.build.tooling.subprocess.run", side_effect=err):
            with pytest.raises(ToolingError) as exc_info:
                run_tool(
                    ["npm", "i"],
                    tmp_test_dir,
                    description="installing app dependencies",
                    strict=True,
                    logger=silent_logger,
                )

        assert "exit code 2" in str(exc_info.value)
        assert exc_info.value.output == "boom"

    def test_missing_executable(self, tmp_test_dir, silent_logger):
        """Test that a missing executable follows the same policy."""
        with patch(
            "metrocli.build.tooling.subprocess.run",
            side_effect=FileNotFoundError("npm"),
        ):
            assert (
                run_tool(
                    ["npm", "i"],
                    tmp_test_dir,
                    description="installing app dependencies",
                    strict=False,
                    logger=silent_logger,
                )
                is False
            )

            with pytest.raises(ToolingError, match="npm not found"):
                run_tool(
                    ["npm", "i"],
                    tmp_test_dir,
                    description="installing app dependencies",
                    strict=True,
                    logger=silent_logger,
                )


class TestInstallDependencies:
    """Tests for install_dependencies."""

    def test_runs_npm_install_in_production_mode(self, tmp_test_dir, silent_logger):
        """Test the npm command line and environment."""
        with patch("metrocli.build.tooling.subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(stdout="", returncode=0)

            assert install_dependencies(tmp_test_dir, logger=silent_logger) is True

        args, kwargs = mock_run.call_args
        assert args[0] == [npm_command(), "i"]
        assert kwargs["env"]["NODE_ENV"] == "production"

    def test_tool_environment_merges_extra(self):
        """Test that extra variables are added to the child environment."""
        env = tool_environment({"APP_X": "1"})

        assert env["APP_X"] == "1"
        assert env["NODE_ENV"] == "production"
