"""
Tests for external command execution.
"""

import sys
from unittest.mock import patch

import pytest

from dep_licenses.error_handling import DependencySourceError, ShellError
from dep_licenses.shell import Shell


class TestShell:
    """Test the command executor."""

    def test_execute_returns_stdout(self):
        output = Shell().execute(sys.executable, "-c", "print('hello')")

        assert output.strip() == "hello"

    def test_execute_in_directory(self, tmp_path):
        output = Shell().execute(
            sys.executable, "-c", "import os; print(os.getcwd())", cwd=tmp_path
        )

        assert output.strip() == str(tmp_path.resolve())

    def test_non_zero_exit(self):
        with pytest.raises(ShellError) as exc_info:
            Shell().execute(
                sys.executable, "-c", "import sys; sys.stderr.write('boom'); sys.exit(3)"
            )

        error = exc_info.value
        assert error.returncode == 3
        assert error.stderr == "boom"
        assert error.command[0] == sys.executable
        assert "exited with status 3: boom" in str(error)
        assert isinstance(error, DependencySourceError)

    def test_timeout(self):
        with pytest.raises(ShellError) as exc_info:
            Shell(timeout_seconds=0.5).execute(
                sys.executable, "-c", "import time; time.sleep(10)"
            )

        assert exc_info.value.returncode is None
        assert "timed out" in str(exc_info.value)

    def test_missing_executable(self):
        with pytest.raises(ShellError) as exc_info:
            Shell().execute("definitely-not-a-real-tool-xyz")

        assert exc_info.value.returncode is None
        assert "could not be run" in str(exc_info.value)

    def test_invalid_command(self):
        with pytest.raises(ValueError):
            Shell().execute("")

    def test_arguments_are_not_shell_interpreted(self):
        output = Shell().execute(
            sys.executable, "-c", "import sys; print(sys.argv[1])", "$HOME; echo injected"
        )

        assert output.strip() == "$HOME; echo injected"

    def test_tool_available(self):
        shell = Shell()

        with patch("dep_licenses.shell.shutil.which", return_value="/usr/bin/npm"):
            assert shell.tool_available("npm")
        with patch("dep_licenses.shell.shutil.which", return_value=None):
            assert not shell.tool_available("npm")
