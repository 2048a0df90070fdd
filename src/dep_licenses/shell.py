"""
External command execution for dependency sources.

Package managers are queried through their own command line tools. Commands
are run without a shell, block until the process exits, and raise
``ShellError`` on a non-zero exit status.
"""

import shutil
import subprocess
from pathlib import Path
from typing import List, Optional, Union

from .error_handling import ShellError
from .structured_logging import log_shell_command, log_shell_command_failed


class Shell:
    """Runs package manager commands and captures their output."""

    def __init__(self, timeout_seconds: Optional[float] = None):
        """
        Initialize shell executor.

        Args:
            timeout_seconds: Maximum runtime per command, None to wait forever
        """
        self.timeout_seconds = timeout_seconds

    def execute(
        self, command: str, *args: str, cwd: Optional[Union[str, Path]] = None
    ) -> str:
        """
        Run a command and return its standard output.

        Args:
            command: Executable to run
            *args: Arguments passed to the executable
            cwd: Working directory

        Returns:
            str: Captured stdout, decoded as UTF-8

        Raises:
            ShellError: If the command cannot be started, times out, or exits
                with a non-zero status
        """
        if not command or not isinstance(command, str):
            raise ValueError("Invalid command")

        # Prevent command injection
        argv: List[str] = [command] + [str(arg) for arg in args]
        log_shell_command(" ".join(argv), str(cwd) if cwd else None)

        try:
            completed = subprocess.run(
                argv,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                cwd=str(cwd) if cwd else None,
                timeout=self.timeout_seconds,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            log_shell_command_failed(" ".join(argv), None)
            raise ShellError(
                argv, None, message=f"'{' '.join(argv)}' timed out after {self.timeout_seconds}s"
            ) from e
        except OSError as e:
            log_shell_command_failed(" ".join(argv), None)
            raise ShellError(argv, None, message=f"'{' '.join(argv)}' could not be run: {e}") from e

        stdout = completed.stdout.decode("utf-8", errors="replace") if completed.stdout else ""
        if completed.returncode != 0:
            stderr = completed.stderr.decode("utf-8", errors="replace") if completed.stderr else ""
            log_shell_command_failed(" ".join(argv), completed.returncode)
            raise ShellError(argv, completed.returncode, stderr)

        return stdout

    def tool_available(self, tool: str) -> bool:
        """Return whether ``tool`` can be found on PATH."""
        return shutil.which(tool) is not None
