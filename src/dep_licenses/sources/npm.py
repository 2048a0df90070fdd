"""npm dependency source, backed by ``npm list``."""

import json
from typing import Any, Dict

from ..error_handling import ShellError
from ..package_graph import RawPackageGraph
from .base import Source

# Production dependencies only, with description/homepage/path per package
LIST_ARGS = ("--json", "--production", "--long")


class NPMSource(Source):
    """Discovers production dependencies installed under node_modules/."""

    TYPE = "npm"
    INSTALL_LOCATION = "node_modules/"

    def enabled(self) -> bool:
        try:
            return (
                self.shell.tool_available("npm")
                and (self.config.pwd / "package.json").exists()
            )
        except OSError:
            return False

    def raw_packages(self) -> RawPackageGraph:
        """
        Get the dependency tree reported by ``npm list``.

        Returns:
            RawPackageGraph: Top level ``dependencies`` of the listing

        Raises:
            QueryError: If npm fails or its output is not a JSON object
        """
        dependencies = self.package_metadata().get("dependencies") or {}
        if not isinstance(dependencies, dict):
            raise self.query_failed(
                "npm list returned malformed dependencies",
                ["npm", "list", *LIST_ARGS],
                ValueError(type(dependencies).__name__),
            )
        return dependencies

    def package_metadata(self) -> Dict[str, Any]:
        """Run ``npm list`` and parse its JSON output."""
        command = ["npm", "list", *LIST_ARGS]
        try:
            output = self.npm_list_command(*LIST_ARGS)
        except ShellError as e:
            raise self.query_failed("npm list failed", command, e) from e

        if not output.strip():
            raise self.query_failed("npm list produced no output", command, ValueError("empty output"))

        try:
            metadata = json.loads(output)
        except json.JSONDecodeError as e:
            raise self.query_failed(f"npm list returned invalid JSON: {e}", command, e) from e

        if not isinstance(metadata, dict):
            raise self.query_failed(
                "npm list did not return a JSON object",
                command,
                ValueError(type(metadata).__name__),
            )
        return metadata

    def npm_list_command(self, *args: str) -> str:
        """Run ``npm list`` with the given arguments in the project root."""
        return self.shell.execute("npm", "list", *args, cwd=self.config.pwd)
