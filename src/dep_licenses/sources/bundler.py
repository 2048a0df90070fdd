"""
Bundler dependency source.

The dependency tree is read from the project's lockfile. Bundler itself is
asked where each gem is installed (``bundle show --paths``) and which gems
belong to the groups being reported (``bundle list --name-only``).
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Set

from ..cli_config import LicensedConfig
from ..error_handling import ShellError
from ..package_graph import RawPackageGraph
from ..shell import Shell
from .base import Source

DEFAULT_WITHOUT_GROUPS = ["development", "test"]

SOURCE_SECTIONS = {"GEM", "PATH", "GIT"}

SPEC_PATTERN = re.compile(r"^ {4}(\S+) \(([^)]+)\)$")
SPEC_DEPENDENCY_PATTERN = re.compile(r"^ {6}(\S+)(?: \(.*\))?$")
DEPENDENCY_PATTERN = re.compile(r"^ {2}([^\s!]+)(!)?(?: \(.*\))?$")


@dataclass
class LockedSpec:
    """A gem specification listed in a lockfile."""

    name: str
    version: str
    platform: str = ""
    source: str = "GEM"
    remote: str = ""
    dependencies: List[str] = field(default_factory=list)

    @property
    def full_name(self) -> str:
        """Installed directory name, ``name-version[-platform]``."""
        if self.platform:
            return f"{self.name}-{self.version}-{self.platform}"
        return f"{self.name}-{self.version}"

    @property
    def local_gemspec(self) -> bool:
        """Whether this spec is the project's own gemspec."""
        return self.source == "PATH" and self.remote.rstrip("/") in (".", "")


@dataclass
class Lockfile:
    """Parsed contents of a Gemfile.lock."""

    specs: Dict[str, List[LockedSpec]] = field(default_factory=dict)
    dependencies: List[str] = field(default_factory=list)
    bundled_with: str = ""


def parse_lockfile(content: str) -> Lockfile:
    """
    Parse a Bundler lockfile.

    Args:
        content: Lockfile text

    Returns:
        Lockfile: Specs grouped by gem name, top level dependencies in order
            and the Bundler version that wrote the lockfile
    """
    lockfile = Lockfile()
    section = ""
    remote = ""
    current: Optional[LockedSpec] = None

    for raw_line in content.splitlines():
        line = raw_line.rstrip()
        if not line:
            continue

        if not line.startswith(" "):
            section = line.strip()
            remote = ""
            current = None
            continue

        if section in SOURCE_SECTIONS:
            stripped = line.strip()
            if stripped.startswith("remote:"):
                remote = stripped[len("remote:"):].strip()
                continue

            if match := SPEC_PATTERN.match(line):
                version, _, platform = match.group(2).partition("-")
                current = LockedSpec(
                    name=match.group(1),
                    version=version,
                    platform=platform,
                    source=section,
                    remote=remote,
                )
                lockfile.specs.setdefault(current.name, []).append(current)
            elif current is not None and (match := SPEC_DEPENDENCY_PATTERN.match(line)):
                current.dependencies.append(match.group(1))

        elif section == "DEPENDENCIES":
            if match := DEPENDENCY_PATTERN.match(line):
                lockfile.dependencies.append(match.group(1))

        elif section == "BUNDLED WITH":
            lockfile.bundled_with = line.strip()

    return lockfile


class BundlerSource(Source):
    """Discovers gems installed for a Bundler project."""

    TYPE = "bundler"
    INSTALL_LOCATION = "the bundle path"

    def __init__(self, config: LicensedConfig, shell: Optional[Shell] = None):
        super().__init__(config, shell)
        self._git_paths: Dict[str, str] = {}

    @property
    def gemfile_path(self) -> Optional[Path]:
        """The project's Gemfile, or gems.rb when there is no Gemfile."""
        for name in ("Gemfile", "gems.rb"):
            path = self.config.pwd / name
            if path.exists():
                return path
        return None

    @property
    def lockfile_path(self) -> Optional[Path]:
        gemfile = self.gemfile_path
        if gemfile is None:
            return None
        if gemfile.name == "gems.rb":
            return gemfile.with_name("gems.rb.lock")
        return gemfile.with_name("Gemfile.lock")

    def enabled(self) -> bool:
        try:
            lockfile = self.lockfile_path
            return (
                self.shell.tool_available("bundle")
                and lockfile is not None
                and lockfile.exists()
            )
        except OSError:
            return False

    @property
    def without_groups(self) -> List[str]:
        """Gem groups excluded from the report."""
        configured = self.config.bundler.without
        groups = list(DEFAULT_WITHOUT_GROUPS if configured is None else configured)

        for group in re.split(r"[\s:]+", os.environ.get("BUNDLE_WITHOUT", "")):
            if group and group not in groups:
                groups.append(group)
        return groups

    def raw_packages(self) -> RawPackageGraph:
        """
        Build the dependency tree from the lockfile.

        Each gem is expanded the first time it is reached; later occurrences
        are reported without their dependencies, which also breaks cycles.

        Raises:
            QueryError: If the lockfile is missing or bundler fails
        """
        lockfile = self.read_lockfile()
        installed = self.installed_paths()
        included = self.included_gems()
        exclude_bundler = "bundler" in self.without_groups
        expanded: Set[str] = set()

        def node(spec: LockedSpec) -> Dict:
            dependencies: Dict[str, Dict] = {}
            if spec.name not in expanded:
                expanded.add(spec.name)
                for name in spec.dependencies:
                    child = self._locked_spec(lockfile, name, installed)
                    if child is not None and name in included:
                        dependencies[name] = node(child)
            return {
                "name": spec.name,
                "version": spec.version,
                "path": self._spec_path(spec, installed),
                "description": "",
                "homepage": "",
                "dependencies": dependencies,
            }

        graph: Dict[str, Dict] = {}
        for name in lockfile.dependencies:
            if name == "bundler":
                if exclude_bundler:
                    continue
                spec = self._locked_spec(lockfile, name, installed) or LockedSpec(
                    name="bundler", version=lockfile.bundled_with
                )
                graph[name] = node(spec)
                continue
            spec = self._locked_spec(lockfile, name, installed)
            if spec is None:
                continue
            if spec.local_gemspec:
                for child_name, child in node(spec)["dependencies"].items():
                    graph.setdefault(child_name, child)
            elif name in included and name not in graph:
                graph[name] = node(spec)

        return graph

    def read_lockfile(self) -> Lockfile:
        path = self.lockfile_path
        if path is None or not path.exists():
            raise self.query_failed(
                "No lockfile found", [], FileNotFoundError(str(path))
            )
        try:
            return parse_lockfile(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError) as e:
            raise self.query_failed(f"Cannot read {path.name}: {e}", [], e) from e

    def installed_paths(self) -> Dict[str, str]:
        """Map installed gem directory names to their absolute paths."""
        output = self._bundle("show", "--paths")
        paths = {}
        for line in output.splitlines():
            line = line.strip()
            if line:
                paths[Path(line).name] = line
        return paths

    def included_gems(self) -> Set[str]:
        """Names of gems that belong to the reported groups."""
        groups = [g for g in self.without_groups if g != "bundler"]
        args = ["list", "--name-only"]
        if groups:
            args += ["--without-group", " ".join(groups)]
        output = self._bundle(*args)
        return {line.strip() for line in output.splitlines() if line.strip()}

    def git_gem_path(self, name: str) -> str:
        """
        Ask bundler where a gem from a git source is checked out.

        Returns:
            str: Reported path, or an empty string when bundler cannot find
                the gem
        """
        if name not in self._git_paths:
            try:
                output = self.shell.execute("bundle", "show", name, cwd=self.config.pwd)
            except ShellError:
                output = ""
            lines = [line.strip() for line in output.splitlines() if line.strip()]
            self._git_paths[name] = lines[-1] if lines else ""
        return self._git_paths[name]

    def _bundle(self, *args: str) -> str:
        try:
            return self.shell.execute("bundle", *args, cwd=self.config.pwd)
        except ShellError as e:
            raise self.query_failed(f"bundle {args[0]} failed", ["bundle", *args], e) from e

    def _locked_spec(
        self, lockfile: Lockfile, name: str, installed: Dict[str, str]
    ) -> Optional[LockedSpec]:
        """Pick the platform variant of a gem that is installed."""
        variants = lockfile.specs.get(name)
        if not variants:
            return None
        for spec in variants:
            if self._spec_path(spec, installed):
                return spec
        return variants[0]

    def _spec_path(self, spec: LockedSpec, installed: Dict[str, str]) -> str:
        if spec.source == "PATH":
            base = self.lockfile_path.parent if self.lockfile_path else self.config.pwd
            path = (base / spec.remote).resolve()
            return str(path) if path.exists() else ""

        if spec.source == "GIT":
            # checkout directories are named after the revision, not the version
            return self.git_gem_path(spec.name)

        return installed.get(spec.full_name, "")
