"""
Base class for dependency sources.

A source answers two questions for one package manager: does it apply to this
project, and which third-party packages does it install. Subclasses only need
to report the package manager's dependency tree; flattening, ignore policy and
record construction are shared.
"""

import time
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ..cli_config import LicensedConfig
from ..dependency import Dependency
from ..error_handling import (
    QueryError,
    ShellError,
    UnresolvedDependencyError,
    log_query_error,
    log_unresolved_dependency,
)
from ..package_graph import PackageMetadata, RawPackageGraph, flatten_packages
from ..shell import Shell
from ..structured_logging import (
    log_dependency_ignored,
    log_dependency_path_missing,
    log_source_query_completed,
    log_source_query_started,
)


class Source(ABC):
    """Base class for package manager dependency sources."""

    #: Ecosystem tag used for record tagging and ignore policy matching
    TYPE: str = ""

    #: Where the package manager installs packages, used in error messages
    INSTALL_LOCATION: str = ""

    def __init__(self, config: LicensedConfig, shell: Optional[Shell] = None):
        """
        Initialize source.

        Args:
            config: Project configuration, provides the root and ignore policy
            shell: Command executor, defaults to one honoring the configured timeout
        """
        self.config = config
        self.shell = shell or Shell(config.shell.timeout_seconds)
        self._dependencies: Optional[List[Dependency]] = None

    @classmethod
    def source_type(cls) -> str:
        return cls.TYPE

    @property
    def type(self) -> str:
        return self.TYPE

    @abstractmethod
    def enabled(self) -> bool:
        """Whether the package manager is installed and the project uses it."""

    @abstractmethod
    def raw_packages(self) -> RawPackageGraph:
        """Query the package manager for its dependency tree."""

    def packages(self) -> Dict[str, PackageMetadata]:
        """Flattened, deduplicated package index for this project."""
        return flatten_packages(self.raw_packages())

    def dependencies(self) -> List[Dependency]:
        """
        Get the normalized dependency records for this project.

        The result is computed once and cached for the lifetime of the source.

        Returns:
            List[Dependency]: Records in first-discovery order

        Raises:
            QueryError: If the package manager fails or returns malformed output
            UnresolvedDependencyError: If a dependency is not installed and is
                not covered by the ignore policy
        """
        if self._dependencies is None:
            self._dependencies = self._load_dependencies()
        return list(self._dependencies)

    def _load_dependencies(self) -> List[Dependency]:
        started = time.monotonic()
        log_source_query_started(self.type, str(self.config.pwd))

        dependencies = []
        for key, package in self.packages().items():
            dependency = self.build_dependency(key, package)
            if dependency is not None:
                dependencies.append(dependency)

        log_source_query_completed(
            self.type, len(dependencies), int((time.monotonic() - started) * 1000)
        )
        return dependencies

    def build_dependency(self, key: str, package: PackageMetadata) -> Optional[Dependency]:
        """
        Map one flattened index entry to a dependency record.

        Args:
            key: Flattened index key, ``name`` or ``name-version``
            package: Package metadata reported by the package manager

        Returns:
            Optional[Dependency]: The record, or None if the entry is ignored

        Raises:
            UnresolvedDependencyError: If the package has no installed path and
                is not ignored
        """
        path = _text(package.get("path")).strip()

        if not path:
            if self.config.is_ignored({"type": self.type, "name": key}):
                log_dependency_ignored(self.type, key)
                return None
            log_unresolved_dependency(self.type, key)
            raise UnresolvedDependencyError(self.type, key, self.INSTALL_LOCATION)

        dependency = Dependency(
            path=path,
            type=self.type,
            name=_text(package.get("name")) or key,
            version=_text(package.get("version")),
            summary=_text(package.get("description")),
            homepage=_text(package.get("homepage")),
            key=key,
        )
        if not dependency.exists:
            log_dependency_path_missing(self.type, key, path)
        return dependency

    def query_failed(self, message: str, command: List[str], error: Exception) -> QueryError:
        """Log a failed package manager query and build the error to raise."""
        log_query_error(message, self.type, "raw_packages", command=command, exception=error)
        if isinstance(error, ShellError):
            return QueryError(self.type, f"{message}: {error}")
        return QueryError(self.type, message)


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)
