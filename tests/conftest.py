"""
Shared fixtures for dep-licenses tests.
"""

from typing import Dict, Optional
from unittest.mock import MagicMock

import pytest

from dep_licenses.cli_config import LicensedConfig, reset_config
from dep_licenses.package_graph import RawPackageGraph
from dep_licenses.shell import Shell
from dep_licenses.sources.base import Source


class GraphSource(Source):
    """Source returning a fixed raw package graph."""

    TYPE = "test"

    def __init__(self, config: LicensedConfig, graph: RawPackageGraph, shell: Optional[Shell] = None):
        super().__init__(config, shell or MagicMock(spec=Shell))
        self.graph = graph
        self.query_count = 0

    def enabled(self) -> bool:
        return True

    def raw_packages(self) -> RawPackageGraph:
        self.query_count += 1
        return self.graph


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Isolate tests from the caller's configuration."""
    for key in [
        "BUNDLE_WITHOUT",
        "BUNDLE_GEMFILE",
        "DEP_LICENSES_ROOT",
        "DEP_LICENSES_LOG_LEVEL",
        "DEP_LICENSES_SHELL_TIMEOUT",
        "DEP_LICENSES_SOURCES",
    ]:
        monkeypatch.delenv(key, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def temp_dir(tmp_path):
    """Project root directory."""
    return tmp_path


@pytest.fixture
def config(temp_dir):
    """Configuration rooted at the temporary project directory."""
    return LicensedConfig(root=str(temp_dir))


@pytest.fixture
def fake_shell():
    """Shell executor that never starts a process."""
    shell = MagicMock(spec=Shell)
    shell.tool_available.return_value = True
    return shell


@pytest.fixture
def scenario_graph() -> Dict:
    """Two installed packages and one that was never installed."""
    return {
        "a": {
            "version": "1.0",
            "path": "/pkgs/a",
            "dependencies": {
                "b": {"version": "2.0", "path": "/pkgs/b", "dependencies": {}},
            },
        },
        "c": {"version": "3.0", "path": "", "dependencies": {}},
    }


@pytest.fixture
def diamond_graph() -> Dict:
    """``d`` installed at two versions, once at the top and once under ``e``."""
    return {
        "d": {
            "version": "1.0",
            "path": "/p/d1",
            "dependencies": {
                "e": {
                    "version": "1.0",
                    "path": "/p/e1",
                    "dependencies": {
                        "d": {"version": "2.0", "path": "/p/d2", "dependencies": {}},
                    },
                },
            },
        },
    }
