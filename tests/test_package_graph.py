"""
Tests for flattening and deduplicating package manager dependency trees.
"""

import copy

from dep_licenses.package_graph import (
    collect_packages,
    flatten_packages,
    unique_by_version,
)


class TestCollectPackages:
    """Test the depth-first walk over a raw package graph."""

    def test_preorder_walk(self):
        """Packages are recorded before their dependencies, siblings in order."""
        graph = {
            "a": {"version": "1", "dependencies": {"a1": {"version": "1"}, "a2": {"version": "1"}}},
            "b": {"version": "1", "dependencies": {"b1": {"version": "1"}}},
        }

        assert list(collect_packages(graph)) == ["a", "a1", "a2", "b", "b1"]

    def test_same_name_at_several_depths(self, diamond_graph):
        """Every occurrence of a name is accumulated under that name."""
        collected = collect_packages(diamond_graph)

        assert [p["version"] for p in collected["d"]] == ["1.0", "2.0"]
        assert [p["version"] for p in collected["e"]] == ["1.0"]

    def test_missing_and_malformed_dependencies(self):
        """Absent or non-mapping nested dependencies are treated as empty."""
        graph = {
            "a": {"version": "1"},
            "b": {"version": "1", "dependencies": None},
            "c": {"version": "1", "dependencies": ["not", "a", "mapping"]},
        }

        assert list(collect_packages(graph)) == ["a", "b", "c"]

    def test_empty_graph(self):
        assert collect_packages({}) == {}
        assert collect_packages(None) == {}

    def test_deep_graph_does_not_recurse(self):
        """A very deep chain is walked without hitting the recursion limit."""
        graph = {}
        node = graph
        for i in range(5000):
            child = {}
            node[f"pkg{i}"] = {"version": "1.0", "dependencies": child}
            node = child

        collected = collect_packages(graph)

        assert len(collected) == 5000
        assert next(iter(collected)) == "pkg0"


class TestUniqueByVersion:
    """Test version-only identity."""

    def test_first_occurrence_wins(self):
        packages = [
            {"version": "1.0", "path": "/first"},
            {"version": "2.0", "path": "/second"},
            {"version": "1.0", "path": "/hoisted-duplicate"},
        ]

        unique = unique_by_version(packages)

        assert [p["path"] for p in unique] == ["/first", "/second"]

    def test_missing_versions_compare_equal(self):
        packages = [{"path": "/a"}, {"version": None, "path": "/b"}]

        assert unique_by_version(packages) == [{"path": "/a"}]


class TestFlattenPackages:
    """Test the flattened package index."""

    def test_single_versions_keyed_by_name(self):
        """Without version skew every package is keyed by its bare name."""
        graph = {
            "a": {
                "version": "1.0",
                "dependencies": {
                    "b": {"version": "2.0", "dependencies": {"c": {"version": "3.0"}}},
                    "c": {"version": "3.0"},
                },
            },
            "b": {"version": "2.0"},
        }

        index = flatten_packages(graph)

        assert list(index) == ["a", "b", "c"]
        assert index["c"]["version"] == "3.0"

    def test_version_skew_keyed_by_name_and_version(self, diamond_graph):
        """Each installed version gets its own entry and the bare name is unused."""
        index = flatten_packages(diamond_graph)

        assert set(index) == {"e", "d-1.0", "d-2.0"}
        assert "d" not in index
        assert index["d-1.0"]["path"] == "/p/d1"
        assert index["d-2.0"]["path"] == "/p/d2"

    def test_first_discovery_order(self, diamond_graph):
        index = flatten_packages(diamond_graph)

        assert list(index) == ["d-1.0", "d-2.0", "e"]

    def test_duplicate_version_collapses_to_bare_name(self):
        """The same version reached twice is still a single package."""
        graph = {
            "a": {"version": "1.0", "path": "/a", "dependencies": {"shared": {"version": "1.0", "path": "/nested/shared"}}},
            "shared": {"version": "1.0", "path": "/shared"},
        }

        index = flatten_packages(graph)

        assert list(index) == ["a", "shared"]
        assert index["shared"]["path"] == "/nested/shared"

    def test_missing_name_filled_from_graph_key(self, diamond_graph):
        index = flatten_packages(diamond_graph)

        assert index["d-2.0"]["name"] == "d"
        assert index["e"]["name"] == "e"

    def test_reported_name_is_kept(self):
        graph = {"alias": {"name": "real-name", "version": "1.0"}}

        assert flatten_packages(graph)["alias"]["name"] == "real-name"

    def test_flattening_is_idempotent(self, diamond_graph, scenario_graph):
        for graph in (diamond_graph, scenario_graph):
            original = copy.deepcopy(graph)

            first = flatten_packages(graph)
            second = flatten_packages(graph)

            assert first == second
            assert list(first) == list(second)
            assert graph == original
