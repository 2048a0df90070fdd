"""
Flattening and deduplication of package manager dependency trees.

Every source reports its dependencies as a nested mapping of
``name -> {version, path, description, homepage, dependencies}``. The same
package can show up at several depths of that tree, sometimes with different
versions. This module collapses the tree into a flat, insertion-ordered index
with one entry per distinct installed artifact.
"""

from collections import OrderedDict
from typing import Any, List, Mapping

# Type aliases for readability
PackageMetadata = Mapping[str, Any]
RawPackageGraph = Mapping[str, PackageMetadata]


def collect_packages(graph: RawPackageGraph) -> "OrderedDict[str, List[PackageMetadata]]":
    """
    Walk a raw package graph depth-first and group metadata by package name.

    The walk is pre-order: a package is recorded before its own dependencies,
    and siblings are visited in the order the package manager reported them.

    Args:
        graph: Raw package graph as reported by a package manager

    Returns:
        OrderedDict mapping each package name to every metadata object seen
        for it, in first-discovery order
    """
    accumulator: "OrderedDict[str, List[PackageMetadata]]" = OrderedDict()
    stack = list(reversed(_children(graph)))

    while stack:
        name, metadata = stack.pop()
        accumulator.setdefault(name, []).append(metadata)
        stack.extend(reversed(_children(metadata.get("dependencies"))))

    return accumulator


def unique_by_version(packages: List[PackageMetadata]) -> List[PackageMetadata]:
    """Drop later entries whose version was already seen. First one wins."""
    seen = set()
    unique = []
    for package in packages:
        version = _version_of(package)
        if version in seen:
            continue
        seen.add(version)
        unique.append(package)
    return unique


def flatten_packages(graph: RawPackageGraph) -> "OrderedDict[str, PackageMetadata]":
    """
    Collapse a raw package graph into a flattened package index.

    A package installed at a single version is keyed by its bare name. When
    several versions of the same package are installed, each one is keyed as
    ``"<name>-<version>"`` and the bare name is not used.

    Args:
        graph: Raw package graph as reported by a package manager

    Returns:
        OrderedDict mapping index keys to package metadata
    """
    index: "OrderedDict[str, PackageMetadata]" = OrderedDict()

    for name, packages in collect_packages(graph).items():
        packages = unique_by_version(packages)
        if len(packages) == 1:
            index[name] = _named(packages[0], name)
            continue

        for package in packages:
            index[f"{name}-{_version_of(package)}"] = _named(package, name)

    return index


def _children(graph: Any):
    if not isinstance(graph, Mapping):
        return []
    return [
        (name, metadata if isinstance(metadata, Mapping) else {})
        for name, metadata in graph.items()
    ]


def _named(package: PackageMetadata, name: str) -> PackageMetadata:
    if package.get("name"):
        return package
    return {**package, "name": name}


def _version_of(package: PackageMetadata) -> str:
    version = package.get("version")
    return "" if version is None else str(version)
