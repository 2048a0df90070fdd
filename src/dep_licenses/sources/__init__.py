"""
Registry of dependency sources.

Sources are listed explicitly; a project runs every registered source that is
allowed by its configuration and applies to its root directory.
"""

from typing import Dict, List, Optional, Type

from ..cli_config import LicensedConfig
from ..shell import Shell
from .base import Source
from .bundler import BundlerSource
from .npm import NPMSource

SOURCE_TYPES: List[Type[Source]] = [
    BundlerSource,
    NPMSource,
]


def get_source_types() -> Dict[str, Type[Source]]:
    """Map each ecosystem tag to its source class."""
    return {source_class.source_type(): source_class for source_class in SOURCE_TYPES}


def get_source(
    source_type: str, config: LicensedConfig, shell: Optional[Shell] = None
) -> Source:
    """
    Create a source by ecosystem tag.

    Raises:
        ValueError: If no source is registered for the tag
    """
    source_class = get_source_types().get(source_type)
    if source_class is None:
        raise ValueError(f"Unsupported source type: {source_type}")
    return source_class(config, shell)


def enabled_sources(
    config: LicensedConfig, shell: Optional[Shell] = None
) -> List[Source]:
    """
    Get the sources that apply to the configured project.

    Args:
        config: Project configuration
        shell: Command executor shared by the sources

    Returns:
        List[Source]: Sources allowed by configuration whose tooling and
            manifest files are present
    """
    shell = shell or Shell(config.shell.timeout_seconds)
    sources = []
    for source_class in SOURCE_TYPES:
        if not config.enabled(source_class.source_type()):
            continue
        source = source_class(config, shell)
        if source.enabled():
            sources.append(source)
    return sources


__all__ = [
    "BundlerSource",
    "NPMSource",
    "SOURCE_TYPES",
    "Source",
    "enabled_sources",
    "get_source",
    "get_source_types",
]
