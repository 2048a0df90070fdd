from dataclasses import dataclass
from pathlib import Path
from typing import Dict


@dataclass(frozen=True)
class Dependency:
    """A normalized, ecosystem-agnostic dependency record."""

    path: str
    type: str
    name: str
    version: str
    summary: str = ""
    homepage: str = ""
    key: str = ""

    @property
    def metadata(self) -> Dict[str, str]:
        """Downstream-facing mapping; ``path`` carries the report key."""
        return {
            "type": self.type,
            "name": self.name,
            "version": self.version,
            "summary": self.summary,
            "homepage": self.homepage,
            "path": self.key or self.name,
        }

    def __getitem__(self, item: str) -> str:
        return self.metadata[item]

    def to_dict(self) -> Dict[str, str]:
        return dict(self.metadata)

    @property
    def exists(self) -> bool:
        """Whether the installed package directory is present on disk."""
        return bool(self.path) and Path(self.path).is_dir()
