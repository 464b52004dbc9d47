from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Optional


def file_key(path: str) -> str:
    """Case-insensitive base name: the identity of a schema file."""
    return os.path.basename(path).lower()


@dataclass(frozen=True)
class SeedEntry:
    """A normalized handle to a .proto file on disk (or where it should be)."""

    path: str
    directory: str
    base: str

    @classmethod
    def from_path(cls, path: str) -> SeedEntry:
        path = os.path.normpath(path)
        directory, base = os.path.split(path)
        return cls(path=path, directory=directory, base=base)

    @property
    def key(self) -> str:
        return self.base.lower()


@dataclass(frozen=True)
class KeepDirectives:
    """Which definitions and fields the export should retain.

    ``files`` maps a seed file key to the top-level names to seed from it;
    ``types`` maps a simple or package-qualified message name to the field
    names to keep. A missing entry means "keep everything".
    """

    files: Dict[str, FrozenSet[str]] = field(default_factory=dict)
    types: Dict[str, FrozenSet[str]] = field(default_factory=dict)

    def definitions_for(self, key: str) -> Optional[FrozenSet[str]]:
        return self.files.get(key)

    def fields_for(self, package: str, name: str) -> Optional[FrozenSet[str]]:
        if name in self.types:
            return self.types[name]
        if package:
            return self.types.get(f"{package}.{name}")
        return None
