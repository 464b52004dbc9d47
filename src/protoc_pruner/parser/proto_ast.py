"""Parsed representation of a .proto file as seen by the pruner."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional, Tuple

DEFAULT_SYNTAX = "proto3"


@dataclass(frozen=True)
class TopLevelDef:
    """A file-scope ``message``/``enum`` block and the types it references."""

    kind: str
    name: str
    start: int
    end: int
    text: str
    refs: Tuple[str, ...] = ()


@dataclass(frozen=True)
class SchemaFile:
    """One parsed schema file: header declarations plus top-level blocks."""

    path: str
    package: str = ""
    syntax: str = DEFAULT_SYNTAX
    imports: Tuple[str, ...] = ()
    definitions: Tuple[TopLevelDef, ...] = field(default_factory=tuple)

    @property
    def base_name(self) -> str:
        return os.path.basename(self.path)

    @property
    def stem(self) -> str:
        return os.path.splitext(self.base_name)[0]

    @property
    def key(self) -> str:
        """Identity used across the pipeline: the lower-cased base name."""
        return self.base_name.lower()

    def get(self, name: str) -> Optional[TopLevelDef]:
        for d in self.definitions:
            if d.name == name:
                return d
        return None

    def names(self) -> Tuple[str, ...]:
        return tuple(d.name for d in self.definitions)
