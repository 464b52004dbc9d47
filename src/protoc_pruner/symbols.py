"""Name resolution for type references across the import closure."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from protoc_pruner.parser.proto_ast import SchemaFile, TopLevelDef

logger = logging.getLogger(__name__)

# Proto scalar types: any field type not in this set is a message/enum reference.
PROTO_PRIMITIVES = frozenset({
    "int32", "sint32", "sfixed32", "uint32", "fixed32",
    "int64", "sint64", "sfixed64", "uint64", "fixed64",
    "float", "double", "bool", "string", "bytes",
})

# Standard types every target runtime ships; imported, never copied.
WELL_KNOWN_TYPES: Dict[str, str] = {
    "google.protobuf.Timestamp": "google/protobuf/timestamp.proto",
    "google.protobuf.Duration": "google/protobuf/duration.proto",
    "google.protobuf.Any": "google/protobuf/any.proto",
    "google.protobuf.Empty": "google/protobuf/empty.proto",
    "google.protobuf.FieldMask": "google/protobuf/field_mask.proto",
    "google.protobuf.Struct": "google/protobuf/struct.proto",
    "google.protobuf.Value": "google/protobuf/struct.proto",
    "google.protobuf.ListValue": "google/protobuf/struct.proto",
    "google.protobuf.NullValue": "google/protobuf/struct.proto",
    "google.protobuf.Int32Value": "google/protobuf/wrappers.proto",
    "google.protobuf.Int64Value": "google/protobuf/wrappers.proto",
    "google.protobuf.UInt32Value": "google/protobuf/wrappers.proto",
    "google.protobuf.UInt64Value": "google/protobuf/wrappers.proto",
    "google.protobuf.StringValue": "google/protobuf/wrappers.proto",
    "google.protobuf.BoolValue": "google/protobuf/wrappers.proto",
    "google.protobuf.BytesValue": "google/protobuf/wrappers.proto",
    "google.protobuf.FloatValue": "google/protobuf/wrappers.proto",
    "google.protobuf.DoubleValue": "google/protobuf/wrappers.proto",
}

DefRef = Tuple[SchemaFile, TopLevelDef]


@dataclass(frozen=True)
class Resolution:
    """Where a type token points: a definition in the closure, or a well-known import."""

    file: Optional[SchemaFile] = None
    definition: Optional[TopLevelDef] = None
    well_known_import: Optional[str] = None

    @property
    def is_external(self) -> bool:
        return self.well_known_import is not None


class SymbolIndex:
    """Qualified and simple-name lookup tables over every closure file."""

    def __init__(self, files: Iterable[SchemaFile]):
        self._qualified: Dict[str, DefRef] = {}
        self._simple: Dict[str, List[DefRef]] = defaultdict(list)
        self._packages = set()

        for schema in files:
            if schema.package:
                self._packages.add(schema.package)
            for d in schema.definitions:
                if schema.package:
                    qualified = f"{schema.package}.{d.name}"
                    if qualified in self._qualified:
                        logger.debug("%s already defined in %s; ignoring %s",
                                     qualified, self._qualified[qualified][0].path, schema.path)
                    else:
                        self._qualified[qualified] = (schema, d)
                self._simple[d.name].append((schema, d))

    def lookup(self, qualified: str) -> Optional[DefRef]:
        return self._qualified.get(qualified)

    def candidates(self, name: str) -> List[DefRef]:
        return list(self._simple.get(name, ()))

    def _longest_package(self, token: str) -> Optional[str]:
        best = None
        for package in self._packages:
            if token.startswith(package + ".") and (best is None or len(package) > len(best)):
                best = package
        return best

    def resolve(self, token: str, schema: SchemaFile) -> Optional[Resolution]:
        """Resolve a field type token as seen from ``schema``.

        Order: scalar, same-file definition, own package, known package
        prefix, well-known type, then a unique simple-name match. Anything
        else (missing or ambiguous) resolves to None.
        """
        t = token.strip().lstrip(".")
        if not t or t in PROTO_PRIMITIVES:
            return None

        local = schema.get(t)
        if local is not None:
            return Resolution(schema, local)

        segments = t.split(".")
        hit: Optional[DefRef] = None
        if len(segments) == 1:
            if schema.package:
                hit = self.lookup(f"{schema.package}.{t}")
        else:
            package = self._longest_package(t)
            if package is not None:
                head = t[len(package) + 1:].split(".")[0]
                hit = self.lookup(f"{package}.{head}")
            if hit is None:
                # Nested path such as Outer.Inner
                outer = schema.get(segments[0])
                if outer is not None:
                    return Resolution(schema, outer)
                if schema.package:
                    hit = self.lookup(f"{schema.package}.{segments[0]}")
        if hit is not None:
            return Resolution(*hit)

        if t in WELL_KNOWN_TYPES:
            return Resolution(well_known_import=WELL_KNOWN_TYPES[t])

        matches = self._simple.get(segments[-1], [])
        if len(matches) == 1:
            return Resolution(*matches[0])
        if matches:
            logger.debug("ambiguous reference %r from %s (%d candidates)", token, schema.path, len(matches))
        else:
            logger.debug("unresolved reference %r from %s", token, schema.path)
        return None
