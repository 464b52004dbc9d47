"""Reachability pruning and re-emission of schema files.

Seeds are expanded through the type references of every selected
definition until no new definition is reached. Each closure file is then
re-emitted with only its selected definitions and with imports derived
from what those definitions still reference.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, List, Optional, Sequence, Set, Tuple

from protoc_pruner.case import format_proto_file_name
from protoc_pruner.field_pruner import drop_reserved_statements, prune_message_fields, rename_message_fields
from protoc_pruner.generator.proto_generator import namespace_option, render_schema_file
from protoc_pruner.models import KeepDirectives, SeedEntry
from protoc_pruner.parser.proto_ast import SchemaFile, TopLevelDef
from protoc_pruner.parser.proto_ast_parser import collect_type_refs
from protoc_pruner.sanitizer import strip_self_package_qualifiers
from protoc_pruner.symbols import SymbolIndex

logger = logging.getLogger(__name__)


@dataclass
class EmitOptions:
    language: str = "csharp"
    namespace: str = ""
    file_name_case: str = "keep"
    field_name_case: str = "keep"


@dataclass
class PrunedFile:
    source: SchemaFile
    file_name: str
    text: str
    definitions: List[str] = field(default_factory=list)

    @property
    def is_stub(self) -> bool:
        return not self.definitions


class SchemaPruner:
    """Computes the selection over a parsed closure and emits the result."""

    def __init__(
        self,
        files: Sequence[SchemaFile],
        seeds: Sequence[SeedEntry],
        keep: Optional[KeepDirectives] = None,
        prune: bool = True,
    ):
        self.files = sorted(files, key=lambda f: f.key)
        self.symbols = SymbolIndex(self.files)
        self.prune = prune
        # Keep directives only apply while pruning.
        self.keep = keep if (keep is not None and prune) else KeepDirectives()
        self._seed_keys = {s.key for s in seeds}
        self._refs: Dict[Tuple[str, str], List[str]] = {}
        self._texts: Dict[Tuple[str, str], str] = {}
        self.selection: Dict[str, Set[str]] = {f.key: set() for f in self.files}

    # -- definition views --

    def definition_text(self, schema: SchemaFile, definition: TopLevelDef) -> str:
        """Source text of a definition after its type keep-set is applied."""
        cache_key = (schema.key, definition.name)
        if cache_key not in self._texts:
            text = definition.text
            if definition.kind == "message":
                fields = self.keep.fields_for(schema.package, definition.name)
                if fields is not None:
                    text = prune_message_fields(text, fields)
            self._texts[cache_key] = text
        return self._texts[cache_key]

    def references(self, schema: SchemaFile, definition: TopLevelDef) -> List[str]:
        """Type tokens still referenced once field pruning is applied."""
        cache_key = (schema.key, definition.name)
        if cache_key not in self._refs:
            text = self.definition_text(schema, definition)
            refs = list(definition.refs) if text == definition.text else collect_type_refs(text)
            self._refs[cache_key] = refs
        return self._refs[cache_key]

    # -- selection --

    def _seed(self, queue: Deque[Tuple[SchemaFile, TopLevelDef]]) -> None:
        for schema in self.files:
            if self.prune and schema.key not in self._seed_keys:
                continue
            wanted = self.keep.definitions_for(schema.key)
            if wanted is None:
                chosen = list(schema.definitions)
            else:
                chosen = [d for d in schema.definitions if d.name in wanted]
                missing = sorted(set(wanted) - set(schema.names()))
                if missing:
                    logger.warning("%s does not define %s", schema.path, ", ".join(missing))
            for d in chosen:
                self._add(schema, d, queue)

    def _add(self, schema: SchemaFile, definition: TopLevelDef, queue) -> None:
        selected = self.selection[schema.key]
        if definition.name in selected:
            return
        selected.add(definition.name)
        queue.append((schema, definition))

    def select(self) -> Dict[str, Set[str]]:
        """Run the closure walk; returns file key -> selected definition names."""
        queue: Deque[Tuple[SchemaFile, TopLevelDef]] = deque()
        self._seed(queue)
        while queue:
            schema, definition = queue.popleft()
            for token in self.references(schema, definition):
                resolved = self.symbols.resolve(token, schema)
                if resolved is None or resolved.is_external:
                    continue
                self._add(resolved.file, resolved.definition, queue)

        total = sum(len(names) for names in self.selection.values())
        logger.info("selected %d definition(s) across %d file(s)", total, len(self.files))
        return self.selection

    # -- emission --

    def _emit_file(self, schema: SchemaFile, options: EmitOptions) -> PrunedFile:
        chosen = [d for d in schema.definitions if d.name in self.selection[schema.key]]
        imports: Set[str] = set()
        well_known: Set[str] = set()
        bodies: List[str] = []

        for d in chosen:
            for token in self.references(schema, d):
                resolved = self.symbols.resolve(token, schema)
                if resolved is None:
                    continue
                if resolved.is_external:
                    well_known.add(resolved.well_known_import)
                elif resolved.file.key != schema.key:
                    imports.add(format_proto_file_name(resolved.file.stem, options.file_name_case))

            text = drop_reserved_statements(self.definition_text(schema, d))
            text = strip_self_package_qualifiers(text, schema.package)
            if d.kind == "message":
                text = rename_message_fields(text, options.field_name_case)
            bodies.append(text)

        text = render_schema_file(
            syntax=schema.syntax,
            package=schema.package,
            imports=sorted(imports),
            well_known_imports=sorted(well_known),
            option_line=namespace_option(options.language, options.namespace),
            definitions=bodies,
        )
        return PrunedFile(
            source=schema,
            file_name=format_proto_file_name(schema.stem, options.file_name_case),
            text=text,
            definitions=[d.name for d in chosen],
        )

    def emit(self, options: EmitOptions) -> List[PrunedFile]:
        """One output per closure file, stubs included, ordered by base name."""
        return [self._emit_file(schema, options) for schema in self.files]


def prune_schemas(
    files: Sequence[SchemaFile],
    seeds: Sequence[SeedEntry],
    keep: Optional[KeepDirectives],
    options: EmitOptions,
    prune: bool = True,
) -> List[PrunedFile]:
    """Select reachable definitions and render every closure file."""
    pruner = SchemaPruner(files, seeds, keep, prune=prune)
    pruner.select()
    return pruner.emit(options)
