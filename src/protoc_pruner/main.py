from __future__ import annotations

import argparse
import logging
import os
import sys
from dataclasses import dataclass, field, replace
from typing import List, Optional

from protoc_pruner.cleaner import delete_extras, expected_generated_name, rename_generated
from protoc_pruner.config import ConfigurationError, ExportConfig, load_config
from protoc_pruner.generator.proto_generator import write_schema_files
from protoc_pruner.generator.protoc_runner import GenerationError, run_code_generator
from protoc_pruner.output import ExportError, OutputWriter
from protoc_pruner.parser.proto_ast_parser import ProtoParseError
from protoc_pruner.parser.proto_parser import parse_proto_file
from protoc_pruner.pruner import EmitOptions, PrunedFile, prune_schemas
from protoc_pruner.resolver import (
    DependencyResolver,
    SeedResolutionError,
    build_search_roots,
    load_seeds,
)

DEFAULT_CONFIG = "protoc-pruner.yaml"

FATAL_ERRORS = (
    ConfigurationError,
    SeedResolutionError,
    ProtoParseError,
    ExportError,
    GenerationError,
)


@dataclass
class ExportResult:
    outputs: List[PrunedFile] = field(default_factory=list)
    written: List[str] = field(default_factory=list)
    actions: List[str] = field(default_factory=list)


def export(config: ExportConfig, work_dir: str = ".") -> ExportResult:
    """Resolve, parse, prune and write: the whole pipeline for one config."""
    imp, exp = config.import_, config.export
    import_dir = os.path.join(work_dir, imp.dir) if imp.dir else ""
    export_dir = os.path.join(work_dir, exp.dir)

    # 1. Resolve the import closure
    seeds = load_seeds(imp.files, import_dir, work_dir)
    roots = build_search_roots(import_dir, seeds, work_dir, exclude=[export_dir])
    closure = DependencyResolver(roots).collect(seeds)
    print(f"Resolved {len(closure.files)} proto file(s) from {len(closure.seeds)} seed(s)")

    # 2. Parse every file in the closure
    schemas = []
    for entry in closure.files:
        schema = parse_proto_file(entry.path)
        schemas.append(schema)
        print(f"  Parsed {entry.path}: {len(schema.definitions)} definition(s)")

    # 3. Prune and render
    options = EmitOptions(
        language=exp.language,
        namespace=exp.namespace,
        file_name_case=exp.file_name_case,
        field_name_case=exp.field_name_case,
    )
    seed_entries = closure.seeds if imp.prune else closure.files
    outputs = prune_schemas(schemas, seed_entries, imp.keep, options, prune=imp.prune)

    # 4. Write
    writer = OutputWriter(dry_run=config.dry_run)
    written = write_schema_files(outputs, export_dir, writer)
    for out in outputs:
        kind = "stub" if out.is_stub else f"{len(out.definitions)} definition(s)"
        print(f"  Exported {out.file_name}: {kind}")

    # 5. Optional code generation and clean-up
    gen = config.generate
    if gen is not None:
        gen_dir = os.path.join(work_dir, gen.out_dir)
        run_code_generator(gen.command, export_dir, written, gen_dir, writer)
        if gen.clean and gen.extension:
            renamed = rename_generated(gen_dir, gen.extension, gen.file_name_case, writer)
            expected = {
                expected_generated_name(out.file_name, gen.extension, gen.file_name_case)
                for out in outputs
            }
            delete_extras(gen_dir, gen.extension, expected, writer, renamed)

    if writer.dry_run:
        for action in writer.actions:
            print(f"[dry] {action}")

    return ExportResult(outputs=outputs, written=written, actions=list(writer.actions))


def run(config_path: str, work_dir: str = ".", dry_run: Optional[bool] = None) -> ExportResult:
    """Load the configuration and run the export."""
    config = load_config(config_path)
    if dry_run is not None:
        config = replace(config, dry_run=dry_run)
    result = export(config, work_dir)
    print("Done!")
    return result


def main():
    parser = argparse.ArgumentParser(
        description="Prune a shared .proto tree down to what one client needs",
    )
    parser.add_argument(
        "-c", "--config",
        default=DEFAULT_CONFIG,
        help=f"YAML configuration file (default: {DEFAULT_CONFIG})",
    )
    parser.add_argument(
        "--work-dir",
        default=".",
        help="Directory that relative config paths and import search start from",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        default=None,
        help="Describe filesystem changes instead of making them",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        run(args.config, args.work_dir, dry_run=args.dry_run)
    except FATAL_ERRORS as e:
        print(f"FATAL: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
