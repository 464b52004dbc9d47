"""Post-generation clean-up of the generated-code directory."""

from __future__ import annotations

import logging
import os
from typing import AbstractSet, Dict, List, Mapping, Optional

from protoc_pruner.case import apply_case
from protoc_pruner.output import OutputWriter

logger = logging.getLogger(__name__)


def _generated_files(out_dir: str, extension: str) -> List[str]:
    if not os.path.isdir(out_dir):
        return []
    return sorted(
        name for name in os.listdir(out_dir)
        if os.path.isfile(os.path.join(out_dir, name)) and name.lower().endswith(extension.lower())
    )


def expected_generated_name(proto_file_name: str, extension: str, style: str) -> str:
    """Generated file name for an exported schema: Foo.proto -> Foo.cs."""
    stem = os.path.splitext(proto_file_name)[0]
    return apply_case(stem, style) + extension


def rename_generated(out_dir: str, extension: str, style: str, writer: OutputWriter) -> Dict[str, str]:
    """Rename generated files whose stem is not already in the target case.

    Returns old name -> new name for every rename, performed or (in dry-run
    mode) only described.
    """
    renamed: Dict[str, str] = {}
    for name in _generated_files(out_dir, extension):
        stem = name[: len(name) - len(extension)]
        target = apply_case(stem, style) + extension
        if target == name:
            continue
        writer.rename(os.path.join(out_dir, name), os.path.join(out_dir, target))
        renamed[name] = target
    return renamed


def delete_extras(
    out_dir: str,
    extension: str,
    expected: AbstractSet[str],
    writer: OutputWriter,
    renamed: Optional[Mapping[str, str]] = None,
) -> List[str]:
    """Delete generated files that no exported schema accounts for.

    ``renamed`` is the result of rename_generated; files are judged by the
    names they have after renaming, whether or not the renames ran.
    """
    renamed = renamed or {}
    names = sorted({renamed.get(name, name) for name in _generated_files(out_dir, extension)})
    deleted: List[str] = []
    for name in names:
        if name in expected:
            continue
        writer.remove(os.path.join(out_dir, name))
        deleted.append(name)
    if deleted:
        logger.info("removed %d stale generated file(s) from %s", len(deleted), out_dir)
    return deleted
