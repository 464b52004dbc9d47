"""Import-closure resolution over a set of search roots."""

from __future__ import annotations

import logging
import os
from collections import deque
from dataclasses import dataclass, field
from pathlib import Path
from typing import Deque, Dict, Iterable, List, Optional, Sequence

from protoc_pruner.models import SeedEntry
from protoc_pruner.parser.proto_ast_parser import scan_imports

logger = logging.getLogger(__name__)

PROTO_SUFFIX = ".proto"


class SeedResolutionError(Exception):
    """Raised when the seed list is empty or none of its files exist."""


@dataclass
class Closure:
    """Every file reachable by imports, plus the seeds as found on disk."""

    files: List[SeedEntry] = field(default_factory=list)
    seeds: List[SeedEntry] = field(default_factory=list)


def normalize_seed(raw: str) -> SeedEntry:
    """Turn a configured seed string into a SeedEntry."""
    path = raw.strip().replace("\\", "/")
    while path.startswith("./"):
        path = path[2:]
    if not path:
        raise SeedResolutionError("empty seed entry")
    if not path.lower().endswith(PROTO_SUFFIX):
        path += PROTO_SUFFIX
    return SeedEntry.from_path(path)


def load_seeds(paths: Iterable[str], import_dir: str = "", work_dir: str = ".") -> List[SeedEntry]:
    """Normalize configured seed paths, de-duplicated by base name.

    Relative seeds are taken from the working directory, or from the import
    directory when only that location exists.
    """
    seeds: List[SeedEntry] = []
    seen = set()
    for raw in paths:
        if not raw or not raw.strip():
            continue
        seed = normalize_seed(raw)
        if not os.path.isabs(seed.path):
            in_work_dir = os.path.join(work_dir, seed.path)
            in_import_dir = os.path.join(import_dir, seed.path) if import_dir else ""
            if not os.path.isfile(in_work_dir) and in_import_dir and os.path.isfile(in_import_dir):
                seed = SeedEntry.from_path(in_import_dir)
            else:
                seed = SeedEntry.from_path(in_work_dir)
        if seed.key in seen:
            continue
        seen.add(seed.key)
        seeds.append(seed)
    return seeds


def _walk_dirs(root: str, exclude: Sequence[str]) -> List[str]:
    """All directories under root (root included), hidden ones skipped."""
    excluded = {os.path.abspath(e) for e in exclude if e}
    found: List[str] = []
    if not os.path.isdir(root):
        return found
    for dirpath, dirnames, _ in os.walk(root):
        dirnames[:] = sorted(
            d for d in dirnames
            if not d.startswith(".") and os.path.abspath(os.path.join(dirpath, d)) not in excluded
        )
        found.append(dirpath)
    return found


def build_search_roots(
    import_dir: str,
    seeds: Sequence[SeedEntry],
    work_dir: str = ".",
    exclude: Sequence[str] = (),
) -> List[str]:
    """Ordered import search path: seed dirs, import tree, working tree."""
    roots: List[str] = [s.directory for s in seeds if s.directory]
    if import_dir:
        roots.extend(_walk_dirs(import_dir, exclude))
    roots.extend(_walk_dirs(work_dir, exclude))
    roots.append(work_dir)

    unique: List[str] = []
    seen = set()
    for root in roots:
        root = os.path.normpath(root)
        if root in seen:
            continue
        seen.add(root)
        unique.append(root)
    return unique


class DependencyResolver:
    """Breadth-first walk over ``import "x";`` statements.

    Files are identified by lower-cased base name, so two files sharing a
    base name in different directories are one logical import target.
    """

    def __init__(self, search_roots: Sequence[str]):
        self._roots = list(search_roots)

    def locate(self, entry: SeedEntry) -> SeedEntry:
        """Re-resolve an entry whose configured path does not exist."""
        if os.path.isfile(entry.path):
            return entry
        candidates: List[str] = []
        if entry.directory:
            candidates.append(os.path.join(entry.directory, entry.base))
        candidates.extend(os.path.join(r, entry.base) for r in self._roots)
        for candidate in candidates:
            if os.path.isfile(candidate):
                return SeedEntry.from_path(candidate)
        return entry

    def find_import(self, name: str, directory: str) -> Optional[str]:
        """First existing match for an import: own directory, then roots."""
        candidates: List[str] = []
        if directory:
            candidates.append(os.path.join(directory, name))
        candidates.extend(os.path.join(r, name) for r in self._roots)
        for candidate in candidates:
            if os.path.isfile(candidate):
                return candidate
        return None

    def collect(self, seeds: Sequence[SeedEntry]) -> Closure:
        if not seeds:
            raise SeedResolutionError("no seed files configured")

        seen: Dict[str, SeedEntry] = {}
        queue: Deque[SeedEntry] = deque()

        def push(entry: SeedEntry) -> None:
            if entry.key in seen:
                return
            seen[entry.key] = entry
            queue.append(entry)

        resolved_seeds: List[SeedEntry] = []
        for seed in seeds:
            entry = self.locate(seed)
            if not os.path.isfile(entry.path):
                logger.warning("seed %s not found in any search root", seed.path)
            push(entry)
            resolved_seeds.append(entry)

        if not any(os.path.isfile(s.path) for s in resolved_seeds):
            missing = ", ".join(s.path for s in resolved_seeds)
            raise SeedResolutionError(f"none of the seed files could be found: {missing}")

        while queue:
            current = self.locate(queue.popleft())
            try:
                text = Path(current.path).read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.warning("cannot scan imports of %s: %s", current.path, e)
                continue
            for name in scan_imports(text):
                found = self.find_import(name, current.directory)
                if found is None:
                    logger.debug("unresolved import %r in %s", name, current.path)
                    continue
                push(SeedEntry.from_path(found))

        files = sorted(seen.values(), key=lambda e: e.key)
        logger.info("import closure: %d file(s) from %d seed(s)", len(files), len(resolved_seeds))
        return Closure(files=files, seeds=resolved_seeds)
