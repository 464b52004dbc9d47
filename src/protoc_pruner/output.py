"""Filesystem mutations with a dry-run switch."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List

logger = logging.getLogger(__name__)


class ExportError(Exception):
    """Raised when an output file or directory cannot be written."""


class OutputWriter:
    """Performs (or, in dry-run mode, only describes) every filesystem change.

    Each action is recorded in ``actions`` either way, so a dry run shows
    exactly what a real run would do.
    """

    def __init__(self, dry_run: bool = False):
        self.dry_run = dry_run
        self.actions: List[str] = []

    def _record(self, action: str) -> None:
        self.actions.append(action)
        if self.dry_run:
            logger.info("[dry] %s", action)
        else:
            logger.debug(action)

    def mkdir(self, path: str) -> None:
        self._record(f"mkdir -p {path}")
        if self.dry_run:
            return
        try:
            os.makedirs(path, exist_ok=True)
        except OSError as e:
            raise ExportError(f"cannot create directory {path}: {e}") from e

    def write_text(self, path: str, text: str) -> None:
        self._record(f"write {path}")
        if self.dry_run:
            return
        try:
            Path(path).write_text(text, encoding="utf-8")
        except OSError as e:
            raise ExportError(f"cannot write {path}: {e}") from e

    def rename(self, src: str, dst: str) -> None:
        self._record(f"rename {src} -> {dst}")
        if self.dry_run:
            return
        try:
            os.replace(src, dst)
        except OSError as e:
            raise ExportError(f"cannot rename {src} to {dst}: {e}") from e

    def remove(self, path: str) -> None:
        self._record(f"delete {path}")
        if self.dry_run:
            return
        try:
            os.remove(path)
        except OSError as e:
            raise ExportError(f"cannot delete {path}: {e}") from e

    def describe(self, action: str) -> None:
        """Record an action carried out elsewhere (e.g. an external command)."""
        self._record(action)
