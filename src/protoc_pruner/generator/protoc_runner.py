from __future__ import annotations

import logging
import os
import subprocess
from typing import List, Sequence

from protoc_pruner.output import OutputWriter

logger = logging.getLogger(__name__)


class GenerationError(RuntimeError):
    """Raised when the external code generator is missing or fails."""


def build_command(template: Sequence[str], proto: str, proto_dir: str, out_dir: str) -> List[str]:
    """Substitute {proto}, {proto_dir} and {out_dir} into a command template."""
    return [arg.format(proto=proto, proto_dir=proto_dir, out_dir=out_dir) for arg in template]


def run_code_generator(
    template: Sequence[str],
    proto_dir: str,
    proto_files: Sequence[str],
    out_dir: str,
    writer: OutputWriter,
) -> List[List[str]]:
    """Run the generator once per exported schema file.

    Schema paths are passed relative to proto_dir, which is expected on the
    generator's include path. Returns the commands (also in dry-run mode).
    """
    writer.mkdir(out_dir)
    commands: List[List[str]] = []
    for proto in proto_files:
        cmd = build_command(template, os.path.relpath(proto, proto_dir), proto_dir, out_dir)
        commands.append(cmd)
        writer.describe("run " + " ".join(cmd))
        if writer.dry_run:
            continue
        try:
            subprocess.run(cmd, check=True, capture_output=True)
        except FileNotFoundError as e:
            raise GenerationError(f"code generator '{cmd[0]}' not found. Please install it and ensure it is in PATH.") from e
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or b"").decode("utf-8", errors="ignore")
            raise GenerationError(f"{cmd[0]} failed for {proto}: {stderr}") from e
        logger.debug("generated code for %s", proto)
    return commands
