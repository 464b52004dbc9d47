from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from jinja2 import Environment, FileSystemLoader

from protoc_pruner.output import OutputWriter
from protoc_pruner.sanitizer import sanitize_proto_output

# Accepted export.language spellings -> canonical language key
LANGUAGE_ALIASES: Dict[str, str] = {
    "csharp": "csharp",
    "cs": "csharp",
    "c#": "csharp",
    "golang": "go",
    "go": "go",
    "lua": "lua",
}

# Canonical language -> namespace option line (None: the language has no such option)
NAMESPACE_OPTIONS: Dict[str, Optional[str]] = {
    "csharp": 'option csharp_namespace = "{namespace}";',
    "go": 'option go_package = "{namespace}";',
    "lua": None,
}


def namespace_option(language: str, namespace: str) -> str:
    """The namespace option line for a language, or "" when none applies."""
    if not namespace:
        return ""
    template = NAMESPACE_OPTIONS[LANGUAGE_ALIASES[language.strip().lower()]]
    if template is None:
        return ""
    return template.format(namespace=namespace)


def _get_template_env() -> Environment:
    template_dir = Path(__file__).parent.parent / "templates"
    return Environment(
        loader=FileSystemLoader(str(template_dir)),
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )


def render_schema_file(
    syntax: str,
    package: str,
    imports: Sequence[str] = (),
    well_known_imports: Sequence[str] = (),
    option_line: str = "",
    definitions: Sequence[str] = (),
) -> str:
    """Render and sanitize one output schema file."""
    template = _get_template_env().get_template("schema.proto.j2")
    text = template.render(
        syntax=syntax,
        package=package,
        imports=list(imports),
        well_known_imports=list(well_known_imports),
        namespace_option=option_line,
        definitions=list(definitions),
    )
    return sanitize_proto_output(text)


def write_schema_files(outputs, export_dir: str, writer: OutputWriter) -> List[str]:
    """Write every pruned file under export_dir.

    Returns the destination paths (also in dry-run mode, where nothing is written).
    """
    writer.mkdir(export_dir)
    written: List[str] = []
    for output in outputs:
        path = os.path.join(export_dir, output.file_name)
        writer.write_text(path, output.text)
        written.append(path)
    return written
