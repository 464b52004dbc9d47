"""YAML configuration for an export run."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple

import yaml

from protoc_pruner.case import normalize_style
from protoc_pruner.generator.proto_generator import LANGUAGE_ALIASES
from protoc_pruner.models import KeepDirectives
from protoc_pruner.resolver import normalize_seed

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Raised when the configuration is missing, malformed or invalid."""


@dataclass(frozen=True)
class ImportSettings:
    dir: str = ""
    prune: bool = True
    files: Tuple[str, ...] = ()
    keep: KeepDirectives = field(default_factory=KeepDirectives)


@dataclass(frozen=True)
class ExportSettings:
    dir: str = "."
    language: str = ""
    namespace: str = ""
    file_name_case: str = "keep"
    field_name_case: str = "keep"


@dataclass(frozen=True)
class GenerateSettings:
    """External code generator run over the exported schema files."""

    command: Tuple[str, ...] = ()
    out_dir: str = ""
    extension: str = ""
    file_name_case: str = "keep"
    clean: bool = False


@dataclass(frozen=True)
class ExportConfig:
    import_: ImportSettings
    export: ExportSettings
    dry_run: bool = False
    generate: Optional[GenerateSettings] = None


# -- value helpers --


def _section(raw: Mapping[str, Any], key: str, where: str = "") -> Mapping[str, Any]:
    value = raw.get(key)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"'{where}{key}' must be a mapping")
    return value


def _str(raw: Mapping[str, Any], key: str, where: str, default: str = "") -> str:
    value = raw.get(key)
    if value is None:
        return default
    if not isinstance(value, (str, int, float)) or isinstance(value, bool):
        raise ConfigurationError(f"'{where}{key}' must be a string")
    return str(value).strip()


def _bool(raw: Mapping[str, Any], key: str, where: str, default: bool) -> bool:
    value = raw.get(key)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ConfigurationError(f"'{where}{key}' must be true or false")
    return value


def _list(raw: Mapping[str, Any], key: str, where: str) -> List[Any]:
    value = raw.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigurationError(f"'{where}{key}' must be a list")
    return value


def _names(values: List[Any], where: str) -> FrozenSet[str]:
    names = set()
    for v in values:
        if not isinstance(v, str):
            raise ConfigurationError(f"'{where}' entries must be strings")
        if v.strip():
            names.add(v.strip())
    return frozenset(names)


def _case_style(raw: Mapping[str, Any], key: str, where: str) -> str:
    value = _str(raw, key, where, "keep")
    try:
        return normalize_style(value)
    except KeyError:
        raise ConfigurationError(
            f"unsupported '{where}{key}': {value!r} (supported: camel, snake, compact, keep)"
        ) from None


# -- sections --


def _parse_keep(raw: Mapping[str, Any]) -> Tuple[Tuple[str, ...], KeepDirectives]:
    files: List[str] = []
    file_keep: Dict[str, FrozenSet[str]] = {}
    for entry in _list(raw, "files", "import.keep."):
        if isinstance(entry, str):
            entry = {"file": entry}
        if not isinstance(entry, Mapping):
            raise ConfigurationError("'import.keep.files' entries must be mappings with a 'file' key")
        path = _str(entry, "file", "import.keep.files[].")
        if not path:
            continue
        files.append(path)
        names = _names(_list(entry, "keep", "import.keep.files[]."), "import.keep.files[].keep")
        if names:
            key = normalize_seed(path).key
            file_keep[key] = file_keep.get(key, frozenset()) | names

    type_keep: Dict[str, FrozenSet[str]] = {}
    for entry in _list(raw, "types", "import.keep."):
        if not isinstance(entry, Mapping):
            raise ConfigurationError("'import.keep.types' entries must be mappings with a 'type' key")
        type_name = _str(entry, "type", "import.keep.types[].")
        if not type_name:
            continue
        names = _names(_list(entry, "keep", "import.keep.types[]."), "import.keep.types[].keep")
        if names:
            type_keep[type_name] = type_keep.get(type_name, frozenset()) | names

    return tuple(files), KeepDirectives(files=file_keep, types=type_keep)


def _parse_generate(raw: Mapping[str, Any]) -> Optional[GenerateSettings]:
    if raw.get("generate") is None:
        return None
    section = _section(raw, "generate")
    command = _list(section, "command", "generate.")
    if not command or not all(isinstance(c, str) for c in command):
        raise ConfigurationError("'generate.command' must be a non-empty list of strings")
    out_dir = _str(section, "outDir", "generate.")
    if not out_dir:
        raise ConfigurationError("'generate.outDir' is required when 'generate' is set")
    extension = _str(section, "extension", "generate.")
    if extension and not extension.startswith("."):
        extension = "." + extension
    return GenerateSettings(
        command=tuple(command),
        out_dir=out_dir,
        extension=extension,
        file_name_case=_case_style(section, "fileNameCase", "generate."),
        clean=_bool(section, "clean", "generate.", False),
    )


def parse_config(raw: Mapping[str, Any]) -> ExportConfig:
    """Validate a loaded YAML document into an ExportConfig."""
    if not isinstance(raw, Mapping):
        raise ConfigurationError("configuration root must be a mapping")

    imp = _section(raw, "import")
    exp = _section(raw, "export")

    language = _str(exp, "language", "export.").lower()
    if not language:
        raise ConfigurationError(
            "'export.language' is required (supported: " + ", ".join(LANGUAGE_ALIASES) + ")"
        )
    if language not in LANGUAGE_ALIASES:
        raise ConfigurationError(
            f"unsupported 'export.language': {language!r} (supported: " + ", ".join(LANGUAGE_ALIASES) + ")"
        )

    files, keep = _parse_keep(_section(imp, "keep", "import."))

    return ExportConfig(
        import_=ImportSettings(
            dir=_str(imp, "dir", "import."),
            prune=_bool(imp, "prune", "import.", True),
            files=files,
            keep=keep,
        ),
        export=ExportSettings(
            dir=_str(exp, "dir", "export.", ".") or ".",
            language=LANGUAGE_ALIASES[language],
            namespace=_str(exp, "namespace", "export."),
            file_name_case=_case_style(exp, "fileNameCase", "export."),
            field_name_case=_case_style(exp, "fieldNameCase", "export."),
        ),
        dry_run=_bool(raw, "dryRun", "", False),
        generate=_parse_generate(raw),
    )


def load_config(path: str) -> ExportConfig:
    """Read and validate a YAML configuration file."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except OSError as e:
        raise ConfigurationError(f"cannot read configuration {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"invalid YAML in {path}: {e}") from e
    if raw is None:
        raise ConfigurationError(f"configuration {path} is empty")
    logger.debug("loaded configuration from %s", path)
    return parse_config(raw)
