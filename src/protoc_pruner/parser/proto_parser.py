from __future__ import annotations

from pathlib import Path

from .proto_ast import SchemaFile
from .proto_ast_parser import ProtoParseError, ProtoParser
from .proto_tokenizer import tokenize_proto


def parse_proto_text(text: str, path: str = "") -> SchemaFile:
    """Build the SchemaFile for already-loaded schema source."""
    return ProtoParser(tokenize_proto(text), text, path).parse()


def parse_proto_file(file_path: str) -> SchemaFile:
    """Read and parse a .proto file; unreadable files raise ProtoParseError."""
    try:
        text = Path(file_path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ProtoParseError(f"cannot read schema file: {e}", path=file_path) from e
    return parse_proto_text(text, path=file_path)
