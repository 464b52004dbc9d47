"""Token-driven block extractor for protobuf (.proto) files.

Consumes a token stream from proto_tokenizer and produces a SchemaFile:
header declarations plus the exact span of every top-level message/enum.
Definition bodies are not modelled; they are carried as source text and
scanned for field type references.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from .proto_ast import DEFAULT_SYNTAX, SchemaFile, TopLevelDef
from .proto_tokenizer import ProtoToken, ProtoTokenType, tokenize_proto

logger = logging.getLogger(__name__)

_DEFINITION_KINDS = {
    ProtoTokenType.MESSAGE: "message",
    ProtoTokenType.ENUM: "enum",
}

_LABELS = {
    ProtoTokenType.REPEATED,
    ProtoTokenType.OPTIONAL,
    ProtoTokenType.REQUIRED,
}

# Statements starting with these are never field declarations.
_NON_FIELD_STARTS = {
    ProtoTokenType.OPTION,
    ProtoTokenType.RESERVED,
    ProtoTokenType.MESSAGE,
    ProtoTokenType.ENUM,
    ProtoTokenType.ONEOF,
    ProtoTokenType.EXTEND,
    ProtoTokenType.SERVICE,
    ProtoTokenType.IMPORT,
    ProtoTokenType.PACKAGE,
    ProtoTokenType.SYNTAX,
}

_STATEMENT_BOUNDARIES = {
    ProtoTokenType.LBRACE,
    ProtoTokenType.RBRACE,
    ProtoTokenType.SEMICOLON,
}


class ProtoParseError(Exception):
    """Raised when a schema file cannot be read or a block never closes."""

    def __init__(self, message: str, token: ProtoToken | None = None, path: str = ""):
        location = path
        if token:
            location = f"{path}:{token.line}:{token.col}" if path else f"Line {token.line}:{token.col}"
        super().__init__(f"{location}: {message}" if location else message)


def matching_brace(tokens: Sequence[ProtoToken], open_idx: int) -> Optional[int]:
    """Index of the RBRACE closing the LBRACE at open_idx, or None."""
    depth = 0
    for i in range(open_idx, len(tokens)):
        tt = tokens[i].type
        if tt == ProtoTokenType.LBRACE:
            depth += 1
        elif tt == ProtoTokenType.RBRACE:
            depth -= 1
            if depth == 0:
                return i
    return None


class ProtoParser:
    """Extracts header statements and top-level blocks from a token stream."""

    def __init__(self, tokens: List[ProtoToken], source: str, path: str = ""):
        self._tokens = tokens
        self._source = source
        self._path = path
        self._pos = 0

    # -- public API --

    def parse(self) -> SchemaFile:
        """Parse the full token stream into a SchemaFile."""
        syntax: Optional[str] = None
        package: Optional[str] = None
        imports: List[str] = []
        definitions: Dict[str, TopLevelDef] = {}

        while not self._at_end():
            tt = self._peek().type

            if tt == ProtoTokenType.SYNTAX:
                value = self._parse_syntax()
                if syntax is None:
                    syntax = value
            elif tt == ProtoTokenType.PACKAGE:
                value = self._parse_package()
                if package is None:
                    package = value
            elif tt == ProtoTokenType.IMPORT:
                value = self._parse_import()
                if value:
                    imports.append(value)
            elif tt in _DEFINITION_KINDS:
                definition = self._parse_definition()
                if definition.name in definitions:
                    logger.debug("%s: duplicate definition %s ignored", self._path, definition.name)
                else:
                    definitions[definition.name] = definition
            elif tt == ProtoTokenType.LBRACE:
                # service / extend / aggregate option bodies
                self._skip_block()
            else:
                self._advance()

        return SchemaFile(
            path=self._path,
            package=package or "",
            syntax=syntax or DEFAULT_SYNTAX,
            imports=tuple(imports),
            definitions=tuple(definitions.values()),
        )

    def parse_imports(self) -> List[str]:
        """Collect import paths only; tolerant of unterminated blocks."""
        imports: List[str] = []
        while not self._at_end():
            if self._peek().type == ProtoTokenType.IMPORT:
                value = self._parse_import()
                if value:
                    imports.append(value)
            else:
                self._advance()
        return imports

    # -- header statements --

    def _parse_syntax(self) -> Optional[str]:
        """Parse: SYNTAX EQUALS STRING_LIT SEMICOLON"""
        self._expect(ProtoTokenType.SYNTAX)
        value = None
        if self._peek().type == ProtoTokenType.EQUALS:
            self._advance()
            if self._peek().type == ProtoTokenType.STRING_LIT:
                value = self._advance().value
        self._skip_statement()
        return value

    def _parse_package(self) -> Optional[str]:
        """Parse: PACKAGE IDENT SEMICOLON"""
        self._expect(ProtoTokenType.PACKAGE)
        value = self._advance().value.lstrip(".") if self._peek().is_word else None
        self._skip_statement()
        return value

    def _parse_import(self) -> Optional[str]:
        """Parse: IMPORT [public|weak] STRING_LIT SEMICOLON"""
        self._expect(ProtoTokenType.IMPORT)
        tok = self._peek()
        if tok.type == ProtoTokenType.IDENT and tok.value in ("public", "weak"):
            self._advance()
        value = None
        if self._peek().type == ProtoTokenType.STRING_LIT:
            value = self._advance().value.strip()
        self._skip_statement()
        return value

    # -- definitions --

    def _parse_definition(self) -> TopLevelDef:
        """Parse: (MESSAGE | ENUM) IDENT LBRACE ... RBRACE"""
        start_idx = self._pos
        keyword = self._advance()
        name_tok = self._peek()
        if not name_tok.is_word:
            raise ProtoParseError(
                f"Expected {keyword.value} name, got {name_tok.type.name} ({name_tok.value!r})",
                name_tok,
                self._path,
            )
        self._advance()
        self._expect(ProtoTokenType.LBRACE)
        close_idx = matching_brace(self._tokens, self._pos - 1)
        if close_idx is None:
            raise ProtoParseError(
                f"{keyword.value} {name_tok.value!r} is not closed",
                keyword,
                self._path,
            )
        self._pos = close_idx + 1
        close = self._tokens[close_idx]
        return TopLevelDef(
            kind=_DEFINITION_KINDS[keyword.type],
            name=name_tok.value,
            start=keyword.pos,
            end=close.end,
            text=self._source[keyword.pos:close.end],
            refs=tuple(scan_field_types(self._tokens[start_idx:close_idx + 1])),
        )

    # -- skip helpers --

    def _skip_statement(self) -> None:
        """Skip tokens until (and including) the next semicolon."""
        while not self._at_end():
            tok = self._advance()
            if tok.type == ProtoTokenType.SEMICOLON:
                return

    def _skip_block(self) -> None:
        """Skip a braced block starting at the current LBRACE."""
        open_tok = self._peek()
        close_idx = matching_brace(self._tokens, self._pos)
        if close_idx is None:
            raise ProtoParseError("block is not closed", open_tok, self._path)
        self._pos = close_idx + 1

    # -- token helpers --

    def _peek(self) -> ProtoToken:
        return self._tokens[self._pos]

    def _advance(self) -> ProtoToken:
        tok = self._tokens[self._pos]
        if tok.type != ProtoTokenType.EOF:
            self._pos += 1
        return tok

    def _expect(self, expected: ProtoTokenType) -> ProtoToken:
        tok = self._peek()
        if tok.type != expected:
            raise ProtoParseError(
                f"Expected {expected.name}, got {tok.type.name} ({tok.value!r})",
                tok,
                self._path,
            )
        return self._advance()

    def _at_end(self) -> bool:
        return self._tokens[self._pos].type == ProtoTokenType.EOF


# -- field type references --


def _token_at(tokens: Sequence[ProtoToken], i: int) -> Optional[ProtoToken]:
    return tokens[i] if i < len(tokens) else None


def _match_field(tokens: Sequence[ProtoToken], i: int) -> List[str]:
    """Type tokens of the field declaration starting at i, or [] if none.

    Recognises ``[label] Type name = N`` and ``[label] map<K, V> name = N``.
    """
    tok = _token_at(tokens, i)
    if tok is None or tok.type in _NON_FIELD_STARTS:
        return []
    if tok.type in _LABELS:
        i += 1
        tok = _token_at(tokens, i)
        if tok is None:
            return []

    if tok.type == ProtoTokenType.MAP:
        shape = tokens[i + 1:i + 6]
        if len(shape) < 5:
            return []
        lt, key, comma, value, gt = shape
        if not (
            lt.type == ProtoTokenType.LANGLE
            and key.is_word
            and comma.type == ProtoTokenType.COMMA
            and value.is_word
            and gt.type == ProtoTokenType.RANGLE
        ):
            return []
        types = [key.value, value.value]
        i += 6
    elif tok.is_word:
        types = [tok.value]
        i += 1
    else:
        return []

    name, equals, number = (_token_at(tokens, i + k) for k in range(3))
    if (
        name is not None
        and name.is_word
        and equals is not None
        and equals.type == ProtoTokenType.EQUALS
        and number is not None
        and number.type == ProtoTokenType.NUMBER
    ):
        return types
    return []


def scan_field_types(tokens: Sequence[ProtoToken]) -> List[str]:
    """Field type tokens referenced by a definition, in first-seen order.

    Fields inside oneof and nested blocks are included. Names declared by
    message/enum blocks inside the definition itself are left out: those
    resolve to the enclosing definition, which is already selected.
    """
    found: Dict[str, None] = {}
    declared = set()
    at_start = True
    for i, tok in enumerate(tokens):
        if tok.type in _STATEMENT_BOUNDARIES:
            at_start = True
            continue
        if not at_start:
            continue
        at_start = False
        if tok.type in (ProtoTokenType.MESSAGE, ProtoTokenType.ENUM):
            name_tok = _token_at(tokens, i + 1)
            if name_tok is not None and name_tok.is_word:
                declared.add(name_tok.value)
            continue
        for type_name in _match_field(tokens, i):
            found.setdefault(type_name, None)
    return [t for t in found if t.lstrip(".").split(".")[0] not in declared]


def collect_type_refs(text: str) -> List[str]:
    """Field type tokens referenced anywhere in a definition's text."""
    return scan_field_types(tokenize_proto(text))


def scan_imports(text: str) -> List[str]:
    """Import paths declared by a schema source, ignoring commented-out ones."""
    return ProtoParser(tokenize_proto(text), text).parse_imports()
