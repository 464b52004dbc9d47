"""Tokenizer for protobuf (.proto) files.

Every token carries its character offsets (``pos``/``end``) into the source
text, so callers can slice exact definition spans back out of the original
file.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import List


class ProtoTokenType(Enum):
    # Keywords
    MESSAGE = auto()
    ENUM = auto()
    ONEOF = auto()
    EXTEND = auto()
    SERVICE = auto()
    MAP = auto()
    REPEATED = auto()
    OPTIONAL = auto()
    REQUIRED = auto()
    SYNTAX = auto()
    PACKAGE = auto()
    OPTION = auto()
    RESERVED = auto()
    IMPORT = auto()

    # Delimiters
    LBRACE = auto()
    RBRACE = auto()
    LBRACKET = auto()
    RBRACKET = auto()
    LANGLE = auto()
    RANGLE = auto()
    COMMA = auto()
    SEMICOLON = auto()
    EQUALS = auto()

    # Literals
    IDENT = auto()
    NUMBER = auto()
    STRING_LIT = auto()

    # Special
    EOF = auto()


_KEYWORDS = {
    "message": ProtoTokenType.MESSAGE,
    "enum": ProtoTokenType.ENUM,
    "oneof": ProtoTokenType.ONEOF,
    "extend": ProtoTokenType.EXTEND,
    "service": ProtoTokenType.SERVICE,
    "map": ProtoTokenType.MAP,
    "repeated": ProtoTokenType.REPEATED,
    "optional": ProtoTokenType.OPTIONAL,
    "required": ProtoTokenType.REQUIRED,
    "syntax": ProtoTokenType.SYNTAX,
    "package": ProtoTokenType.PACKAGE,
    "option": ProtoTokenType.OPTION,
    "reserved": ProtoTokenType.RESERVED,
    "import": ProtoTokenType.IMPORT,
}

KEYWORD_TYPES = frozenset(_KEYWORDS.values())

_PUNCTUATION = {
    "{": ProtoTokenType.LBRACE,
    "}": ProtoTokenType.RBRACE,
    "[": ProtoTokenType.LBRACKET,
    "]": ProtoTokenType.RBRACKET,
    "<": ProtoTokenType.LANGLE,
    ">": ProtoTokenType.RANGLE,
    ",": ProtoTokenType.COMMA,
    ";": ProtoTokenType.SEMICOLON,
    "=": ProtoTokenType.EQUALS,
}


@dataclass
class ProtoToken:
    type: ProtoTokenType
    value: str
    line: int
    col: int
    pos: int = 0
    end: int = 0

    @property
    def is_word(self) -> bool:
        """True for identifiers and keywords (keywords are legal field names)."""
        return self.type == ProtoTokenType.IDENT or self.type in KEYWORD_TYPES


def _is_ident_start(ch: str) -> bool:
    return ch.isalpha() or ch == "_"


def tokenize_proto(text: str) -> List[ProtoToken]:
    """Tokenize a protobuf source string into a list of tokens."""
    tokens: List[ProtoToken] = []
    i = 0
    line = 1
    line_start = 0
    n = len(text)

    while i < n:
        ch = text[i]

        if ch == "\n":
            i += 1
            line += 1
            line_start = i
            continue

        if ch.isspace():
            i += 1
            continue

        col = i - line_start + 1

        # Single-line comment
        if ch == "/" and i + 1 < n and text[i + 1] == "/":
            while i < n and text[i] != "\n":
                i += 1
            continue

        # Multi-line comment
        if ch == "/" and i + 1 < n and text[i + 1] == "*":
            i += 2
            while i < n and not (text[i] == "*" and i + 1 < n and text[i + 1] == "/"):
                if text[i] == "\n":
                    line += 1
                    line_start = i + 1
                i += 1
            i = min(i + 2, n)
            continue

        if ch in _PUNCTUATION:
            tokens.append(ProtoToken(_PUNCTUATION[ch], ch, line, col, i, i + 1))
            i += 1
            continue

        # String literal, either quote style
        if ch in ('"', "'"):
            start = i
            start_line = line
            i += 1
            while i < n and text[i] != ch:
                if text[i] == "\\":
                    i += 1
                elif text[i] == "\n":
                    line += 1
                    line_start = i + 1
                i += 1
            value = text[start + 1:min(i, n)]
            if i < n:
                i += 1  # consume closing quote
            tokens.append(ProtoToken(ProtoTokenType.STRING_LIT, value, start_line, col, start, i))
            continue

        # Number
        if ch.isdigit():
            start = i
            while i < n and text[i].isdigit():
                i += 1
            tokens.append(ProtoToken(ProtoTokenType.NUMBER, text[start:i], line, col, start, i))
            continue

        # Identifier / keyword, dotted names (and a leading dot) kept whole
        if _is_ident_start(ch) or (ch == "." and i + 1 < n and _is_ident_start(text[i + 1])):
            start = i
            i += 1
            while i < n:
                if text[i].isalnum() or text[i] == "_":
                    i += 1
                elif text[i] == "." and i + 1 < n and _is_ident_start(text[i + 1]):
                    i += 1
                else:
                    break
            word = text[start:i]
            tok_type = _KEYWORDS.get(word, ProtoTokenType.IDENT)
            tokens.append(ProtoToken(tok_type, word, line, col, start, i))
            continue

        # Skip any other character
        i += 1

    tokens.append(ProtoToken(ProtoTokenType.EOF, "", line, n - line_start + 1, n, n))
    return tokens
