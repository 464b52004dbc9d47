"""Naming-case transforms for exported file stems and field identifiers."""

from __future__ import annotations

import re
from typing import Callable, Dict

_DELIMITERS = "_-. "
_DELIMITER_RE = re.compile(r"[_\-. ]+")


def camelize(name: str) -> str:
    """Convert to UpperCamelCase: asn_be -> AsnBe, fooBar -> FooBar.

    Acronyms survive untouched: ASN -> ASN, ASNBe -> ASNBe.
    """
    name = name.strip()
    if name == name.upper():
        return name
    if len(name) > 1 and name[0].isupper() and name[1:] == name[1:].upper():
        return name
    parts = _DELIMITER_RE.split(name)
    return "".join(p[:1].upper() + p[1:] for p in parts if p)


def snake_case(name: str) -> str:
    """Convert to snake_case: FooBar -> foo_bar, FOOBar -> f_o_o_bar."""
    name = name.strip()
    out = []
    prev_underscore = False
    for i, ch in enumerate(name):
        if ch in _DELIMITERS:
            if not prev_underscore:
                out.append("_")
                prev_underscore = True
            continue
        if "A" <= ch <= "Z":
            if i > 0 and not prev_underscore:
                out.append("_")
            out.append(ch.lower())
        else:
            out.append(ch)
        prev_underscore = False
    return re.sub(r"_{2,}", "_", "".join(out)).strip("_")


def compact(name: str) -> str:
    """Drop every delimiter and lower-case: foo-bar.baz -> foobarbaz."""
    return _DELIMITER_RE.sub("", name).lower()


def keep(name: str) -> str:
    return name


CASE_STYLES: Dict[str, Callable[[str], str]] = {
    "camel": camelize,
    "snake": snake_case,
    "compact": compact,
    "keep": keep,
}

# Accepted spellings that map onto CASE_STYLES keys.
_STYLE_ALIASES = {"unchanged": "keep", "": "keep"}


def normalize_style(style: str) -> str:
    """Return the canonical style key, or raise KeyError for unknown styles."""
    key = (style or "").strip().lower()
    key = _STYLE_ALIASES.get(key, key)
    if key not in CASE_STYLES:
        raise KeyError(style)
    return key


def apply_case(name: str, style: str) -> str:
    return CASE_STYLES[normalize_style(style)](name)


def format_proto_file_name(stem: str, style: str) -> str:
    """Output file name for a schema stem under the given case style."""
    return apply_case(stem, style) + ".proto"
