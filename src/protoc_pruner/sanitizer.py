"""Text clean-up applied to emitted schema files and definitions."""

from __future__ import annotations

import re
from typing import List

_BLANK_AFTER_OPEN_RE = re.compile(r"\{[ \t]*\r?\n(?:[ \t]*\r?\n)+")
_BLANK_BEFORE_CLOSE_RE = re.compile(r"\r?\n(?:[ \t]*\r?\n)+([ \t]*\})")


def strip_comments(text: str) -> str:
    """Remove // and /* */ comments, leaving string literals intact."""
    out: List[str] = []
    i = 0
    n = len(text)
    quote = ""
    while i < n:
        ch = text[i]
        if quote:
            out.append(ch)
            if ch == "\\" and i + 1 < n:
                out.append(text[i + 1])
                i += 2
                continue
            if ch == quote:
                quote = ""
            i += 1
            continue
        if ch in ('"', "'"):
            quote = ch
            out.append(ch)
            i += 1
            continue
        if ch == "/" and i + 1 < n and text[i + 1] == "/":
            while i < n and text[i] != "\n":
                i += 1
            continue
        if ch == "/" and i + 1 < n and text[i + 1] == "*":
            end = text.find("*/", i + 2)
            i = n if end < 0 else end + 2
            continue
        out.append(ch)
        i += 1
    return "".join(out)



def normalize_blank_lines(text: str) -> str:
    """Trim trailing spaces, collapse blank runs, end with one newline."""
    out: List[str] = []
    prev_blank = True
    for line in text.split("\n"):
        line = line.rstrip()
        if not line:
            if prev_blank:
                continue
            prev_blank = True
            out.append("")
            continue
        prev_blank = False
        out.append(line)
    while out and not out[-1]:
        out.pop()
    return "\n".join(out) + "\n"


def tighten_block_blank_lines(text: str) -> str:
    text = _BLANK_AFTER_OPEN_RE.sub("{\n", text)
    return _BLANK_BEFORE_CLOSE_RE.sub(r"\n\1", text)


def sanitize_proto_output(text: str) -> str:
    text = strip_comments(text)
    text = normalize_blank_lines(text)
    return tighten_block_blank_lines(text)


def strip_self_package_qualifiers(text: str, package: str) -> str:
    """Rewrite ``pkg.Name`` (and ``.pkg.Name``) to ``Name`` for the file's own package."""
    if not package.strip():
        return text
    pattern = re.compile(r"(?<![\w.])\.?" + re.escape(package) + r"\.(?=[A-Za-z_])")
    return pattern.sub("", text)
