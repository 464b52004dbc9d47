"""Statement-level rewriting of message definitions: keep-sets, renames, reserved."""

from __future__ import annotations

from typing import AbstractSet, List, Optional, Sequence, Tuple

from protoc_pruner.case import apply_case, normalize_style
from protoc_pruner.parser.proto_ast_parser import matching_brace
from protoc_pruner.parser.proto_tokenizer import ProtoToken, ProtoTokenType, tokenize_proto

_PASS_THROUGH_BLOCKS = {
    ProtoTokenType.MESSAGE,
    ProtoTokenType.ENUM,
    ProtoTokenType.EXTEND,
}

# Blocks whose fields are renamed along with the enclosing message's.
_FIELD_BLOCKS = {
    ProtoTokenType.MESSAGE,
    ProtoTokenType.ONEOF,
    ProtoTokenType.EXTEND,
}

_STATEMENT_BOUNDARIES = {
    ProtoTokenType.LBRACE,
    ProtoTokenType.RBRACE,
    ProtoTokenType.SEMICOLON,
}


def _statement_end(tokens: Sequence[ProtoToken], start: int, stop: int) -> int:
    """Index of the last token of the statement beginning at ``start``.

    A statement ends at a ``;`` outside braces and brackets, or where a
    braced block opened by the statement closes.
    """
    braces = 0
    brackets = 0
    for j in range(start, stop):
        tt = tokens[j].type
        if tt == ProtoTokenType.LBRACKET:
            brackets += 1
        elif tt == ProtoTokenType.RBRACKET:
            brackets = max(brackets - 1, 0)
        elif tt == ProtoTokenType.LBRACE:
            braces += 1
        elif tt == ProtoTokenType.RBRACE:
            braces -= 1
            if braces <= 0 and brackets == 0:
                return j
        elif tt == ProtoTokenType.SEMICOLON and braces == 0 and brackets == 0:
            return j
    return stop - 1


def _field_name_index(tokens: Sequence[ProtoToken], start: int, end: int) -> Optional[int]:
    """Index of the declared name of a field statement, or None for non-field statements."""
    if tokens[start].type in (ProtoTokenType.OPTION, ProtoTokenType.RESERVED):
        return None
    for j in range(start + 1, end + 1):
        tt = tokens[j].type
        if tt in (ProtoTokenType.LBRACKET, ProtoTokenType.LBRACE):
            return None
        if tt == ProtoTokenType.EQUALS:
            return j - 1 if tokens[j - 1].is_word else None
    return None


def _block_open(tokens: Sequence[ProtoToken], start: int, end: int) -> Optional[int]:
    return next((j for j in range(start, end + 1) if tokens[j].type == ProtoTokenType.LBRACE), None)


def _body_bounds(tokens: Sequence[ProtoToken]) -> Optional[Tuple[int, int]]:
    """Token indexes of the outermost braces of a definition."""
    open_idx = next((k for k, t in enumerate(tokens) if t.type == ProtoTokenType.LBRACE), None)
    if open_idx is None:
        return None
    close_idx = matching_brace(tokens, open_idx)
    if close_idx is None:
        return None
    return open_idx, close_idx


def _filter_body(
    text: str,
    tokens: Sequence[ProtoToken],
    open_idx: int,
    close_idx: int,
    keep: AbstractSet[str],
) -> Tuple[str, int]:
    """Filtered text between a block's braces and the number of fields kept."""
    out: List[str] = []
    kept_fields = 0
    cursor = tokens[open_idx].end
    i = open_idx + 1

    while i < close_idx:
        start_tok = tokens[i]
        end = _statement_end(tokens, i, close_idx)
        gap = text[cursor:start_tok.pos]
        unit = text[start_tok.pos:tokens[end].end]
        cursor = tokens[end].end
        kind = start_tok.type

        if kind in _PASS_THROUGH_BLOCKS:
            out.append(gap + unit)
        elif kind == ProtoTokenType.ONEOF:
            inner_open = _block_open(tokens, i, end)
            if inner_open is None:
                out.append(gap + unit)
            else:
                body, members = _filter_body(text, tokens, inner_open, end, keep)
                if members:
                    kept_fields += members
                    out.append(gap + text[start_tok.pos:tokens[inner_open].end] + body + tokens[end].value)
        elif kind == ProtoTokenType.RESERVED:
            pass
        else:
            name_idx = _field_name_index(tokens, i, end)
            if name_idx is None:
                out.append(gap + unit)
            elif tokens[name_idx].value in keep:
                kept_fields += 1
                out.append(gap + unit)
        i = end + 1

    out.append(text[cursor:tokens[close_idx].pos])
    return "".join(out), kept_fields


def _drop_blank_body_lines(definition: str, body_start: int, body_end: int) -> str:
    """Remove blank lines between the braces at body_start (after ``{``) and body_end (at ``}``)."""
    lines = [ln for ln in definition[body_start:body_end].split("\n") if ln.strip()]
    if not lines:
        return definition[:body_start] + "\n" + definition[body_end:]
    return definition[:body_start] + "\n" + "\n".join(lines) + "\n" + definition[body_end:]


def prune_message_fields(definition: str, keep: AbstractSet[str]) -> str:
    """Keep only the named fields of a message definition.

    Nested message/enum/extend blocks are kept whole. A oneof keeps its
    surviving members and disappears when none survive. ``reserved``
    statements are always dropped; other non-field statements are kept.
    """
    tokens = tokenize_proto(definition)
    bounds = _body_bounds(tokens)
    if bounds is None:
        return definition
    open_idx, close_idx = bounds

    body, _ = _filter_body(definition, tokens, open_idx, close_idx, keep)
    body_start = tokens[open_idx].end
    pruned = definition[:body_start] + body + definition[tokens[close_idx].pos:]
    return _drop_blank_body_lines(pruned, body_start, body_start + len(body))


def _collect_field_names(
    tokens: Sequence[ProtoToken],
    open_idx: int,
    close_idx: int,
    found: List[ProtoToken],
) -> None:
    i = open_idx + 1
    while i < close_idx:
        end = _statement_end(tokens, i, close_idx)
        kind = tokens[i].type
        if kind in _FIELD_BLOCKS:
            inner_open = _block_open(tokens, i, end)
            if inner_open is not None:
                _collect_field_names(tokens, inner_open, end, found)
        elif kind != ProtoTokenType.ENUM:
            name_idx = _field_name_index(tokens, i, end)
            if name_idx is not None and name_idx > i:
                found.append(tokens[name_idx])
        i = end + 1


def rename_message_fields(definition: str, style: str) -> str:
    """Re-case every field name declared in a message definition.

    Fields of nested messages and oneof members are renamed too; enum
    values and option names are left alone.
    """
    style = normalize_style(style)
    if style == "keep":
        return definition
    tokens = tokenize_proto(definition)
    bounds = _body_bounds(tokens)
    if bounds is None:
        return definition

    names: List[ProtoToken] = []
    _collect_field_names(tokens, bounds[0], bounds[1], names)

    out: List[str] = []
    cursor = 0
    for tok in names:
        out.append(definition[cursor:tok.pos])
        out.append(apply_case(tok.value, style))
        cursor = tok.end
    out.append(definition[cursor:])
    return "".join(out)


def drop_reserved_statements(definition: str) -> str:
    """Remove every ``reserved`` statement, at any nesting depth.

    The whitespace between the preceding token and the statement goes
    with it, so ``{ reserved 2; int32 x = 1; }`` becomes ``{ int32 x = 1; }``.
    """
    tokens = tokenize_proto(definition)
    out: List[str] = []
    cursor = 0
    i = 1
    while i < len(tokens):
        tok = tokens[i]
        if tok.type != ProtoTokenType.RESERVED or tokens[i - 1].type not in _STATEMENT_BOUNDARIES:
            i += 1
            continue
        end = next((j for j in range(i, len(tokens)) if tokens[j].type == ProtoTokenType.SEMICOLON), None)
        if end is None:
            break
        out.append(definition[cursor:tokens[i - 1].end])
        cursor = tokens[end].end
        i = end + 1
    out.append(definition[cursor:])
    return "".join(out)
