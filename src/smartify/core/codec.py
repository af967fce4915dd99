"""
Quote-aware codec for tabular rows and line-delimited JSON objects.

Responsibilities
- Split a CSV line into raw field substrings without touching their bytes.
- Recover the logical value of a raw field (``unquote``) and serialize a value back
  (``quote_if_needed``), doubling embedded quote characters.
- Parse and serialize one JSON object per line.

Notes
- Raw fields are kept verbatim so that untouched columns are written back exactly as
  they were read; only fields a transform rewrites go through ``quote_if_needed``.
- Unterminated quotes are tolerated: the rest of the line is treated as quoted.
- Zero-IO; stdlib only.

Examples:
    >>> tokenize('a,"b,c",d', ",", '"')
    ['a', '"b,c"', 'd']
    >>> unquote('"a ""b"" c"', '"')
    'a "b" c'
    >>> quote_if_needed('a "b" c', '"')
    '"a ""b"" c"'
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Sequence
from typing import Any

__all__ = [
    "tokenize",
    "unquote",
    "quote_if_needed",
    "serialize_row",
    "find_column",
    "parse_object_line",
    "serialize_object",
]


def tokenize(line: str, separator: str, quote_char: str) -> list[str]:
    """
    Split a line on ``separator`` outside of quoted spans.

    Args:
        line (str): One input line without its line terminator.
        separator (str): Single-character field separator.
        quote_char (str): Single-character quote.

    Returns:
        list[str]: Raw field substrings (quotes preserved). Always at least one field.

    Notes:
        A quote character toggles the quoted state wherever it appears; a doubled quote
        inside a quoted span is a literal quote and does not toggle.
    """
    fields: list[str] = []
    start = 0
    in_quote = False
    chars = iter(enumerate(line))
    for pos, c in chars:
        if in_quote:
            if c == quote_char:
                nxt = line[pos + 1 : pos + 2]
                if nxt == quote_char:
                    next(chars, None)
                    continue
                in_quote = False
        elif c == quote_char:
            in_quote = True
        elif c == separator:
            fields.append(line[start:pos])
            start = pos + 1
    fields.append(line[start:])
    return fields


def unquote(field: str, quote_char: str) -> str:
    """
    Return the logical value of a raw field.

    Args:
        field (str): Raw field as produced by ``tokenize``.
        quote_char (str): Single-character quote.

    Returns:
        str: ``field`` unchanged when it holds no quote character; otherwise the content
        of its quoted spans with doubled quotes collapsed.

    Notes:
        Text before the first quote and text between two quoted spans is dropped.
    """
    first = field.find(quote_char)
    if first < 0:
        return field
    out: list[str] = []
    in_quote = True
    pos = first + 1
    end = len(field)
    while pos < end:
        c = field[pos]
        if in_quote:
            if c == quote_char:
                if pos + 1 < end and field[pos + 1] == quote_char:
                    out.append(quote_char)
                    pos += 2
                    continue
                in_quote = False
            else:
                out.append(c)
        elif c == quote_char:
            in_quote = True
        pos += 1
    return "".join(out)


def quote_if_needed(value: str, quote_char: str, separator: str | None = None) -> str:
    """
    Serialize a logical value as a raw field.

    Args:
        value (str): Logical value.
        quote_char (str): Single-character quote.
        separator (str | None): When given, values containing it are quoted as well.

    Returns:
        str: ``value`` unchanged, or wrapped in quotes with internal quotes doubled.
    """
    needs = quote_char in value or (separator is not None and separator in value)
    if not needs:
        return value
    doubled = value.replace(quote_char, quote_char + quote_char)
    return f"{quote_char}{doubled}{quote_char}"


def serialize_row(fields: Iterable[str], separator: str, quote_char: str) -> str:
    """Join logical values into one line, quoting each one as needed (no trailing separator)."""
    return separator.join(quote_if_needed(f, quote_char, separator) for f in fields)


def find_column(headers: Sequence[str], name: str) -> int | None:
    """Return the position of ``name`` in ``headers`` or None."""
    try:
        return list(headers).index(name)
    except ValueError:
        return None


def parse_object_line(line: str) -> Any:
    """
    Decode one JSON line.

    Raises:
        json.JSONDecodeError: On malformed input; callers drop the line.
    """
    return json.loads(line)


def serialize_object(obj: dict[str, Any]) -> str:
    """Encode an object as compact single-line JSON, keeping insertion order."""
    return json.dumps(obj, ensure_ascii=False, separators=(",", ":"))
