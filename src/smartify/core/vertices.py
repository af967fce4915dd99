"""
Vertex transforms: derive the sharding attribute and stamp the composite key.

Responsibilities
- Plan the output header of a CSV vertex file once (append the attribute and, when
  requested, the key column) and rewrite every row against that plan.
- Rewrite JSON vertex lines with ``_key`` first, the attribute second, then the rest.
- Record ``collection/key -> attribute`` into a shared TranslationTable so that the
  edge phase can resolve endpoints later. Records without an attribute are not recorded.

Per-record semantics
- The attribute comes from the value-source field when configured and present,
  otherwise from the attribute field itself. With ``smart_index > 0`` it is truncated
  to that many characters and the truncated value is what gets stored.
- A key without a colon becomes ``attribute:key``. A key that already has a colon is
  composite: a prefix that differs from the derived attribute is logged; CSV rows get
  the prefix corrected, JSON lines keep their key untouched.
- JSON attribute values: strings pass, null/absent fall back to ``smart_default``,
  booleans and numbers are stringified with a warning, arrays and objects become ""
  with an error.

Notes
- Zero-IO; callers feed lines and write what comes back.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from .codec import (
    find_column,
    parse_object_line,
    quote_if_needed,
    serialize_object,
    serialize_row,
    tokenize,
    unquote,
)
from .constants import (
    COLLECTION_SEPARATOR,
    DEFAULT_QUOTE_CHAR,
    DEFAULT_SEPARATOR,
    DEFAULT_SMART_ATTRIBUTE,
    KEY_FIELD,
    KEY_SEPARATOR,
)
from .errors import SmartifyError
from .translation import TranslationTable
from ..logs import get_logger

__all__ = [
    "VertexOptions",
    "CsvVertexTransformer",
    "JsonVertexTransformer",
    "truncate_attribute",
    "attribute_to_string",
]

log = get_logger(__name__)

_MISSING = object()


@dataclass(frozen=True)
class VertexOptions:
    """
    Field selection for the vertex transform.

    Attributes:
        smart_attribute (str): Field that receives the sharding attribute.
        smart_value (str | None): Field the attribute value is copied from.
        smart_index (int): Keep at most this many characters of the attribute (<=0: all).
        smart_default (str): Attribute used when the JSON value is null or absent.
        write_key (bool): Materialize the key field even when the input has none.
        key_value (str | None): Field the key suffix is copied from instead of ``_key``.
        key_field (str): Name of the key field.
    """

    smart_attribute: str = DEFAULT_SMART_ATTRIBUTE
    smart_value: str | None = None
    smart_index: int = -1
    smart_default: str = ""
    write_key: bool = False
    key_value: str | None = None
    key_field: str = KEY_FIELD


def truncate_attribute(value: str, smart_index: int) -> str:
    """
    Keep the first ``smart_index`` characters of ``value`` when the limit is positive.

    >>> truncate_attribute("DE12345", 2)
    'DE'
    >>> truncate_attribute("DE", -1)
    'DE'
    """
    if smart_index > 0 and len(value) > smart_index:
        return value[:smart_index]
    return value


def attribute_to_string(value: Any, default: str, *, line_no: int, source: str = "") -> str:
    """
    Coerce a JSON attribute value to the string stored in the record.

    Args:
        value (Any): Field value, or the module sentinel for an absent field.
        default (str): Fallback for null/absent values.
        line_no (int): 1-based input line for diagnostics.
        source (str): File or collection name for diagnostics.

    Returns:
        str: The coerced attribute ("" for arrays/objects).
    """
    if value is _MISSING or value is None:
        return default
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        log.warning(
            "%s:%d: vertex with non-string smart graph attribute (bool); converting to string",
            source,
            line_no,
        )
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        log.warning(
            "%s:%d: vertex with non-string smart graph attribute (number); converting to string",
            source,
            line_no,
        )
        return json.dumps(value)
    log.error(
        "%s:%d: complex type for the smart graph attribute: %r; not converting",
        source,
        line_no,
        value,
    )
    return ""


class _VertexTransformerBase:
    def __init__(
        self,
        options: VertexOptions,
        *,
        collection: str | None = None,
        table: TranslationTable | None = None,
        source: str = "",
    ) -> None:
        self.options = options
        self.collection = collection
        self.table = table
        self.source = source or (collection or "")

    def _record(self, key: str, attribute: str) -> None:
        if self.table is None or self.collection is None or not key or not attribute:
            return
        self.table.insert(f"{self.collection}{COLLECTION_SEPARATOR}{key}", attribute)


class CsvVertexTransformer(_VertexTransformerBase):
    """
    Rewrites CSV vertex rows against a header plan.

    Call ``read_header`` with the first line before any ``transform`` call; it returns
    the header line to write.

    Examples:
        >>> t = CsvVertexTransformer(VertexOptions(smart_value="country", smart_index=2))
        >>> t.read_header("name,country,_key")
        'name,country,_key,smart_id'
        >>> t.transform("Bob,DE,bob1", 2)
        'Bob,DE,DE:bob1,DE'
    """

    def __init__(
        self,
        options: VertexOptions,
        *,
        separator: str = DEFAULT_SEPARATOR,
        quote_char: str = DEFAULT_QUOTE_CHAR,
        collection: str | None = None,
        table: TranslationTable | None = None,
        source: str = "",
    ) -> None:
        super().__init__(options, collection=collection, table=table, source=source)
        self.separator = separator
        self.quote_char = quote_char
        self.headers: list[str] = []
        self.attr_pos = -1
        self.value_pos: int | None = None
        self.key_pos: int | None = None
        self.key_value_pos: int | None = None

    def _quote(self, value: str) -> str:
        return quote_if_needed(value, self.quote_char, self.separator)

    def read_header(self, line: str) -> str:
        """Plan column positions from the input header and return the output header."""
        opts = self.options
        headers = [unquote(h, self.quote_char) for h in tokenize(line, self.separator, self.quote_char)]

        attr_pos = find_column(headers, opts.smart_attribute)
        if attr_pos is None:
            attr_pos = len(headers)
            headers.append(opts.smart_attribute)

        value_pos = None
        if opts.smart_value:
            value_pos = find_column(headers, opts.smart_value)
            if value_pos is None:
                log.warning(
                    "%s: could not find the smart value column %r; ignoring",
                    self.source,
                    opts.smart_value,
                )

        key_pos = find_column(headers, opts.key_field)
        if key_pos is None and opts.write_key:
            key_pos = len(headers)
            headers.append(opts.key_field)
        if key_pos is None:
            log.warning(
                "%s: no %s column and --write-key not given; keys are left alone",
                self.source,
                opts.key_field,
            )

        key_value_pos = None
        if opts.key_value:
            key_value_pos = find_column(headers, opts.key_value)
            if key_value_pos is None:
                log.warning(
                    "%s: could not find column %r for the key value; ignoring",
                    self.source,
                    opts.key_value,
                )

        self.headers = headers
        self.attr_pos = attr_pos
        self.value_pos = value_pos
        self.key_pos = key_pos
        self.key_value_pos = key_value_pos
        return serialize_row(headers, self.separator, self.quote_char)

    def transform(self, line: str, line_no: int) -> str:
        """Rewrite one data row; ``line_no`` is the 1-based input line."""
        if not self.headers:
            raise SmartifyError("read_header() must be called before transform()")
        quo = self.quote_char
        parts = tokenize(line, self.separator, quo)
        if len(parts) < len(self.headers):
            parts.extend([""] * (len(self.headers) - len(parts)))

        if self.value_pos is not None:
            att = truncate_attribute(unquote(parts[self.value_pos], quo), self.options.smart_index)
            parts[self.attr_pos] = self._quote(att)
        else:
            raw = unquote(parts[self.attr_pos], quo)
            att = truncate_attribute(raw, self.options.smart_index)
            if att != raw:
                parts[self.attr_pos] = self._quote(att)

        if self.key_pos is not None:
            source_pos = self.key_value_pos if self.key_value_pos is not None else self.key_pos
            key = unquote(parts[source_pos], quo)
            prefix, sep, suffix = key.partition(KEY_SEPARATOR)
            if not sep:
                parts[self.key_pos] = self._quote(f"{att}{KEY_SEPARATOR}{key}")
                bare = key
            else:
                bare = suffix
                if prefix != att:
                    log.warning(
                        "%s:%d: found wrong key w.r.t. smart graph attribute: %s (smart = %s)",
                        self.source,
                        line_no,
                        key,
                        att,
                    )
                    parts[self.key_pos] = self._quote(f"{att}{KEY_SEPARATOR}{suffix}")
                elif source_pos != self.key_pos:
                    parts[self.key_pos] = self._quote(key)
            self._record(bare, att)

        return self.separator.join(parts)


class JsonVertexTransformer(_VertexTransformerBase):
    """
    Rewrites JSON vertex lines.

    Examples:
        >>> t = JsonVertexTransformer(VertexOptions(smart_value="country"))
        >>> t.transform('{"_key":"x1","country":"DE"}', 1)
        '{"_key":"DE:x1","smart_id":"DE","country":"DE"}'
    """

    def transform(self, line: str, line_no: int) -> str | None:
        """Return the rewritten line, or None when the line is dropped."""
        opts = self.options
        try:
            obj = parse_object_line(line)
        except json.JSONDecodeError as exc:
            log.warning("%s:%d: JSON parse error: %s; skipping", self.source, line_no, exc)
            return None
        if not isinstance(obj, dict):
            log.warning("%s:%d: expected a JSON object; skipping", self.source, line_no)
            return None

        field = opts.smart_value or opts.smart_attribute
        att = attribute_to_string(
            obj.get(field, _MISSING), opts.smart_default, line_no=line_no, source=self.source
        )
        att = truncate_attribute(att, opts.smart_index)

        raw_key = obj.get(opts.key_value or opts.key_field, _MISSING)
        new_key = ""
        bare = ""
        if isinstance(raw_key, bool) or raw_key is _MISSING or raw_key is None:
            pass
        elif isinstance(raw_key, (int, float)):
            log.warning("%s:%d: non-string key %r; converting to string", self.source, line_no, raw_key)
            raw_key = json.dumps(raw_key)
        elif not isinstance(raw_key, str):
            log.error("%s:%d: complex type for the key: %r; ignoring", self.source, line_no, raw_key)

        if isinstance(raw_key, str):
            prefix, sep, suffix = raw_key.partition(KEY_SEPARATOR)
            if sep:
                if prefix != att:
                    log.warning(
                        "%s:%d: key is already smart, but with the wrong prefix: %s (smart = %s)",
                        self.source,
                        line_no,
                        raw_key,
                        att,
                    )
                new_key = raw_key
                bare = suffix
            else:
                new_key = f"{att}{KEY_SEPARATOR}{raw_key}" if att else raw_key
                bare = raw_key

        out: dict[str, Any] = {}
        if new_key or opts.write_key:
            out[opts.key_field] = new_key
        elif opts.key_field in obj:
            out[opts.key_field] = obj[opts.key_field]
        out[opts.smart_attribute] = att
        for k, v in obj.items():
            if k not in (opts.key_field, opts.smart_attribute):
                out[k] = v

        self._record(bare, att)
        return serialize_object(out)
