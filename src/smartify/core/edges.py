"""
Edge resolution: rewrite ``_from``/``_to`` into composite references and compose edge keys.

Responsibilities
- Parse edge collection specifications ``file:fromColl:toColl[:index:name]*``.
- Resolve one endpoint reference against a default collection, a truncation length,
  and the translation table filled during the vertex phase.
- Rewrite CSV edge rows (after header renames) and JSON edge lines.

Endpoint resolution (per ``_from``/``_to``)
1. A bare key gets the default collection: ``key`` -> ``coll/key``.
2. A key part that already contains ``:`` is composite and left untouched.
3. With ``smart_index > 0`` and a longer key, the first ``smart_index`` characters are
   the attribute: ``coll/key`` -> ``coll/att:key``.
4. Otherwise the table is consulted for ``coll/key``; a miss or an empty attribute leaves ``coll/key``.

Edge keys become ``fromAtt:key:toAtt`` only when both endpoints produced an attribute
in this pass and the key is present and not already composite.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

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
    FROM_FIELD,
    KEY_FIELD,
    KEY_SEPARATOR,
    TO_FIELD,
)
from .errors import EdgeColumnsError, EdgeSpecError, SmartifyError
from .translation import TranslationTable
from ..logs import get_logger

__all__ = [
    "ColumnRename",
    "EdgeCollectionSpec",
    "parse_edge_specs",
    "resolve_reference",
    "compose_edge_key",
    "CsvEdgeResolver",
    "JsonEdgeResolver",
]

log = get_logger(__name__)


class ColumnRename(BaseModel):
    """Header rename applied to an edge file before any row is read."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=0)
    name: str = Field(min_length=1)


class EdgeCollectionSpec(BaseModel):
    """
    One edge file together with the vertex collections its endpoints default to.

    Attributes:
        file_name (str): Edge file to rewrite in place.
        from_collection (str): Collection for bare ``_from`` keys.
        to_collection (str): Collection for bare ``_to`` keys.
        column_renames (tuple[ColumnRename, ...]): Header renames (position -> new name).

    Examples:
        >>> spec = EdgeCollectionSpec.from_string("knows.csv:persons:persons:0:_from")
        >>> spec.from_collection, spec.column_renames[0].name
        ('persons', '_from')
    """

    model_config = ConfigDict(frozen=True)

    file_name: str = Field(min_length=1)
    from_collection: str
    to_collection: str
    column_renames: tuple[ColumnRename, ...] = ()

    @field_validator("from_collection", "to_collection")
    @classmethod
    def _no_slash(cls, v: str) -> str:
        if COLLECTION_SEPARATOR in v:
            raise ValueError(f"collection name must not contain {COLLECTION_SEPARATOR!r}: {v!r}")
        return v

    @classmethod
    def from_string(cls, text: str) -> EdgeCollectionSpec:
        """
        Parse ``file:fromColl:toColl[:index:name]*``.

        Raises:
            EdgeSpecError: Fewer than three parts, a dangling rename index, a rename
                index that is not a non-negative integer, or invalid names.
        """
        parts = text.split(":")
        if len(parts) < 3:
            raise EdgeSpecError(f"invalid edge specification {text!r}: expected file:from:to")
        rest = parts[3:]
        if len(rest) % 2:
            raise EdgeSpecError(f"invalid edge specification {text!r}: rename without a name")
        renames: list[ColumnRename] = []
        for i in range(0, len(rest), 2):
            idx_text, name = rest[i], rest[i + 1]
            if not idx_text.isdigit():
                raise EdgeSpecError(
                    f"invalid edge specification {text!r}: column index {idx_text!r} is not a number"
                )
            try:
                renames.append(ColumnRename(index=int(idx_text), name=name))
            except ValueError as exc:
                raise EdgeSpecError(f"invalid edge specification {text!r}: {exc}") from exc
        try:
            return cls(
                file_name=parts[0],
                from_collection=parts[1],
                to_collection=parts[2],
                column_renames=tuple(renames),
            )
        except ValueError as exc:
            raise EdgeSpecError(f"invalid edge specification {text!r}: {exc}") from exc


def parse_edge_specs(texts: list[str]) -> list[EdgeCollectionSpec]:
    """Parse several edge specifications, failing on the first malformed one."""
    return [EdgeCollectionSpec.from_string(t) for t in texts]


def resolve_reference(
    reference: str,
    default_collection: str,
    smart_index: int,
    table: TranslationTable | None,
) -> tuple[str, str | None]:
    """
    Resolve one endpoint reference.

    Args:
        reference (str): ``key``, ``coll/key`` or ``coll/att:key``.
        default_collection (str): Collection applied to a bare key.
        smart_index (int): Truncation length (<=0 disables direct truncation).
        table (TranslationTable | None): Lookup for identifiers not resolvable by truncation.

    Returns:
        tuple[str, str | None]: The rewritten reference and the attribute derived in this
        pass (None when already composite or not resolvable).

    Examples:
        >>> resolve_reference("persons/DE12345", "persons", 2, None)
        ('persons/DE:DE12345', 'DE')
        >>> resolve_reference("persons/DE:DE12345", "persons", 2, None)
        ('persons/DE:DE12345', None)
        >>> resolve_reference("bob", "persons", -1, None)
        ('persons/bob', None)
    """
    if not reference:
        return reference, None
    collection, sep, key = reference.partition(COLLECTION_SEPARATOR)
    if not sep:
        collection, key = default_collection, reference
    qualified = f"{collection}{COLLECTION_SEPARATOR}{key}"
    if KEY_SEPARATOR in key:
        return qualified, None
    if smart_index > 0 and len(key) > smart_index:
        att = key[:smart_index]
        return f"{collection}{COLLECTION_SEPARATOR}{att}{KEY_SEPARATOR}{key}", att
    att = table.lookup(qualified) if table is not None else None
    if not att:
        return qualified, None
    return f"{collection}{COLLECTION_SEPARATOR}{att}{KEY_SEPARATOR}{key}", att


def compose_edge_key(key: str, from_att: str | None, to_att: str | None) -> str | None:
    """
    Return ``fromAtt:key:toAtt`` or None when the key must stay as it is.

    >>> compose_edge_key("e1", "DE", "FR")
    'DE:e1:FR'
    >>> compose_edge_key("DE:e1:FR", "DE", "FR") is None
    True
    """
    if not from_att or not to_att or not key or KEY_SEPARATOR in key:
        return None
    return f"{from_att}{KEY_SEPARATOR}{key}{KEY_SEPARATOR}{to_att}"


class _EdgeResolverBase:
    def __init__(
        self,
        spec: EdgeCollectionSpec,
        *,
        smart_index: int = -1,
        table: TranslationTable | None = None,
    ) -> None:
        self.spec = spec
        self.smart_index = smart_index
        self.table = table

    def _resolve(self, reference: str, collection: str) -> tuple[str, str | None]:
        return resolve_reference(reference, collection, self.smart_index, self.table)


class CsvEdgeResolver(_EdgeResolverBase):
    """
    Rewrites CSV edge rows.

    Examples:
        >>> spec = EdgeCollectionSpec.from_string("e.csv:persons:persons")
        >>> r = CsvEdgeResolver(spec, smart_index=2)
        >>> r.read_header("_key,_from,_to")
        '_key,_from,_to'
        >>> r.transform("e1,persons/DE12345,persons/FR9876", 2)
        'DE:e1:FR,persons/DE:DE12345,persons/FR:FR9876'
    """

    def __init__(
        self,
        spec: EdgeCollectionSpec,
        *,
        separator: str = DEFAULT_SEPARATOR,
        quote_char: str = DEFAULT_QUOTE_CHAR,
        smart_index: int = -1,
        table: TranslationTable | None = None,
    ) -> None:
        super().__init__(spec, smart_index=smart_index, table=table)
        self.separator = separator
        self.quote_char = quote_char
        self.headers: list[str] = []
        self.from_pos: int | None = None
        self.to_pos: int | None = None
        self.key_pos: int | None = None

    def _quote(self, value: str) -> str:
        return quote_if_needed(value, self.quote_char, self.separator)

    def read_header(self, line: str) -> str:
        """
        Apply column renames and locate ``_from``/``_to``/``_key``.

        Returns:
            str: The output header line.

        Raises:
            EdgeColumnsError: If ``_from`` or ``_to`` is missing after renames.
        """
        headers = [unquote(h, self.quote_char) for h in tokenize(line, self.separator, self.quote_char)]
        for rename in self.spec.column_renames:
            if rename.index < len(headers):
                headers[rename.index] = rename.name
            else:
                log.warning(
                    "%s: rename index %d out of range (%d columns); ignoring",
                    self.spec.file_name,
                    rename.index,
                    len(headers),
                )
        self.headers = headers
        self.from_pos = find_column(headers, FROM_FIELD)
        self.to_pos = find_column(headers, TO_FIELD)
        self.key_pos = find_column(headers, KEY_FIELD)
        missing = [
            name
            for name, pos in ((FROM_FIELD, self.from_pos), (TO_FIELD, self.to_pos))
            if pos is None
        ]
        if missing:
            raise EdgeColumnsError(
                f"{self.spec.file_name}: did not find {', '.join(missing)} in header {headers!r}"
            )
        return serialize_row(headers, self.separator, self.quote_char)

    def _fix(self, parts: list[str], pos: int, collection: str) -> str | None:
        old = unquote(parts[pos], self.quote_char)
        new, att = self._resolve(old, collection)
        if new != old:
            parts[pos] = self._quote(new)
        return att

    def transform(self, line: str, line_no: int) -> str:
        """Rewrite one data row; ``line_no`` is the 1-based input line."""
        if self.from_pos is None or self.to_pos is None:
            raise SmartifyError("read_header() must be called before transform()")
        parts = tokenize(line, self.separator, self.quote_char)
        if len(parts) < len(self.headers):
            parts.extend([""] * (len(self.headers) - len(parts)))
        from_att = self._fix(parts, self.from_pos, self.spec.from_collection)
        to_att = self._fix(parts, self.to_pos, self.spec.to_collection)
        if self.key_pos is not None:
            new_key = compose_edge_key(unquote(parts[self.key_pos], self.quote_char), from_att, to_att)
            if new_key is not None:
                parts[self.key_pos] = self._quote(new_key)
        return self.separator.join(parts)


class JsonEdgeResolver(_EdgeResolverBase):
    """
    Rewrites JSON edge lines; output order is ``_key``, ``_from``, ``_to``, then the rest.

    Examples:
        >>> spec = EdgeCollectionSpec.from_string("e.jsonl:persons:persons")
        >>> r = JsonEdgeResolver(spec, smart_index=2)
        >>> r.transform('{"_key":"e1","_from":"DE12345","_to":"persons/FR9876"}', 1)
        '{"_key":"DE:e1:FR","_from":"persons/DE:DE12345","_to":"persons/FR:FR9876"}'
    """

    def _fix(self, obj: dict[str, Any], field: str, collection: str, line_no: int) -> str | None:
        if field not in obj:
            return None
        value = obj[field]
        if not isinstance(value, str):
            log.warning(
                "%s:%d: %s is not a string; skipping transformation",
                self.spec.file_name,
                line_no,
                field,
            )
            return None
        new, att = self._resolve(value, collection)
        obj[field] = new
        return att

    def transform(self, line: str, line_no: int) -> str | None:
        """Return the rewritten line, or None when the line is dropped."""
        try:
            obj = parse_object_line(line)
        except json.JSONDecodeError as exc:
            log.warning("%s:%d: JSON parse error: %s; skipping", self.spec.file_name, line_no, exc)
            return None
        if not isinstance(obj, dict):
            log.warning("%s:%d: expected a JSON object; skipping", self.spec.file_name, line_no)
            return None

        from_att = self._fix(obj, FROM_FIELD, self.spec.from_collection, line_no)
        to_att = self._fix(obj, TO_FIELD, self.spec.to_collection, line_no)
        key = obj.get(KEY_FIELD)
        if isinstance(key, str):
            new_key = compose_edge_key(key, from_att, to_att)
            if new_key is not None:
                obj[KEY_FIELD] = new_key

        out: dict[str, Any] = {}
        for name in (KEY_FIELD, FROM_FIELD, TO_FIELD):
            if name in obj:
                out[name] = obj[name]
        for k, v in obj.items():
            if k not in out:
                out[k] = v
        return serialize_object(out)
