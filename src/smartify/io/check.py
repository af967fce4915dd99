"""
Invariant checks over transformed vertex and edge files.

Purpose
- Load a transformed file with Polars (all columns as strings) and report rows that
  break the composite-key or endpoint invariants.
- Report, never repair: the transforms own rewriting; this module only tells the user
  where the data disagrees with itself.

Rules
- ``vertex_key_shape``: a present key matches ``^[^:]+:.+$``.
- ``vertex_key_prefix``: the key prefix equals the record's sharding attribute.
- ``edge_endpoint_shape``: ``_from``/``_to`` match ``coll/att:key`` or ``coll/key``.

Notes
- Line numbers assume one record per physical line (header on line 1 for CSV).
"""

from __future__ import annotations

from typing import Literal

import polars as pl
from pydantic import BaseModel, Field

from smartify.core.constants import FROM_FIELD, KEY_FIELD, TO_FIELD

from . import fs
from .config import SmartifySettings
from .errors import IoHeaderError, IoOpenError

__all__ = [
    "InvariantViolation",
    "CheckReport",
    "load_frame",
    "check_vertex_file",
    "check_edge_file",
]

COMPOSITE_KEY = r"^[^:]+:.+$"
RESOLVED_REFERENCE = r"^[^/]+/[^:]+:.+$"
UNRESOLVED_REFERENCE = r"^[^/]+/[^:]+$"


class InvariantViolation(BaseModel):
    """One offending value."""

    line: int
    field: str
    value: str | None
    rule: str


class CheckReport(BaseModel):
    """
    Result of checking one file.

    Attributes:
        path (str): File checked.
        kind (Literal["vertices","edges"]): Which invariants were applied.
        rows (int): Records read.
        missing_columns (list[str]): Columns the checks needed but the file lacks.
        violation_count (int): Total violations (may exceed ``len(violations)``).
        violations (list[InvariantViolation]): Up to ``limit`` examples.
    """

    path: str
    kind: Literal["vertices", "edges"]
    rows: int = 0
    missing_columns: list[str] = Field(default_factory=list)
    violation_count: int = 0
    violations: list[InvariantViolation] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.missing_columns and self.violation_count == 0


def load_frame(path: str, settings: SmartifySettings) -> tuple[pl.DataFrame, int]:
    """
    Read a transformed file into a DataFrame of strings.

    Returns:
        tuple[pl.DataFrame, int]: The frame and the input line number of its first row.

    Raises:
        IoOpenError: If the file cannot be opened.
        IoHeaderError: If Polars cannot parse it.
    """
    if not fs.exists(path):
        raise IoOpenError(f"cannot open {path}: no such file")
    try:
        if settings.data_type == "jsonl":
            df = pl.read_ndjson(path, infer_schema_length=None)
            first_line = 1
        else:
            df = pl.read_csv(
                path,
                separator=settings.separator,
                quote_char=settings.quote_char,
                infer_schema_length=0,
                truncate_ragged_lines=True,
            )
            first_line = 2
    except pl.exceptions.PolarsError as exc:
        raise IoHeaderError(f"cannot parse {path}: {exc}") from exc
    return df, first_line


def _as_str(df: pl.DataFrame, cols: list[str]) -> pl.DataFrame:
    return df.with_columns([pl.col(c).cast(pl.Utf8, strict=False) for c in cols])


def _collect(
    df: pl.DataFrame, mask: pl.Expr, field: str, rule: str, limit: int
) -> tuple[int, list[InvariantViolation]]:
    bad = df.filter(mask).select(["line", field])
    examples = [
        InvariantViolation(line=int(line), field=field, value=value, rule=rule)
        for line, value in bad.head(limit).iter_rows()
    ]
    return bad.height, examples


def check_vertex_file(
    path: str,
    settings: SmartifySettings,
    *,
    key_field: str = KEY_FIELD,
    limit: int = 20,
) -> CheckReport:
    """
    Check the composite-key invariant of a transformed vertex file.

    Args:
        path (str): Vertex file.
        settings (SmartifySettings): Encoding and attribute name.
        key_field (str): Key column.
        limit (int): Maximum example violations kept per rule.

    Returns:
        CheckReport
    """
    df, first_line = load_frame(path, settings)
    attr = settings.smart_attribute
    report = CheckReport(path=path, kind="vertices", rows=df.height)
    report.missing_columns = [c for c in (key_field, attr) if c not in df.columns]
    if report.missing_columns:
        return report

    df = _as_str(df, [key_field, attr]).with_row_index("line", offset=first_line)
    key = pl.col(key_field)
    shaped = key.str.contains(COMPOSITE_KEY)
    prefix = key.str.extract(r"^([^:]*):", 1)

    n1, v1 = _collect(df, key.is_not_null() & ~shaped, key_field, "vertex_key_shape", limit)
    n2, v2 = _collect(
        df,
        key.is_not_null() & shaped & (prefix != pl.col(attr).fill_null("")),
        key_field,
        "vertex_key_prefix",
        limit,
    )
    report.violation_count = n1 + n2
    report.violations = v1 + v2
    return report


def check_edge_file(path: str, settings: SmartifySettings, *, limit: int = 20) -> CheckReport:
    """Check that every ``_from``/``_to`` is a resolved or an unresolved reference."""
    df, first_line = load_frame(path, settings)
    report = CheckReport(path=path, kind="edges", rows=df.height)
    report.missing_columns = [c for c in (FROM_FIELD, TO_FIELD) if c not in df.columns]
    if report.missing_columns:
        return report

    df = _as_str(df, [FROM_FIELD, TO_FIELD]).with_row_index("line", offset=first_line)
    total = 0
    for field in (FROM_FIELD, TO_FIELD):
        ref = pl.col(field)
        malformed = ref.is_not_null() & ~(
            ref.str.contains(RESOLVED_REFERENCE) | ref.str.contains(UNRESOLVED_REFERENCE)
        )
        n, examples = _collect(df, malformed, field, "edge_endpoint_shape", limit)
        total += n
        report.violations.extend(examples)
    report.violation_count = total
    return report
