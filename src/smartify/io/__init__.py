"""
smartify.io: file drivers, configuration, and checks.

## Responsibilities
- Stream vertex and edge files through the core transforms with atomic tmp→final renames.
- Own the run-level ordering: all vertex files first (filling the translation table),
  then all edge files.
- Map per-file fatal conditions to exit codes; keep per-record problems as log lines.
- Load settings with precedence env > TOML > defaults.
- Verify transformed files against the composite-key and endpoint invariants (Polars).

## Public API
- SmartifySettings: Configuration (defaults sourced from smartify.core.constants).
- ExitCode: Process status per fatal condition.
- run / run_vertices / run_edges / transform_vertex_file / transform_edge_file.
- check_vertex_file / check_edge_file.

## Import DAG discipline
- Depends on stdlib, polars, pydantic, and smartify.core.*; smartify.cli sits on top.

## Examples
```python
from smartify.core import VertexOptions, parse_edge_specs
from smartify.io import SmartifySettings, VertexJob, run

settings = SmartifySettings(smart_index=2)
code = run(
    [VertexJob.from_string("persons.csv:persons.smart.csv")],
    parse_edge_specs(["knows.csv:persons:persons"]),
    VertexOptions(smart_value="country", smart_index=2),
    settings,
)
```
"""

from __future__ import annotations

from .check import CheckReport, check_edge_file, check_vertex_file
from .config import SmartifySettings
from .errors import ExitCode
from .stream import (
    VertexJob,
    prime_translation,
    run,
    run_edges,
    run_vertices,
    transform_edge_file,
    transform_vertex_file,
)

__all__ = [
    "CheckReport",
    "ExitCode",
    "SmartifySettings",
    "VertexJob",
    "check_edge_file",
    "check_vertex_file",
    "prime_translation",
    "run",
    "run_edges",
    "run_vertices",
    "transform_edge_file",
    "transform_vertex_file",
]
