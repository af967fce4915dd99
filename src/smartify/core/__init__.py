"""
Core package for smartify: the key-resolution and record-rewriting engine.

## Contracts
- Codec: quote-aware CSV tokenizer/serializer and JSON line parse/serialize.
- Translation: run-scoped ``collection/key -> attribute`` table.
- Vertices: attribute derivation, truncation, composite keys, table insertion.
- Edges: edge specifications, endpoint resolution, composite edge keys.
- Timing: elapsed-time context for progress reporting.

## Notes
- Zero-IO policy: transforms take lines and return lines; files are opened by smartify.io.
- Per-record problems are logged, never raised.

## Examples
```python
from smartify.core import TranslationTable, VertexOptions, CsvVertexTransformer

table = TranslationTable()
t = CsvVertexTransformer(VertexOptions(smart_value="country"), collection="persons", table=table)
t.read_header("name,country,_key")  # 'name,country,_key,smart_id'
t.transform("Bob,DE,bob1", 2)        # 'Bob,DE,DE:bob1,DE'
table.lookup("persons/bob1")         # 'DE'
```
"""

from __future__ import annotations

from .edges import (
    CsvEdgeResolver,
    EdgeCollectionSpec,
    JsonEdgeResolver,
    parse_edge_specs,
    resolve_reference,
)
from .timing import RunClock
from .translation import TranslationTable
from .vertices import CsvVertexTransformer, JsonVertexTransformer, VertexOptions

__all__ = [
    "CsvEdgeResolver",
    "CsvVertexTransformer",
    "EdgeCollectionSpec",
    "JsonEdgeResolver",
    "JsonVertexTransformer",
    "RunClock",
    "TranslationTable",
    "VertexOptions",
    "parse_edge_specs",
    "resolve_reference",
]
