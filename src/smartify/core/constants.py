"""
Smartify defaults shared by the core transforms and the IO layer.

Defines field names, CLI defaults, and progress cadence. This module is zero-IO and
uses only the Python standard library.

Notes:
    - Downstream configuration (smartify.io.config) consumes these values as defaults;
      change them here rather than in the settings class.
"""

from __future__ import annotations

__all__ = [
    "KEY_FIELD",
    "FROM_FIELD",
    "TO_FIELD",
    "DEFAULT_SMART_ATTRIBUTE",
    "DEFAULT_SEPARATOR",
    "DEFAULT_QUOTE_CHAR",
    "DEFAULT_DATA_TYPE",
    "DATA_TYPES",
    "PROGRESS_EVERY",
    "EDGE_TMP_SUFFIX",
    "KEY_SEPARATOR",
    "COLLECTION_SEPARATOR",
]

# Document key and edge endpoint attribute names of the target graph store.
KEY_FIELD: str = "_key"
FROM_FIELD: str = "_from"
TO_FIELD: str = "_to"

# Name of the sharding attribute written into every vertex.
DEFAULT_SMART_ATTRIBUTE: str = "smart_id"

DEFAULT_SEPARATOR: str = ","
DEFAULT_QUOTE_CHAR: str = '"'

DEFAULT_DATA_TYPE: str = "csv"
DATA_TYPES: tuple[str, ...] = ("csv", "jsonl")

# Records between two progress notifications.
PROGRESS_EVERY: int = 1_000_000

# Suffix of the sibling file an input is rewritten into before the atomic replace.
EDGE_TMP_SUFFIX: str = ".out"

# attribute:key
KEY_SEPARATOR: str = ":"
# collection/key
COLLECTION_SEPARATOR: str = "/"
