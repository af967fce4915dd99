"""
smartify: rewrite graph datasets into sharded ("smart graph") key form.

Vertex keys become ``attribute:key`` and edge endpoints ``collection/attribute:key`` so
that a sharded graph store can co-locate edges with their vertices.

- smartify.core: codec, translation table, vertex and edge transforms (zero-IO).
- smartify.io: file drivers, settings, invariant checks.
- smartify.cli: ``smartify vertices|edges|run|check``.
"""

from __future__ import annotations

__version__ = "0.1.0"
