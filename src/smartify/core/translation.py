"""
Run-scoped translation table: vertex identifier -> sharding attribute.

The vertex phase inserts one entry per vertex (``collection/key`` -> attribute); the
edge phase looks endpoints up to resolve references it cannot resolve by truncation.
Attributes are interned into a single list so that millions of vertices sharing a
handful of attribute values cost one small integer each.

Notes
- Last insert wins for an identifier seen twice with different attributes.
- ``freeze()`` closes the vertex phase; inserts afterwards raise TranslationError.
  Lookups need no locking once frozen.
"""

from __future__ import annotations

from .errors import TranslationError

__all__ = ["TranslationTable"]


class TranslationTable:
    """
    Mapping from fully qualified vertex identifier to its sharding attribute.

    Examples:
        >>> t = TranslationTable()
        >>> t.insert("persons/alice", "DE")
        >>> t.lookup("persons/alice")
        'DE'
        >>> t.lookup("persons/bob") is None
        True
    """

    def __init__(self) -> None:
        self._key_tab: dict[str, int] = {}
        self._att_tab: dict[str, int] = {}
        self._attributes: list[str] = []
        self._frozen = False

    def _intern(self, attribute: str) -> int:
        idx = self._att_tab.get(attribute)
        if idx is None:
            idx = len(self._attributes)
            self._attributes.append(attribute)
            self._att_tab[attribute] = idx
        return idx

    def insert(self, identifier: str, attribute: str) -> None:
        """
        Record the attribute assigned to ``identifier``.

        Raises:
            TranslationError: If the table has been frozen.
        """
        if self._frozen:
            raise TranslationError(f"translation table is frozen; cannot insert {identifier!r}")
        self._key_tab[identifier] = self._intern(attribute)

    def lookup(self, identifier: str) -> str | None:
        """Return the attribute recorded for ``identifier``, or None."""
        idx = self._key_tab.get(identifier)
        if idx is None:
            return None
        return self._attributes[idx]

    def freeze(self) -> None:
        """Close the table for writes (end of the vertex phase)."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def attributes(self) -> tuple[str, ...]:
        """Distinct attribute strings in first-seen order."""
        return tuple(self._attributes)

    def __len__(self) -> int:
        return len(self._key_tab)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._key_tab

    def __repr__(self) -> str:
        return (
            f"TranslationTable(identifiers={len(self._key_tab)}, "
            f"attributes={len(self._attributes)}, frozen={self._frozen})"
        )
