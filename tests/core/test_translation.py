from __future__ import annotations

import pytest

from smartify.core.errors import TranslationError
from smartify.core.timing import RunClock
from smartify.core.translation import TranslationTable


def test_insert_and_lookup() -> None:
    t = TranslationTable()
    t.insert("persons/alice", "DE")
    t.insert("persons/bob", "FR")
    assert t.lookup("persons/alice") == "DE"
    assert t.lookup("persons/bob") == "FR"
    assert t.lookup("persons/carol") is None
    assert "persons/alice" in t
    assert len(t) == 2


def test_attributes_are_interned() -> None:
    t = TranslationTable()
    for i in range(100):
        t.insert(f"persons/p{i}", "DE" if i % 2 else "FR")
    assert len(t) == 100
    assert t.attributes == ("FR", "DE")


def test_repeated_insert_is_idempotent_and_last_wins() -> None:
    t = TranslationTable()
    t.insert("persons/alice", "DE")
    t.insert("persons/alice", "DE")
    assert len(t) == 1
    t.insert("persons/alice", "AT")
    assert t.lookup("persons/alice") == "AT"


def test_frozen_table_rejects_inserts_but_serves_lookups() -> None:
    t = TranslationTable()
    t.insert("persons/alice", "DE")
    t.freeze()
    assert t.frozen
    with pytest.raises(TranslationError):
        t.insert("persons/bob", "FR")
    assert t.lookup("persons/alice") == "DE"


def test_run_clock_uses_injected_clock() -> None:
    ticks = iter([100.0, 101.5, 103.0])
    rc = RunClock(clock=lambda: next(ticks))
    assert rc.start == 100.0
    assert rc.elapsed() == 1.5
    assert rc.elapsed() == 3.0
