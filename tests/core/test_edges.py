from __future__ import annotations

import logging

import pytest

from smartify.core.edges import (
    CsvEdgeResolver,
    EdgeCollectionSpec,
    JsonEdgeResolver,
    compose_edge_key,
    parse_edge_specs,
    resolve_reference,
)
from smartify.core.errors import EdgeColumnsError, EdgeSpecError, SmartifyError
from smartify.core.translation import TranslationTable


@pytest.fixture()
def table() -> TranslationTable:
    t = TranslationTable()
    t.insert("persons/alice", "DE")
    t.insert("persons/bob", "FR")
    t.freeze()
    return t


def _spec(text: str = "knows.csv:persons:persons") -> EdgeCollectionSpec:
    return EdgeCollectionSpec.from_string(text)


# ----------------------------------------------------------------------------
# Specifications
# ----------------------------------------------------------------------------


def test_parse_spec_with_renames() -> None:
    spec = _spec("knows.csv:persons:cities:0:_from:1:_to")
    assert spec.file_name == "knows.csv"
    assert spec.from_collection == "persons"
    assert spec.to_collection == "cities"
    assert [(r.index, r.name) for r in spec.column_renames] == [(0, "_from"), (1, "_to")]


@pytest.mark.parametrize(
    "text",
    [
        "knows.csv:persons",
        "knows.csv:persons:persons:1",
        "knows.csv:persons:persons:x:_from",
        "knows.csv:persons:persons:-1:_from",
        "knows.csv:persons:persons:0:",
        ":persons:persons",
        "knows.csv:a/b:persons",
    ],
)
def test_parse_spec_rejects_malformed(text: str) -> None:
    with pytest.raises(EdgeSpecError):
        _spec(text)


def test_parse_edge_specs_many() -> None:
    specs = parse_edge_specs(["a.csv:p:p", "b.csv:p:c"])
    assert [s.file_name for s in specs] == ["a.csv", "b.csv"]


def test_spec_is_immutable() -> None:
    spec = _spec()
    with pytest.raises(ValueError):
        spec.file_name = "other.csv"  # type: ignore[misc]


# ----------------------------------------------------------------------------
# Endpoint resolution
# ----------------------------------------------------------------------------


def test_resolve_by_truncation() -> None:
    assert resolve_reference("persons/DE12345", "persons", 2, None) == ("persons/DE:DE12345", "DE")
    assert resolve_reference("DE12345", "persons", 2, None) == ("persons/DE:DE12345", "DE")


def test_resolve_by_table(table: TranslationTable) -> None:
    assert resolve_reference("alice", "persons", -1, table) == ("persons/DE:alice", "DE")
    assert resolve_reference("persons/bob", "other", -1, table) == ("persons/FR:bob", "FR")


def test_resolve_miss_leaves_qualified_reference(table: TranslationTable) -> None:
    assert resolve_reference("carol", "persons", -1, table) == ("persons/carol", None)
    assert resolve_reference("cities/alice", "persons", -1, table) == ("cities/alice", None)


def test_resolve_key_not_longer_than_index_uses_table(table: TranslationTable) -> None:
    # "bob" has exactly 3 characters: no truncation, lookup instead
    assert resolve_reference("bob", "persons", 3, table) == ("persons/FR:bob", "FR")


def test_resolve_leaves_composite_references_untouched(table: TranslationTable) -> None:
    assert resolve_reference("persons/DE:DE12345", "persons", 2, table) == ("persons/DE:DE12345", None)
    assert resolve_reference("DE:DE12345", "persons", 2, table) == ("persons/DE:DE12345", None)


def test_resolve_empty_reference() -> None:
    assert resolve_reference("", "persons", 2, None) == ("", None)


def test_compose_edge_key() -> None:
    assert compose_edge_key("e1", "DE", "FR") == "DE:e1:FR"
    assert compose_edge_key("DE:e1:FR", "DE", "FR") is None
    assert compose_edge_key("e1", None, "FR") is None
    assert compose_edge_key("e1", "DE", "") is None
    assert compose_edge_key("", "DE", "FR") is None


# ----------------------------------------------------------------------------
# CSV
# ----------------------------------------------------------------------------


def test_csv_direct_truncation() -> None:
    r = CsvEdgeResolver(_spec(), smart_index=2)
    assert r.read_header("_from,_to,_key") == "_from,_to,_key"
    assert r.transform("persons/DE12345,persons/FR9876,e1", 2) == "persons/DE:DE12345,persons/FR:FR9876,DE:e1:FR"


def test_csv_second_pass_is_a_no_op() -> None:
    r = CsvEdgeResolver(_spec(), smart_index=2)
    r.read_header("_from,_to,_key")
    line = "persons/DE:DE12345,persons/FR:FR9876,DE:e1:FR"
    assert r.transform(line, 2) == line


def test_csv_renames_and_table_lookup(table: TranslationTable) -> None:
    r = CsvEdgeResolver(_spec("knows.csv:persons:persons:0:_from:1:_to"), table=table)
    assert r.read_header("from,to,_key,since") == "_from,_to,_key,since"
    assert r.transform("alice,bob,e1,2020", 2) == "persons/DE:alice,persons/FR:bob,DE:e1:FR,2020"


def test_csv_edge_key_kept_when_one_endpoint_is_unresolved(table: TranslationTable) -> None:
    r = CsvEdgeResolver(_spec(), table=table)
    r.read_header("_key,_from,_to")
    assert r.transform("e1,alice,carol", 2) == "e1,persons/DE:alice,persons/carol"


def test_csv_without_key_column(table: TranslationTable) -> None:
    r = CsvEdgeResolver(_spec(), table=table)
    r.read_header("_from,_to")
    assert r.transform('"alice","bob"', 2) == "persons/DE:alice,persons/FR:bob"


def test_csv_untouched_references_keep_their_bytes() -> None:
    r = CsvEdgeResolver(_spec(), smart_index=2)
    r.read_header("_from,_to,label")
    assert r.transform('"persons/DE:1",persons/FR:2,"a ""b"""', 2) == '"persons/DE:1",persons/FR:2,"a ""b"""'


def test_csv_missing_endpoint_columns() -> None:
    r = CsvEdgeResolver(_spec())
    with pytest.raises(EdgeColumnsError, match="_to"):
        r.read_header("_from,target")


def test_csv_out_of_range_rename_is_ignored(caplog: pytest.LogCaptureFixture) -> None:
    r = CsvEdgeResolver(_spec("knows.csv:persons:persons:9:x"))
    with caplog.at_level(logging.WARNING, logger="smartify"):
        assert r.read_header("_from,_to") == "_from,_to"
    assert any("out of range" in rec.getMessage() for rec in caplog.records)


# ----------------------------------------------------------------------------
# JSON
# ----------------------------------------------------------------------------


def test_json_direct_truncation_and_field_order() -> None:
    r = JsonEdgeResolver(_spec("knows.jsonl:persons:persons"), smart_index=2)
    out = r.transform('{"w":1,"_to":"FR9876","_from":"persons/DE12345","_key":"e1"}', 1)
    assert out == '{"_key":"DE:e1:FR","_from":"persons/DE:DE12345","_to":"persons/FR:FR9876","w":1}'


def test_json_table_lookup(table: TranslationTable) -> None:
    r = JsonEdgeResolver(_spec(), table=table)
    assert r.transform('{"_from":"alice","_to":"carol"}', 1) == '{"_from":"persons/DE:alice","_to":"persons/carol"}'


def test_json_non_string_endpoint_is_left_alone(caplog: pytest.LogCaptureFixture) -> None:
    r = JsonEdgeResolver(_spec(), smart_index=2)
    with caplog.at_level(logging.WARNING, logger="smartify"):
        out = r.transform('{"_key":"e1","_from":5,"_to":"persons/FR9876"}', 3)
    assert out == '{"_key":"e1","_from":5,"_to":"persons/FR:FR9876"}'
    assert any("_from is not a string" in rec.getMessage() for rec in caplog.records)


def test_json_second_pass_is_a_no_op() -> None:
    r = JsonEdgeResolver(_spec(), smart_index=2)
    line = '{"_key":"DE:e1:FR","_from":"persons/DE:DE12345","_to":"persons/FR:FR9876"}'
    assert r.transform(line, 1) == line


def test_json_bad_lines_are_dropped() -> None:
    r = JsonEdgeResolver(_spec())
    assert r.transform("{", 1) is None
    assert r.transform('"just a string"', 2) is None


def test_resolve_treats_empty_attribute_as_miss() -> None:
    t = TranslationTable()
    t.insert("persons/x1", "")
    assert resolve_reference("x1", "persons", -1, t) == ("persons/x1", None)


def test_csv_transform_requires_header() -> None:
    r = CsvEdgeResolver(_spec())
    with pytest.raises(SmartifyError, match="read_header"):
        r.transform("a,b", 2)
