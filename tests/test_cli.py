from __future__ import annotations

import json
import os
from pathlib import Path

import pytest

from smartify import cli


@pytest.fixture(autouse=True)
def _workdir(monkeypatch, tmp_path: Path) -> Path:
    for name in list(os.environ):
        if name.startswith("SMARTIFY_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


def _write(name: str, *lines: str) -> Path:
    p = Path(name)
    p.write_text("".join(line + "\n" for line in lines), encoding="utf-8")
    return p


def _exit_code(argv: list[str]) -> int:
    with pytest.raises(SystemExit) as ei:
        cli.main(argv)
    return ei.value.code


def test_no_arguments_prints_help(capsys) -> None:
    cli.main([])
    assert "usage: smartify" in capsys.readouterr().out


def test_unknown_command() -> None:
    assert _exit_code(["frobnicate"]) == 2


def test_vertices_command() -> None:
    _write("persons.csv", "name,country,_key", "Bob,DE12,bob1")

    code = _exit_code(
        ["vertices", "-i", "persons.csv", "-o", "out.csv", "--smart-value", "country", "--smart-index", "2"]
    )

    assert code == 0
    assert Path("out.csv").read_text(encoding="utf-8").splitlines() == [
        "name,country,_key,smart_id",
        "Bob,DE12,DE:bob1,DE",
    ]


def test_vertices_missing_input() -> None:
    assert _exit_code(["vertices", "-i", "nope.csv", "-o", "out.csv"]) == 1


def test_invalid_separator_is_a_usage_error() -> None:
    _write("persons.csv", "name,_key", "Bob,b")
    assert _exit_code(["vertices", "-i", "persons.csv", "-o", "o.csv", "--separator", ";;"]) == 2


def test_config_file_supplies_defaults() -> None:
    _write("smartify.toml", "[smartify]", 'smart_attribute = "region"')
    _write("persons.csv", "name,region,_key", "Bob,EU,bob1")

    assert _exit_code(["vertices", "-i", "persons.csv", "-o", "out.csv"]) == 0
    assert Path("out.csv").read_text(encoding="utf-8").splitlines()[1] == "Bob,EU,EU:bob1"


def test_run_command_resolves_edges() -> None:
    _write("persons.csv", "name,country,_key", "Alice,DE,alice", "Bob,FR,bob")
    _write("knows.csv", "src,dst,_key", "alice,bob,k1")

    code = _exit_code(
        [
            "run",
            "--vertices",
            "persons.csv:persons.out.csv",
            "--edges",
            "knows.csv:persons:persons:0:_from:1:_to",
            "--smart-value",
            "country",
        ]
    )

    assert code == 0
    assert Path("knows.csv").read_text(encoding="utf-8").splitlines() == [
        "_from,_to,_key",
        "persons/DE:alice,persons/FR:bob,DE:k1:FR",
    ]


def test_run_bad_vertex_job() -> None:
    assert _exit_code(["run", "--vertices", "persons.csv"]) == 2


def test_edges_bad_spec() -> None:
    assert _exit_code(["edges", "--edges", "knows.csv:persons"]) == 2


def test_edges_missing_columns() -> None:
    _write("knows.csv", "a,b", "x,y")
    assert _exit_code(["edges", "--edges", "knows.csv:persons:persons"]) == 4


def test_edges_with_vertex_file() -> None:
    _write("persons.jsonl", '{"_key":"DE:alice","smart_id":"DE"}')
    _write("knows.jsonl", '{"_from":"alice","_to":"persons/alice","_key":"k1"}')

    code = _exit_code(
        ["edges", "--type", "jsonl", "--edges", "knows.jsonl:persons:persons", "--vertex-file", "persons.jsonl"]
    )

    assert code == 0
    assert json.loads(Path("knows.jsonl").read_text(encoding="utf-8")) == {
        "_key": "DE:k1:DE",
        "_from": "persons/DE:alice",
        "_to": "persons/DE:alice",
    }


def test_check_command(capsys) -> None:
    _write("good.csv", "_key,smart_id", "DE:a,DE")
    _write("bad.csv", "_key,smart_id", ":a,")

    assert _exit_code(["check", "--kind", "vertices", "good.csv"]) == 0
    assert "[OK] good.csv: 1 rows, 0 violations" in capsys.readouterr().out

    assert _exit_code(["check", "--kind", "vertices", "good.csv", "bad.csv"]) == 6
    out = capsys.readouterr().out
    assert "[FAIL] bad.csv" in out
    assert "vertex_key_shape" in out


def test_check_json_output(capsys) -> None:
    _write("e.csv", "_from,_to", "persons/DE:a,persons/b")

    assert _exit_code(["check", "--kind", "edges", "--json", "e.csv"]) == 0
    report = json.loads(capsys.readouterr().out)
    assert report["kind"] == "edges"
    assert report["rows"] == 1


def test_unknown_log_level_is_a_usage_error() -> None:
    _write("persons.csv", "name,_key", "Bob,b")
    assert _exit_code(["vertices", "-i", "persons.csv", "-o", "o.csv", "--log-level", "FOO"]) == 2
