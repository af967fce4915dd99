from __future__ import annotations

import argparse
import sys
from dataclasses import replace

from smartify.core.edges import EdgeCollectionSpec, parse_edge_specs
from smartify.core.errors import EdgeSpecError
from smartify.core.timing import RunClock
from smartify.core.translation import TranslationTable
from smartify.core.vertices import VertexOptions
from smartify.io.check import check_edge_file, check_vertex_file
from smartify.io.config import SmartifySettings
from smartify.io.errors import ExitCode, IoConfigError, IoError
from smartify.io.stream import (
    VertexJob,
    default_collection,
    prime_translation,
    run,
    run_edges,
    transform_vertex_file,
)
from smartify.logs import configure_logging

EDGE_SPEC_HELP = "Edge specification <edgefile>:<fromColl>:<toColl>[:<colIndex>:<newName> ...]"


def _add_format_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--type", dest="data_type", choices=["csv", "jsonl"], help="Input data type.")
    p.add_argument("--separator", type=str, help="Column separator for CSV.")
    p.add_argument("--quote-char", type=str, help="Quote character for CSV.")
    p.add_argument(
        "--smart-index",
        type=int,
        help="If >0, take at most this many characters for the smart graph attribute.",
    )
    p.add_argument(
        "--smart-graph-attribute",
        dest="smart_attribute",
        type=str,
        help="Name of the smart graph attribute (default: smart_id).",
    )
    p.add_argument("--config", type=str, default=None, help="TOML config file.")
    p.add_argument("--log-level", type=str, default=None, help="Logging level (INFO, DEBUG, ...).")


def _add_vertex_args(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--write-key", action="store_true", help="Materialize the _key attribute if missing."
    )
    p.add_argument(
        "--smart-value", type=str, default=None, help="Attribute/column the smart value comes from."
    )
    p.add_argument(
        "--smart-default",
        type=str,
        default="",
        help="Default smart graph attribute if not present (JSONL only).",
    )
    p.add_argument(
        "--key-value", type=str, default=None, help="Attribute/column holding the _key suffix."
    )


def _settings(p: argparse.ArgumentParser, args: argparse.Namespace) -> SmartifySettings:
    """Load settings (env > TOML > defaults) and apply CLI overrides on top."""
    try:
        s = SmartifySettings.load(args.config)
        overrides = {
            name: getattr(args, name)
            for name in ("data_type", "separator", "quote_char", "smart_index", "smart_attribute", "log_level")
            if getattr(args, name, None) is not None
        }
        s = replace(s, **overrides).validate()
    except IoConfigError as exc:
        p.error(str(exc))
    configure_logging(s.log_level, force=True)
    return s


def _vertex_options(args: argparse.Namespace, s: SmartifySettings) -> VertexOptions:
    return VertexOptions(
        smart_attribute=s.smart_attribute,
        smart_value=args.smart_value or None,
        smart_index=s.smart_index,
        smart_default=args.smart_default,
        write_key=bool(args.write_key),
        key_value=args.key_value or None,
    )


def _edge_specs(p: argparse.ArgumentParser, texts: list[str]) -> list[EdgeCollectionSpec]:
    try:
        return parse_edge_specs(texts)
    except EdgeSpecError as exc:
        p.error(str(exc))


def _cmd_vertices(argv: list[str]) -> int:
    p = argparse.ArgumentParser(
        prog="smartify vertices", description="Transform vertices into smart graph format."
    )
    p.add_argument("-i", "--input", required=True, help="Input file (CSV or JSONL).")
    p.add_argument("-o", "--output", required=True, help="Output file (CSV or JSONL).")
    p.add_argument(
        "--collection", type=str, default=None, help="Vertex collection name (default: file stem)."
    )
    _add_format_args(p)
    _add_vertex_args(p)
    args = p.parse_args(argv)

    s = _settings(p, args)
    return int(
        transform_vertex_file(
            args.input,
            args.output,
            _vertex_options(args, s),
            s,
            collection=args.collection,
        )
    )


def _cmd_edges(argv: list[str]) -> int:
    p = argparse.ArgumentParser(
        prog="smartify edges", description="Transform edges into smart graph format (in place)."
    )
    p.add_argument("--edges", nargs="+", required=True, help=EDGE_SPEC_HELP)
    p.add_argument(
        "--vertex-file",
        action="append",
        default=[],
        help="Vertex file <file>[:<collection>] read to resolve endpoints (repeatable).",
    )
    _add_format_args(p)
    _add_vertex_args(p)
    args = p.parse_args(argv)

    s = _settings(p, args)
    specs = _edge_specs(p, args.edges)
    clock = RunClock()
    table = TranslationTable()
    options = _vertex_options(args, s)
    for text in args.vertex_file:
        path, _, coll = text.partition(":")
        code = prime_translation(
            path, options, s, table, collection=coll or default_collection(path), clock=clock
        )
        if code != ExitCode.OK:
            return int(code)
    table.freeze()
    return int(run_edges(specs, s, table=table, clock=clock))


def _cmd_run(argv: list[str]) -> int:
    p = argparse.ArgumentParser(
        prog="smartify run",
        description="Transform all vertex files, then all edge files, sharing one translation table.",
    )
    p.add_argument(
        "--vertices",
        nargs="+",
        required=True,
        help="Vertex specification <input>:<output>[:<collection>].",
    )
    p.add_argument("--edges", nargs="+", default=[], help=EDGE_SPEC_HELP)
    _add_format_args(p)
    _add_vertex_args(p)
    args = p.parse_args(argv)

    s = _settings(p, args)
    try:
        jobs = [VertexJob.from_string(t) for t in args.vertices]
    except ValueError as exc:
        p.error(str(exc))
    specs = _edge_specs(p, args.edges)
    return int(run(jobs, specs, _vertex_options(args, s), s))


def _cmd_check(argv: list[str]) -> int:
    p = argparse.ArgumentParser(
        prog="smartify check", description="Report rows breaking smart graph key invariants."
    )
    p.add_argument("files", nargs="+", help="Transformed files to check.")
    p.add_argument("--kind", choices=["vertices", "edges"], required=True)
    p.add_argument("--limit", type=int, default=20, help="Example violations shown per rule.")
    p.add_argument("--json", action="store_true", help="Print reports as JSON lines.")
    _add_format_args(p)
    args = p.parse_args(argv)

    s = _settings(p, args)
    failed = False
    for path in args.files:
        try:
            if args.kind == "vertices":
                report = check_vertex_file(path, s, limit=args.limit)
            else:
                report = check_edge_file(path, s, limit=args.limit)
        except IoError as exc:
            print(f"[ERROR] {exc}", file=sys.stderr)
            return int(exc.exit_code)
        failed = failed or not report.ok
        if args.json:
            print(report.model_dump_json())
            continue
        status = "OK" if report.ok else "FAIL"
        print(f"[{status}] {path}: {report.rows} rows, {report.violation_count} violations")
        if report.missing_columns:
            print(f"  missing columns: {', '.join(report.missing_columns)}")
        for v in report.violations:
            print(f"  line {v.line}: {v.field}={v.value!r} ({v.rule})")
    return int(ExitCode.CHECK_FAILED if failed else ExitCode.OK)


def build_argparser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="smartify", description="Transform graph data into smart graph format."
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    sub.add_parser("vertices", help="Transform one vertex file.")
    sub.add_parser("edges", help="Transform edge files in place.")
    sub.add_parser("run", help="Transform vertex files, then edge files.")
    sub.add_parser("check", help="Check transformed files.")
    return p


COMMANDS = {
    "vertices": _cmd_vertices,
    "edges": _cmd_edges,
    "run": _cmd_run,
    "check": _cmd_check,
}


def main(argv: list[str] | None = None) -> None:
    argv = list(sys.argv[1:] if argv is None else argv)
    if not argv:
        build_argparser().print_help()
        return
    cmd, rest = argv[0], argv[1:]
    handler = COMMANDS.get(cmd)
    if handler is None:
        print(f"Unknown command: {cmd}", file=sys.stderr)
        code = 2
    else:
        code = handler(rest)
    raise SystemExit(code)


if __name__ == "__main__":
    main()
