"""
Record stream driver: vertex phase, then edge phase.

Overview
- Streams one file at a time, line by line, through a core transformer and into a
  sibling temporary file, then moves the temporary file into place with os.replace.
- Vertex files populate a shared TranslationTable; the table is frozen before the
  first edge file is read, so every edge sees every vertex.
- Each file either completes or fails with an ExitCode; errors never cross a file
  boundary, and a run stops at the first failing file.

Line handling
- Input is read as bytes and decoded per line (UTF-8); undecodable lines are logged
  and dropped. Blank lines are skipped. Records that cannot be encoded as UTF-8 on
  output (lone surrogates from JSON escapes) are logged and dropped.
- Line numbers in diagnostics are 1-based physical input lines.
- Progress is logged every ``SmartifySettings.progress_every`` records with the
  elapsed time from the run's RunClock.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, TextIO

from smartify.core.edges import CsvEdgeResolver, EdgeCollectionSpec, JsonEdgeResolver
from smartify.core.errors import EdgeColumnsError
from smartify.core.timing import RunClock
from smartify.core.translation import TranslationTable
from smartify.core.vertices import CsvVertexTransformer, JsonVertexTransformer, VertexOptions
from smartify.logs import get_logger

from . import fs
from .config import SmartifySettings
from .errors import (
    ExitCode,
    IoColumnsError,
    IoCreateError,
    IoError,
    IoFlushError,
    IoHeaderError,
    IoOpenError,
)

__all__ = [
    "VertexJob",
    "default_collection",
    "transform_vertex_file",
    "prime_translation",
    "transform_edge_file",
    "run_vertices",
    "run_edges",
    "run",
]

log = get_logger(__name__)

_DATA_SUFFIXES = {".csv", ".tsv", ".jsonl", ".json", ".txt"}

HeaderFn = Callable[[str], str]
LineFn = Callable[[str, int], str | None]


def default_collection(path: str) -> str:
    """
    Derive a vertex collection name from a file name.

    >>> default_collection("data/persons.csv")
    'persons'
    >>> default_collection("persons.jsonl.out")
    'persons.jsonl.out'
    """
    p = Path(path)
    name = p.name
    while Path(name).suffix.lower() in _DATA_SUFFIXES:
        name = Path(name).stem
    return name


@dataclass(frozen=True)
class VertexJob:
    """
    One vertex file to transform.

    Attributes:
        input_path (str): Vertex file to read.
        output_path (str): File to write (replaced atomically).
        collection (str): Collection used for ``collection/key`` identifiers.
    """

    input_path: str
    output_path: str
    collection: str

    @classmethod
    def from_string(cls, text: str) -> VertexJob:
        """
        Parse ``input:output[:collection]``.

        Raises:
            ValueError: On a missing output or too many parts.
        """
        parts = text.split(":")
        if len(parts) not in (2, 3) or not parts[0] or not parts[1]:
            raise ValueError(f"invalid vertex specification {text!r}: expected input:output[:collection]")
        coll = parts[2] if len(parts) == 3 and parts[2] else default_collection(parts[0])
        return cls(input_path=parts[0], output_path=parts[1], collection=coll)


# ----------------------------------------------------------------------------
# Line plumbing
# ----------------------------------------------------------------------------


def _decode(raw: bytes) -> str:
    return raw.decode("utf-8").rstrip("\r\n")


def _iter_lines(src: BinaryIO, source: str, start: int) -> Iterator[tuple[int, str]]:
    for line_no, raw in enumerate(src, start=start):
        try:
            text = _decode(raw)
        except UnicodeDecodeError as exc:
            log.warning("%s:%d: cannot decode line (%s); skipping", source, line_no, exc)
            continue
        if not text.strip():
            continue
        yield line_no, text


def _open_input(path: str) -> BinaryIO:
    try:
        return fs.open_read(path)
    except OSError as exc:
        raise IoOpenError(f"cannot open input file {path}: {exc}") from exc


def _open_output(path: str) -> TextIO:
    try:
        return fs.open_write(path)
    except OSError as exc:
        raise IoCreateError(f"cannot create output file {path}: {exc}") from exc


def _read_header(src: BinaryIO, source: str) -> str:
    raw = src.readline()
    try:
        text = _decode(raw)
    except UnicodeDecodeError as exc:
        raise IoHeaderError(f"could not read header line in {source}: {exc}") from exc
    if not text.strip():
        raise IoHeaderError(f"could not read header line in {source}")
    return text


def _pump(
    src: BinaryIO,
    out: TextIO | None,
    *,
    header: HeaderFn | None,
    transform: LineFn,
    source: str,
    noun: str,
    settings: SmartifySettings,
    clock: RunClock,
) -> int:
    """Stream ``src`` through ``transform`` into ``out``; return the record count."""
    start = 1
    if header is not None:
        text = _read_header(src, source)
        try:
            new_header = header(text)
        except EdgeColumnsError as exc:
            raise IoColumnsError(str(exc)) from exc
        if out is not None:
            out.write(new_header + "\n")
        start = 2

    count = 0
    for line_no, text in _iter_lines(src, source, start):
        result = transform(text, line_no)
        count += 1
        if result is not None and out is not None:
            try:
                out.write(result + "\n")
            except UnicodeEncodeError as exc:
                log.warning("%s:%d: cannot encode record as UTF-8 (%s); skipping", source, line_no, exc)
        if count % settings.progress_every == 0:
            log.info("%.3f Have transformed %d %s in %s ...", clock.elapsed(), count, noun, source)
    return count


def _rewrite(
    input_path: str,
    final_path: str,
    *,
    header: HeaderFn | None,
    transform: LineFn,
    noun: str,
    settings: SmartifySettings,
    clock: RunClock,
) -> int:
    """
    tmp write → fsync → os.replace(tmp, final).

    Raises:
        IoError: On fatal conditions. The temporary file is removed on any failure.
    """
    tmp = fs.sibling_tmp(final_path, settings.tmp_suffix)
    try:
        with _open_input(input_path) as src:
            out = _open_output(tmp)
            try:
                count = _pump(
                    src,
                    out,
                    header=header,
                    transform=transform,
                    source=input_path,
                    noun=noun,
                    settings=settings,
                    clock=clock,
                )
                fs.fsync_file(out)
            except OSError as exc:
                raise IoFlushError(f"error writing {tmp}: {exc}") from exc
            finally:
                try:
                    out.close()
                except OSError as exc:
                    raise IoFlushError(f"error closing {tmp}: {exc}") from exc
        try:
            fs.rename_atomic(tmp, final_path)
        except OSError as exc:
            raise IoFlushError(f"cannot move {tmp} to {final_path}: {exc}") from exc
    except Exception:
        fs.remove_if_exists(tmp)
        raise
    return count


def _guarded(tmp: str | None, action: Callable[[], int], what: str) -> ExitCode:
    try:
        action()
    except IoError as exc:
        log.error("%s", exc)
        if tmp is not None and fs.remove_if_exists(tmp):
            log.debug("removed temporary file %s", tmp)
        log.error("aborted %s with status %d", what, int(exc.exit_code))
        return exc.exit_code
    return ExitCode.OK


# ----------------------------------------------------------------------------
# Vertices
# ----------------------------------------------------------------------------


def _vertex_callbacks(
    input_path: str,
    options: VertexOptions,
    settings: SmartifySettings,
    collection: str | None,
    table: TranslationTable | None,
) -> tuple[HeaderFn | None, LineFn]:
    if settings.data_type == "jsonl":
        jt = JsonVertexTransformer(options, collection=collection, table=table, source=input_path)
        return None, jt.transform
    ct = CsvVertexTransformer(
        options,
        separator=settings.separator,
        quote_char=settings.quote_char,
        collection=collection,
        table=table,
        source=input_path,
    )
    return ct.read_header, ct.transform


def transform_vertex_file(
    input_path: str,
    output_path: str,
    options: VertexOptions,
    settings: SmartifySettings,
    *,
    collection: str | None = None,
    table: TranslationTable | None = None,
    clock: RunClock | None = None,
) -> ExitCode:
    """
    Transform one vertex file into ``output_path``.

    Args:
        input_path (str): Vertex file (CSV with header, or JSON lines).
        output_path (str): Destination; written via a sibling temporary file.
        options (VertexOptions): Field selection.
        settings (SmartifySettings): Encoding and progress settings.
        collection (str | None): Collection for table identifiers (default: file stem).
        table (TranslationTable | None): Receives ``collection/key -> attribute``.
        clock (RunClock | None): Run timing context.

    Returns:
        ExitCode: OK, or the status of the fatal condition that aborted the file.
    """
    clock = clock or RunClock()
    collection = collection or default_collection(input_path)
    header, transform = _vertex_callbacks(input_path, options, settings, collection, table)

    def action() -> int:
        log.info("%.3f Transforming vertices in %s", clock.elapsed(), input_path)
        n = _rewrite(
            input_path,
            output_path,
            header=header,
            transform=transform,
            noun="vertices",
            settings=settings,
            clock=clock,
        )
        log.info("%.3f Done transforming %d vertices in %s", clock.elapsed(), n, input_path)
        return n

    return _guarded(fs.sibling_tmp(output_path, settings.tmp_suffix), action, f"vertex file {input_path}")


def prime_translation(
    input_path: str,
    options: VertexOptions,
    settings: SmartifySettings,
    table: TranslationTable,
    *,
    collection: str | None = None,
    clock: RunClock | None = None,
) -> ExitCode:
    """
    Fill ``table`` from a vertex file without writing anything.

    Notes:
        Works on raw and already transformed vertex files alike; composite keys are
        recorded under their suffix.
    """
    clock = clock or RunClock()
    collection = collection or default_collection(input_path)
    header, transform = _vertex_callbacks(input_path, options, settings, collection, table)

    def action() -> int:
        with _open_input(input_path) as src:
            n = _pump(
                src,
                None,
                header=header,
                transform=transform,
                source=input_path,
                noun="vertices",
                settings=settings,
                clock=clock,
            )
        log.info(
            "%.3f Read %d vertices from %s (%d identifiers known)",
            clock.elapsed(),
            n,
            input_path,
            len(table),
        )
        return n

    return _guarded(None, action, f"vertex file {input_path}")


def run_vertices(
    jobs: Sequence[VertexJob],
    options: VertexOptions,
    settings: SmartifySettings,
    *,
    table: TranslationTable | None = None,
    clock: RunClock | None = None,
) -> ExitCode:
    """Transform vertex files in order, stopping at the first failure."""
    clock = clock or RunClock()
    for job in jobs:
        code = transform_vertex_file(
            job.input_path,
            job.output_path,
            options,
            settings,
            collection=job.collection,
            table=table,
            clock=clock,
        )
        if code != ExitCode.OK:
            return code
    return ExitCode.OK


# ----------------------------------------------------------------------------
# Edges
# ----------------------------------------------------------------------------


def transform_edge_file(
    spec: EdgeCollectionSpec,
    settings: SmartifySettings,
    *,
    table: TranslationTable | None = None,
    clock: RunClock | None = None,
) -> ExitCode:
    """
    Rewrite one edge file in place (sibling temporary file + atomic replace).

    Returns:
        ExitCode: OK, or the status of the fatal condition; the original file is left
        untouched on failure.
    """
    clock = clock or RunClock()
    header: HeaderFn | None
    if settings.data_type == "jsonl":
        jr = JsonEdgeResolver(spec, smart_index=settings.smart_index, table=table)
        header, transform = None, jr.transform
    else:
        cr = CsvEdgeResolver(
            spec,
            separator=settings.separator,
            quote_char=settings.quote_char,
            smart_index=settings.smart_index,
            table=table,
        )
        header, transform = cr.read_header, cr.transform

    def action() -> int:
        log.info("%.3f Transforming edges in %s", clock.elapsed(), spec.file_name)
        n = _rewrite(
            spec.file_name,
            spec.file_name,
            header=header,
            transform=transform,
            noun="edges",
            settings=settings,
            clock=clock,
        )
        log.info("%.3f Done transforming %d edges in %s", clock.elapsed(), n, spec.file_name)
        return n

    return _guarded(
        fs.sibling_tmp(spec.file_name, settings.tmp_suffix), action, f"edge file {spec.file_name}"
    )


def run_edges(
    specs: Sequence[EdgeCollectionSpec],
    settings: SmartifySettings,
    *,
    table: TranslationTable | None = None,
    clock: RunClock | None = None,
) -> ExitCode:
    """Rewrite edge files in order, stopping at the first failure."""
    clock = clock or RunClock()
    for spec in specs:
        code = transform_edge_file(spec, settings, table=table, clock=clock)
        if code != ExitCode.OK:
            return code
    return ExitCode.OK


def run(
    jobs: Sequence[VertexJob],
    specs: Sequence[EdgeCollectionSpec],
    options: VertexOptions,
    settings: SmartifySettings,
    *,
    table: TranslationTable | None = None,
    clock: RunClock | None = None,
) -> ExitCode:
    """
    Full pass: every vertex file, then every edge file, sharing one translation table.

    Returns:
        ExitCode: OK or the status of the first failing file (later files are skipped).
    """
    clock = clock or RunClock()
    table = table if table is not None else TranslationTable()
    code = run_vertices(jobs, options, settings, table=table, clock=clock)
    if code != ExitCode.OK:
        return code
    table.freeze()
    log.info(
        "%.3f Translation table ready: %d identifiers, %d distinct attributes",
        clock.elapsed(),
        len(table),
        len(table.attributes),
    )
    return run_edges(specs, settings, table=table, clock=clock)
