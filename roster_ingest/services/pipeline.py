from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import UTC, date, datetime
from pathlib import Path

from ..classes.resolver import ClassResolver
from ..config.loader import ImportConfig
from ..db.student_store import StudentStore
from ..errors import DecodeError, NoValidRecordsError, WriteError
from ..logging.error_log import ErrorLogBuffer
from ..mapping.field_mapper import SynonymTable, default_synonyms, load_synonyms, map_rows
from ..models.class_registry import ClassRegistryEntry
from ..models.error_record import ErrorRecord
from ..models.import_result import BatchStatsAccumulator, ImportReport, ImportResult
from ..models.row_error import RowError
from ..models.student_record import CanonicalStudentRecord
from ..tabular.header import locate_header
from ..tabular.reader import FileKind, detect_kind, read_tabular
from .dedup import deduplicate
from .progress import SheetProgressIndicator
from .validator import RowValidator
from .writer import write_in_chunks

"""Import pipeline orchestration.

parse_roster is the pure half: (file, class registry) -> ImportResult. It never
touches storage and never raises for a bad row.

import_roster wraps it for a real run: row errors go to the JSON Lines error
log, an empty result aborts the run, and the records are written in chunks
(or not at all in dry-run mode, when no store is given).
"""

__all__ = [
    "parse_roster",
    "import_roster",
    "NO_DATA_MESSAGE",
]

logger = logging.getLogger(__name__)

NO_DATA_MESSAGE = "No student data found. Check that sheet names match your class names in the database."


def parse_roster(
    path: Path,
    registry: Sequence[ClassRegistryEntry],
    *,
    kind: FileKind | None = None,
    prefer_sheet_name: bool | None = None,
    synonyms: SynonymTable | None = None,
    header_scan_rows: int = 5,
    default_phone: str = "0000000000",
    today: date | None = None,
) -> ImportResult:
    """Decode, map, validate and deduplicate one roster file.

    Args:
        path: CSV or workbook
        registry: class registry, loaded once by the caller
        kind: "csv" / "workbook"; inferred from the suffix when omitted
        prefer_sheet_name: try the sheet name before the class cell when
            resolving classes; defaults to True for workbooks, False for CSV
        synonyms: header synonym table (bundled table when omitted)
        header_scan_rows: how many leading rows may hold the header
        default_phone: father phone used when the row has none
        today: joining date for rows without one (defaults to date.today())

    Raises:
        DecodeError: the file cannot be opened or parsed
    """
    if kind is None:
        kind = detect_kind(path)
    if prefer_sheet_name is None:
        prefer_sheet_name = kind == "workbook"
    synonyms = synonyms or default_synonyms()

    sheets = read_tabular(path, kind)
    resolver = ClassResolver(registry)
    validator = RowValidator(
        resolver,
        prefer_sheet_name=prefer_sheet_name,
        default_phone=default_phone,
        today=today,
    )

    records: list[CanonicalStudentRecord] = []
    errors: list[RowError] = []
    sheet_progress = SheetProgressIndicator(file_name=path.name, total_sheets=len(sheets))

    for sheet in sheets:
        if sheet.non_empty_rows() < 2:
            logger.info("sheet=%s empty, skipping", sheet.sheet_name)
            continue
        sheet_progress.start_sheet(sheet.sheet_name)
        header = locate_header(sheet.rows, header_scan_rows)
        raw_rows = map_rows(sheet.rows, header, synonyms, sheet.sheet_name)
        logger.debug(
            "sheet=%s header_row=%d tokens=%s data_rows=%d",
            sheet.sheet_name,
            header.index + 1,
            header.tokens,
            len(raw_rows),
        )

        before_records = len(records)
        before_errors = len(errors)
        for raw in raw_rows:
            outcome = validator.validate(raw)
            if outcome is None:
                continue
            if isinstance(outcome, RowError):
                errors.append(outcome)
            else:
                records.append(outcome)

        added = len(records) - before_records
        skipped = len(errors) - before_errors
        sheet_progress.finish_sheet(records=added, skipped=skipped)
        logger.info("sheet=%s students=%d skipped=%d", sheet.sheet_name, added, skipped)

    dedup = deduplicate(records)
    if dedup.duplicates_dropped:
        logger.info("duplicates collapsed=%d (last row wins)", dedup.duplicates_dropped)

    return ImportResult(
        records=dedup.records,
        errors=errors,
        auto_generated_count=sum(1 for r in dedup.records if r.was_generated),
        classes_touched=dedup.classes_touched,
    )


def _resolve_synonyms(config: ImportConfig) -> SynonymTable:
    if config.synonyms_file:
        return load_synonyms(Path(config.synonyms_file))
    return default_synonyms()


def import_roster(
    path: Path,
    registry: Sequence[ClassRegistryEntry],
    store: StudentStore | None,
    *,
    config: ImportConfig | None = None,
    kind: FileKind | None = None,
    error_log: ErrorLogBuffer | None = None,
    today: date | None = None,
) -> ImportReport:
    """Run a full import of one file.

    ``store=None`` is a dry run: everything up to the write happens, nothing
    is persisted.

    Raises:
        DecodeError: the file cannot be decoded
        NoValidRecordsError: no row survived validation

    A failed chunk write does not raise; the returned report carries the
    error message and the number of records already committed.
    """
    config = config or ImportConfig()
    error_log = error_log if error_log is not None else ErrorLogBuffer()
    start_time = datetime.now(UTC)

    try:
        try:
            result = parse_roster(
                path,
                registry,
                kind=kind,
                prefer_sheet_name=config.prefer_sheet_name,
                synonyms=_resolve_synonyms(config),
                header_scan_rows=config.header_scan_rows,
                default_phone=config.default_phone,
                today=today,
            )
        except DecodeError as e:
            error_log.append(ErrorRecord.create(path.name, "<FILE_LEVEL>", -1, "DECODE_ERROR", str(e)))
            raise

        for err in result.errors:
            error_log.append(ErrorRecord.from_row_error(path.name, err))

        if not result.records:
            if result.errors:
                raise NoValidRecordsError(f"No valid rows found. First error: {result.errors[0].message}")
            raise NoValidRecordsError(NO_DATA_MESSAGE)

        stats = BatchStatsAccumulator()
        written = 0
        total_chunks = 0
        write_error: str | None = None
        schema_outdated = False

        if store is None:
            logger.info("dry run: %d students not saved", len(result.records))
        else:
            try:
                outcome = write_in_chunks(result.records, store, chunk_size=config.chunk_size, stats=stats)
                written = outcome.written
                total_chunks = outcome.total_chunks
            except WriteError as e:
                written = e.written
                total_chunks = e.total_chunks
                write_error = str(e)
                schema_outdated = e.schema_outdated
                error_log.append(
                    ErrorRecord.create(
                        path.name,
                        "<FILE_LEVEL>",
                        -1,
                        "SCHEMA_OUTDATED" if e.schema_outdated else "WRITE_ERROR",
                        f"{e} (written={e.written}, failed_chunk={e.failed_chunk + 1}/{e.total_chunks})",
                    )
                )

        _, avg_chunk, p95_chunk = stats.get_stats()
        return ImportReport(
            file_name=path.name,
            result=result,
            written=written,
            total_chunks=total_chunks,
            start_time=start_time,
            end_time=datetime.now(UTC),
            dry_run=store is None,
            write_error=write_error,
            schema_outdated=schema_outdated,
            avg_chunk_seconds=avg_chunk,
            p95_chunk_seconds=p95_chunk,
        )
    finally:
        try:
            error_log.flush()
        except OSError as e:
            logger.warning("could not write error log: %s", e)
