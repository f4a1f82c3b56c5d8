from __future__ import annotations

import argparse
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from roster_ingest.classes.registry import RegistryLoadError, load_class_registry, registry_from_config
from roster_ingest.config.loader import DEFAULT_CONFIG_PATH, ConfigError, ImportConfig, load_config
from roster_ingest.db.student_store import PostgresStudentStore
from roster_ingest.errors import DecodeError, NoValidRecordsError, RosterImportError
from roster_ingest.logging.error_log import ErrorLogBuffer
from roster_ingest.logging.init import log_summary, setup_logging
from roster_ingest.models.import_result import ImportReport
from roster_ingest.services.pipeline import import_roster
from roster_ingest.services.summary import render_error_preview, render_result_message, render_summary_line
from roster_ingest.services.template import write_template

"""CLI entrypoint.

    python -m roster_ingest.cli FILE [--config PATH] [--kind csv|workbook]
                                     [--debug] [--dry-run] [--inspect-data]
    python -m roster_ingest.cli --template OUT.csv

Flow:
- Load .env (overrides the environment) and the YAML config
- Load the class registry (classes table, or config ``classes:`` in dry-run)
- Run the import and print the result message and SUMMARY line

Exit codes: 0 all rows saved, 2 partial (rows skipped or a chunk write
failed), 1 fatal (nothing could be imported).
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1


def _build_dsn(cfg: ImportConfig) -> str:
    """Resolve connection parameters.

    Priority: DATABASE_URL / PGDSN, then individual PG* variables, then the
    ``database`` section of the config.
    """
    db_cfg = cfg.database
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if dsn:
        return dsn
    host = os.getenv("PGHOST", db_cfg.host or "localhost")
    port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = os.getenv("PGUSER", db_cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", db_cfg.password or "")
    database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


class DatabaseConnectionError(RosterImportError):
    """Raised when the PostgreSQL connection cannot be opened."""


@contextmanager
def _db_connection(cfg: ImportConfig) -> Iterator[Any]:  # pragma: no cover (thin wrapper)
    """Yield a psycopg2 cursor; the connection is closed on exit."""
    import psycopg2

    try:
        conn = psycopg2.connect(_build_dsn(cfg))
    except (psycopg2.Error, OSError) as e:
        raise DatabaseConnectionError(str(e).strip()) from e
    # transaction boundaries are the explicit BEGIN/COMMIT issued per chunk
    conn.autocommit = True
    try:
        with conn.cursor() as cur:
            yield cur
    finally:
        conn.close()


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env with python-dotenv; values in the file win over the environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="python -m roster_ingest.cli",
        description="Import a student roster (CSV or workbook) into the students table",
    )
    p.add_argument("file", nargs="?", type=Path, help="Roster file (.csv, .xlsx, .xlsm, .xls)")
    p.add_argument("--config", type=Path, default=None, help=f"Config YAML (default {DEFAULT_CONFIG_PATH})")
    p.add_argument("--kind", choices=("csv", "workbook"), default=None, help="Override file kind detection")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--dry-run", action="store_true", help="Validate only; registry comes from config classes")
    p.add_argument("--inspect-data", action="store_true", help="Print detected headers & first rows then exit")
    p.add_argument("--template", type=Path, metavar="OUT.csv", help="Write a blank roster template and exit")
    args = p.parse_args(argv)
    if args.template is None and args.file is None:
        p.error("FILE is required unless --template is given")
    return args


def _load_cfg(path: Path | None) -> ImportConfig:
    if path is not None:
        return load_config(path)
    if DEFAULT_CONFIG_PATH.exists():
        return load_config(DEFAULT_CONFIG_PATH)
    return ImportConfig()


def _inspect_data(path: Path, cfg: ImportConfig, kind: str | None) -> int:
    from roster_ingest.mapping.field_mapper import default_synonyms, load_synonyms, map_rows
    from roster_ingest.tabular.header import locate_header
    from roster_ingest.tabular.reader import read_tabular

    try:
        synonyms = load_synonyms(Path(cfg.synonyms_file)) if cfg.synonyms_file else default_synonyms()
        sheets = read_tabular(path, kind)  # type: ignore[arg-type]
    except (DecodeError, ConfigError) as e:
        print(f"inspect: read_error: {e}")
        return EXIT_FATAL
    print(f"FILE: {path.name}")
    for sheet in sheets:
        if sheet.non_empty_rows() < 2:
            print(f"  SHEET: {sheet.sheet_name} (empty)")
            continue
        header = locate_header(sheet.rows, cfg.header_scan_rows)
        mapped = [t for t in header.tokens if synonyms.lookup(t)]
        unmapped = [t for t in header.tokens if t and not synonyms.lookup(t)]
        print(f"  SHEET: {sheet.sheet_name} header_row={header.index + 1} mapped={mapped} unmapped={unmapped}")
        for raw in map_rows(sheet.rows, header, synonyms, sheet.sheet_name)[:3]:
            print(f"    row {raw.row_number}: {dict(raw.values)}")
    return EXIT_SUCCESS_ALL


def _report(report: ImportReport, logger: Any) -> int:
    result = report.result
    message = render_result_message(report)
    if report.write_error is not None:
        logger.error(message)
    else:
        logger.info(message)
    if result.errors:
        logger.warning("skipped rows: %s", render_error_preview(result.errors))
    log_summary(render_summary_line(report)[len("SUMMARY "):])

    if report.write_error is not None or result.errors:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


def main(argv: list[str] | None = None) -> int:
    # None reads sys.argv; an explicit [] must not pick up the test runner's args
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    logger = setup_logging(debug=args.debug)
    logger.debug("debug mode enabled")

    _load_env_file(Path(".env"), override=True)
    try:
        cfg = _load_cfg(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.template is not None:
        try:
            write_template(args.template)
        except (OSError, ConfigError) as e:
            logger.error(f"template: {e}")
            return EXIT_FATAL
        return EXIT_SUCCESS_ALL

    path: Path = args.file
    if args.inspect_data:
        return _inspect_data(path, cfg, args.kind)

    offline = args.dry_run or os.getenv("DISABLE_DB_CONNECT") == "1"
    error_log = ErrorLogBuffer()

    try:
        if offline:
            logger.debug("offline mode: registry from config, nothing is saved")
            registry = registry_from_config(cfg.classes)
            if not registry:
                logger.error("dry run needs a 'classes' list in the config")
                return EXIT_FATAL
            report = import_roster(path, registry, None, config=cfg, kind=args.kind, error_log=error_log)
        else:
            try:
                with _db_connection(cfg) as cur:
                    registry = load_class_registry(cur, cfg.classes_table)
                    if not registry:
                        logger.error("No classes found in the database. Create classes before importing students.")
                        return EXIT_FATAL
                    store = PostgresStudentStore(cur, table=cfg.students_table)
                    report = import_roster(path, registry, store, config=cfg, kind=args.kind, error_log=error_log)
            except RegistryLoadError as e:
                logger.error(f"registry: {e}")
                return EXIT_FATAL
            except ImportError as e:  # pragma: no cover
                logger.error(f"psycopg2 not available: {e}")
                return EXIT_FATAL
            except DatabaseConnectionError as e:
                logger.error(f"database connection failed: {e}")
                return EXIT_FATAL
    except DecodeError as e:
        logger.error(f"decode: {e}")
        return EXIT_FATAL
    except NoValidRecordsError as e:
        logger.error(str(e))
        return EXIT_FATAL
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL
    finally:
        if error_log.written_path is not None:
            logger.info(f"error log: {error_log.written_path}")

    return _report(report, logger)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
