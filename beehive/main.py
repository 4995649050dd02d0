"""
Command-line entrypoint for the beehive backend.

Subcommands:
    import  Load one or more CSV files of readings into the measurement
            tables. Jobs run concurrently, each with its own batch buffer.
    status  Print the latest reading of every measurement kind for a hive.

Usage:
    beehive import ./beehive_data/flow_schwartau.csv --hive-id 1 --data-type flow
    beehive import --job ./flow_2017.csv:0:flow --job ./weight_2017.csv:0:weight
    beehive status --hive-id 1

Structured JSON logging goes to stderr. SIGTERM/SIGINT during an import
stop reading and flush what is buffered before exiting.

CHANGELOG:
- 2026-10-16: Validate CLI overrides against the settings limits
- 2026-10-15: Add status subcommand
- 2026-10-14: Accept repeated --job for concurrent imports; graceful shutdown
- 2026-10-12: Initial creation
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import signal
import sys
from datetime import UTC, datetime
from pathlib import Path

from pydantic import ValidationError
from sqlalchemy.engine import make_url

from beehive.cache.redis_client import configure_cache
from beehive.config import ImporterSettings
from beehive.db.session import create_engine, create_session_factory
from beehive.importer.driver import ImportJob, run_imports
from beehive.importer.kinds import DataKind
from beehive.importer.models import ImportReport
from beehive.services.status import hive_status

logger = logging.getLogger(__name__)

_KIND_CHOICES = [kind.value for kind in DataKind]


# ---------------------------------------------------------------------------
# Structured JSON logging setup
# ---------------------------------------------------------------------------


def configure_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging on stderr.

    Args:
        level: Root log level name.
    """

    class _JsonFormatter(logging.Formatter):
        """Minimal JSON log formatter."""

        def format(self, record: logging.LogRecord) -> str:
            log_entry = {
                "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
                "level": record.levelname,
                "logger": record.name,
                "msg": record.getMessage(),
            }
            if record.exc_info and record.exc_info[1] is not None:
                log_entry["exception"] = self.formatException(record.exc_info)
            return json.dumps(log_entry)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(_JsonFormatter())
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)


def _masked_url(url: str) -> str:
    """Return *url* with any password replaced by ``***``."""
    try:
        return make_url(url).render_as_string(hide_password=True)
    except Exception:
        return "<unparseable>"


def log_config_summary(settings: ImporterSettings) -> None:
    """Log a config summary at startup, excluding secrets."""
    logger.info(
        "Starting with config: database_url=%s, redis_url=%s, "
        "batch_size=%s, skip_interval=%s, timestamp_column=%s, "
        "read_chunk_rows=%s, cache_ttl_s=%s",
        _masked_url(settings.database_url),
        _masked_url(settings.redis_url) if settings.redis_url else "disabled",
        settings.batch_size,
        settings.skip_interval,
        settings.timestamp_column,
        settings.read_chunk_rows,
        settings.cache_ttl_s,
    )


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def _positive_int(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"'{raw}' is not an integer") from None
    if value < 1:
        raise argparse.ArgumentTypeError(f"'{raw}' must be >= 1")
    return value


def parse_job(raw: str) -> ImportJob:
    """Parse a ``PATH:HIVE_ID:KIND`` job string.

    The path may itself contain colons; only the last two are separators.

    Raises:
        argparse.ArgumentTypeError: If the string is malformed.
    """
    parts = raw.rsplit(":", 2)
    if len(parts) != 3 or not parts[0]:
        raise argparse.ArgumentTypeError(
            f"Job '{raw}' must have the form PATH:HIVE_ID:KIND"
        )
    path, hive_id, kind = parts
    try:
        hive = int(hive_id)
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"Job '{raw}': hive id '{hive_id}' is not an integer"
        ) from None
    try:
        data_kind = DataKind(kind)
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"Job '{raw}': unknown data type '{kind}' "
            f"(choose from {', '.join(_KIND_CHOICES)})"
        ) from None
    return ImportJob(path=Path(path), hive_id=hive, kind=data_kind)


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="beehive",
        description="Beehive monitoring backend tools",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    imp = sub.add_parser("import", help="Import CSV readings into the database")
    imp.add_argument("path", nargs="?", type=Path, help="CSV file to import")
    imp.add_argument("--hive-id", type=int, dest="hive_id", help="Hive of PATH")
    imp.add_argument(
        "--data-type",
        choices=_KIND_CHOICES,
        dest="data_type",
        help="Measurement kind held in PATH",
    )
    imp.add_argument(
        "--job",
        action="append",
        type=parse_job,
        default=[],
        dest="jobs",
        metavar="PATH:HIVE_ID:KIND",
        help="Additional file to import (repeatable)",
    )
    imp.add_argument(
        "--batch-size",
        type=_positive_int,
        dest="batch_size",
        help="Records per bulk insert (default BATCH_SIZE or 500)",
    )
    imp.add_argument(
        "--skip-interval",
        type=_positive_int,
        dest="skip_interval",
        help="Only import every Nth row (default SKIP_INTERVAL or 1)",
    )

    status = sub.add_parser("status", help="Show the latest readings of a hive")
    status.add_argument("--hive-id", type=int, dest="hive_id", required=True)

    return parser


def _collect_jobs(
    parser: argparse.ArgumentParser, args: argparse.Namespace
) -> list[ImportJob]:
    jobs: list[ImportJob] = list(args.jobs)
    if args.path is not None:
        if args.hive_id is None or args.data_type is None:
            parser.error("PATH requires --hive-id and --data-type")
        jobs.insert(
            0,
            ImportJob(
                path=args.path, hive_id=args.hive_id, kind=DataKind(args.data_type)
            ),
        )
    if not jobs:
        parser.error("nothing to import: give PATH or at least one --job")
    return jobs


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


async def _run_import(jobs: list[ImportJob], settings: ImporterSettings) -> int:
    """Run the import jobs and return the process exit code."""
    cancel_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, lambda: _handle_signal(cancel_event))

    engine = create_engine(settings.database_url)
    try:
        results = await run_imports(
            jobs,
            session_factory=create_session_factory(engine),
            batch_size=settings.batch_size,
            skip_interval=settings.skip_interval,
            timestamp_column=settings.timestamp_column,
            chunk_rows=settings.read_chunk_rows,
            cancel_event=cancel_event,
        )
    finally:
        await engine.dispose()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.remove_signal_handler(sig)

    exit_code = 0
    for job, result in zip(jobs, results, strict=True):
        if isinstance(result, ImportReport):
            continue
        logger.error(
            "Error importing %s: %s",
            job.path,
            result,
            exc_info=(type(result), result, result.__traceback__),
        )
        exit_code = 1
    if exit_code == 0:
        logger.info("Data successfully imported (%d file(s))", len(jobs))
    return exit_code


async def _run_status(hive_id: int, settings: ImporterSettings) -> int:
    engine = create_engine(settings.database_url)
    try:
        async with create_session_factory(engine)() as session:
            status = await hive_status(
                session, hive_id, cache_ttl_s=settings.cache_ttl_s
            )
    finally:
        await engine.dispose()
    print(json.dumps(status))
    return 0


def _handle_signal(cancel_event: asyncio.Event) -> None:
    """Handle SIGTERM/SIGINT by setting the cancel event."""
    logger.info("Received shutdown signal, flushing buffered records and stopping")
    cancel_event.set()


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


async def async_main(argv: list[str] | None = None) -> int:
    """Async entrypoint: parse args, load config, run the command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = ImporterSettings()
    configure_logging(settings.log_level)
    configure_cache(settings.redis_url)
    log_config_summary(settings)

    if args.command == "status":
        return await _run_status(args.hive_id, settings)

    jobs = _collect_jobs(parser, args)
    overrides = {
        key: value
        for key in ("batch_size", "skip_interval")
        if (value := getattr(args, key)) is not None
    }
    if overrides:
        try:
            settings = ImporterSettings(**{**settings.model_dump(), **overrides})
        except ValidationError as exc:
            parser.error(
                "; ".join(error["msg"] for error in exc.errors())
            )
    return await _run_import(jobs, settings)


def main(argv: list[str] | None = None) -> None:
    """Synchronous entrypoint for the ``beehive`` command."""
    raise SystemExit(asyncio.run(async_main(argv)))


if __name__ == "__main__":
    main()
