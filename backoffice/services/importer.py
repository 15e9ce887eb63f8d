from __future__ import annotations

import logging
from dataclasses import replace
from datetime import UTC, datetime
from pathlib import Path

from ..csvio.reader import (
    HeaderContractError,
    ImportAbortedError,
    SourceFileError,
    parse_text,
    read_source_text,
)
from ..csvio.validation import ProgressCallback, validate_rows
from ..db.record_store import RecordStore, StoreError
from ..logging.error_log import ErrorLogBuffer
from ..models.config_models import CommitPolicy, ImportContract, ImportSettings
from ..models.error_record import ErrorRecord
from ..models.import_result import PERSISTENCE_ERROR, ImportReport, ImportResult, RowError
from .progress import ProgressTracker

"""Import orchestration.

Runs one upload through the pipeline:
1. read / split / header contract check (fatal errors stop here)
2. row-by-row validation (errors collected, never raised)
3. commit policy: ALL_OR_NOTHING rejects the batch on any row error,
   PARTIAL persists the valid rows
4. best-effort batch insert through the record store
5. error log (JSON Lines) and ImportReport

Validation and persistence are separate phases: nothing reaches the store
before every row has been validated.
"""

__all__ = [
    "import_file",
    "run_import",
]

logger = logging.getLogger(__name__)


def _fatal_error_type(error: ImportAbortedError) -> str:
    if isinstance(error, HeaderContractError):
        return "HEADER_CONTRACT_ERROR"
    if isinstance(error, SourceFileError):
        return "SOURCE_FILE_ERROR"
    return "IMPORT_ABORTED"


def _new_log(settings: ImportSettings, contract: ImportContract) -> ErrorLogBuffer:
    return ErrorLogBuffer(Path(settings.log_dir), run_label=contract.name)


def _flush(error_log: ErrorLogBuffer) -> str | None:
    try:
        path = error_log.flush()
    except OSError as e:
        logger.warning("could not write error log: %s", e)
        return None
    return str(path) if path is not None else None


def _fatal_report(
    contract: ImportContract,
    source: str,
    start_time: datetime,
    error: ImportAbortedError,
    error_log: ErrorLogBuffer,
) -> ImportReport:
    logger.error("import %s aborted: %s", source, error)
    error_log.append(
        ErrorRecord.create(
            source=source,
            importer=contract.name,
            row=-1,
            error_type=_fatal_error_type(error),
            message=str(error),
        )
    )
    end_time = datetime.now(UTC)
    return ImportReport(
        importer=contract.name,
        source=source,
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=(end_time - start_time).total_seconds(),
        fatal_error=str(error),
    )


def _persist(
    result: ImportResult,
    contract: ImportContract,
    store: RecordStore,
) -> tuple[int, list[RowError]]:
    """Insert valid rows; map store failures back to their rows."""
    if not result.rows:
        return 0, []
    try:
        report = store.insert_many(contract.table, result.records)
    except StoreError as e:
        logger.error("table=%s batch insert failed: %s", contract.table, e)
        return 0, [
            RowError(row.row_number, f"Save failed: {e}", sku=row.sku, error_type=PERSISTENCE_ERROR)
            for row in result.rows
        ]
    failures = []
    for failure in report.failures:
        row = result.rows[failure.index]
        failures.append(
            RowError(row.row_number, f"Save failed: {failure.message}", sku=row.sku,
                     error_type=PERSISTENCE_ERROR)
        )
    logger.debug(
        "table=%s inserted_rows=%d failed_rows=%d elapsed=%.3fs",
        contract.table,
        report.inserted_rows,
        report.failed_rows,
        report.elapsed_seconds,
    )
    return report.inserted_rows, failures


def run_import(
    text: str,
    contract: ImportContract,
    store: RecordStore | None,
    settings: ImportSettings | None = None,
    *,
    policy: CommitPolicy | None = None,
    source: str = "<text>",
    error_log: ErrorLogBuffer | None = None,
    on_progress: ProgressCallback | None = None,
) -> ImportReport:
    """Import a text blob with the given contract.

    Args:
        text: Uploaded file content
        contract: Importer column contract
        store: Record store; None validates only (dry run)
        settings: Delimiter / quoting / default policy / log dir
        policy: Overrides settings.commit_policy
        source: File name used in logs and reports
        error_log: Buffer to append to; when omitted a buffer is created and flushed here
        on_progress: Called with (processed, total) after each row

    Returns:
        ImportReport; input malformation is reported through ``fatal_error``
    """
    settings = settings or ImportSettings()
    policy = policy or settings.commit_policy
    owns_log = error_log is None
    log = error_log if error_log is not None else _new_log(settings, contract)
    start_time = datetime.now(UTC)

    try:
        data = parse_text(text, contract, delimiter=settings.delimiter, quoted=settings.quoted_fields)
    except ImportAbortedError as e:
        report = _fatal_report(contract, source, start_time, e, log)
        if owns_log:
            report = replace(report, error_log_path=_flush(log))
        return report

    logger.info("importer=%s source=%s rows=%d", contract.name, source, len(data.lines))

    with ProgressTracker(len(data.lines), description=f"Importing {contract.name}") as progress:
        def _on_row(processed: int, total: int) -> None:
            progress.update(processed, total)
            if on_progress is not None:
                on_progress(processed, total)

        result = validate_rows(
            data,
            contract,
            delimiter=settings.delimiter,
            quoted=settings.quoted_fields,
            on_progress=_on_row,
        )
        progress.set_postfix(valid=len(result.rows), errors=len(result.errors))

    log.extend([ErrorRecord.from_row_error(source, contract.name, e) for e in result.errors])

    committed = 0
    persistence_errors: list[RowError] = []
    rejected = False
    if result.errors and policy is CommitPolicy.ALL_OR_NOTHING:
        rejected = True
        logger.warning(
            "importer=%s found %d errors, nothing imported (policy=%s)",
            contract.name,
            len(result.errors),
            policy.value,
        )
    elif store is None:
        logger.info("importer=%s dry run, %d valid rows not persisted", contract.name, len(result.rows))
    else:
        committed, persistence_errors = _persist(result, contract, store)
        log.extend(
            [ErrorRecord.from_row_error(source, contract.name, e) for e in persistence_errors]
        )

    for error in result.errors:
        logger.error("%s", error)
    for error in persistence_errors:
        logger.error("%s", error)

    end_time = datetime.now(UTC)
    report = ImportReport(
        importer=contract.name,
        source=source,
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=(end_time - start_time).total_seconds(),
        result=result,
        committed_rows=committed,
        persistence_errors=persistence_errors,
        rejected=rejected,
    )
    if owns_log:
        report = replace(report, error_log_path=_flush(log))
    return report


def import_file(
    path: Path,
    contract: ImportContract,
    store: RecordStore | None,
    settings: ImportSettings | None = None,
    *,
    policy: CommitPolicy | None = None,
    error_log: ErrorLogBuffer | None = None,
    on_progress: ProgressCallback | None = None,
) -> ImportReport:
    """Read an uploaded file and import it (see run_import)."""
    settings = settings or ImportSettings()
    try:
        text = read_source_text(path)
    except SourceFileError as e:
        owns_log = error_log is None
        log = error_log if error_log is not None else _new_log(settings, contract)
        report = _fatal_report(contract, path.name, datetime.now(UTC), e, log)
        if owns_log:
            report = replace(report, error_log_path=_flush(log))
        return report
    return run_import(
        text,
        contract,
        store,
        settings,
        policy=policy,
        source=path.name,
        error_log=error_log,
        on_progress=on_progress,
    )
