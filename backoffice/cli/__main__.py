from __future__ import annotations

import argparse
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from dotenv import load_dotenv

from ..config.loader import DEFAULT_CONFIG_PATH, ConfigError, default_config, load_config
from ..csvio.contracts import UnknownContractError, get_contract
from ..csvio.export import export_errors, write_template
from ..db.record_store import InMemoryRecordStore, RecordStore
from ..logging.init import log_summary, setup_logging
from ..models.config_models import AppConfig, CommitPolicy
from ..pricing.engine import (
    TaxRegime,
    from_margin_amount,
    from_margin_percent,
    from_sell_ht,
    from_sell_ttc,
)
from ..services.importer import import_file
from ..services.summary import render_summary_line

"""CLI entrypoint.

Subcommands:
- import   <importer> <file.csv>  validate and persist an uploaded file
- template <importer> <out.csv>   write the sample file of an importer
- price    --purchase X --margin-percent Y ...  derive a price set

Exit codes: 0 everything imported, 2 row/persistence errors or batch rejected,
1 fatal (config, unreadable file, header contract).
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1

# unique constraints mirrored by the in-memory store in mock mode
MOCK_UNIQUE_KEYS = {
    "products": ("sku",),
    "product_categories": ("type", "brand", "model"),
    "product_variants": ("color", "grade", "capacity"),
}


@contextmanager
def _db_connection(cfg: AppConfig) -> Iterator[RecordStore]:  # pragma: no cover (needs a live DB)
    """Yield a PostgreSQL record store; commit on success, rollback on error.

    Connection parameter precedence:
        1. `.env` values (loaded with override in main())
        2. DATABASE_URL / PGDSN, then PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE
        3. the ``database`` section of the config file
    """
    import psycopg2

    from ..db.postgres_store import PostgresRecordStore

    db_cfg = cfg.database
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if not dsn:
        host = os.getenv("PGHOST", db_cfg.host or "localhost")
        port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
        user = os.getenv("PGUSER", db_cfg.user or "postgres")
        password = os.getenv("PGPASSWORD", db_cfg.password or "")
        database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
        dsn = f"host={host} port={port} user={user} dbname={database}"
        if password:
            dsn += f" password={password}"

    conn = psycopg2.connect(dsn)
    try:
        conn.autocommit = False
        with conn.cursor() as cur:
            yield PostgresRecordStore(cur)
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env with python-dotenv, overriding existing variables."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="backoffice", description="Retail back-office tools")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--config", type=Path, default=None, help=f"Config file (default {DEFAULT_CONFIG_PATH})")
    sub = p.add_subparsers(dest="command", required=True)

    imp = sub.add_parser("import", help="Import a CSV file")
    imp.add_argument("importer", help="products | categories | variants | configured importer")
    imp.add_argument("file", type=Path)
    imp.add_argument(
        "--policy",
        choices=[c.value for c in CommitPolicy],
        default=None,
        help="Override the configured commit policy",
    )
    imp.add_argument("--dry-run", action="store_true", help="Validate only, persist nothing")
    imp.add_argument("--errors-out", type=Path, default=None, help="Write the error list as CSV")

    tpl = sub.add_parser("template", help="Write the sample CSV of an importer")
    tpl.add_argument("importer")
    tpl.add_argument("output", type=Path)

    price = sub.add_parser("price", help="Derive sell price, margins and TTC")
    price.add_argument("--purchase", required=True, help="Purchase price (HT)")
    driver = price.add_mutually_exclusive_group(required=True)
    driver.add_argument("--sell-ht")
    driver.add_argument("--margin-percent")
    driver.add_argument("--margin-amount")
    driver.add_argument("--sell-ttc")
    price.add_argument("--regime", choices=[r.value for r in TaxRegime], default=None)
    return p.parse_args(argv)


def _resolve_config(path: Path | None) -> AppConfig:
    if path is not None:
        return load_config(path)
    if DEFAULT_CONFIG_PATH.exists():
        return load_config(DEFAULT_CONFIG_PATH)
    return default_config()


def _run_price(args: argparse.Namespace, cfg: AppConfig) -> int:
    logger = setup_logging()
    regime = TaxRegime(args.regime or cfg.pricing.vat_regime)
    tax_rate = cfg.pricing.tax_rate
    if args.sell_ttc is not None and regime is TaxRegime.MARGIN:
        logger.error("price: --sell-ttc cannot drive a price under the margin regime (no TTC is derived)")
        return EXIT_FATAL
    if args.sell_ht is not None:
        ps = from_sell_ht(args.purchase, tax_rate, args.sell_ht, regime=regime)
    elif args.margin_percent is not None:
        ps = from_margin_percent(args.purchase, tax_rate, args.margin_percent, regime=regime)
    elif args.margin_amount is not None:
        ps = from_margin_amount(args.purchase, tax_rate, args.margin_amount, regime=regime)
    else:
        ps = from_sell_ttc(args.purchase, tax_rate, args.sell_ttc, regime=regime)
    if ps.is_blank:
        logger.error("price: purchase price must be a positive number and the driver numeric")
        return EXIT_FATAL
    fields = " ".join(f"{k}={v or '-'}" for k, v in ps.display().items())
    logger.info(f"regime={regime.value} {fields}")
    return EXIT_SUCCESS_ALL


def _run_template(args: argparse.Namespace, cfg: AppConfig) -> int:
    logger = setup_logging()
    contract = get_contract(args.importer, cfg.contracts)
    path = write_template(contract, args.output)
    logger.info(f"template written: {path}")
    return EXIT_SUCCESS_ALL


def _run_import(args: argparse.Namespace, cfg: AppConfig) -> int:
    logger = setup_logging()
    contract = get_contract(args.importer, cfg.contracts)
    policy = CommitPolicy(args.policy) if args.policy else None

    db_mode = "mock"
    if args.dry_run:
        db_mode = "dry-run"
        report = import_file(args.file, contract, None, cfg.imports, policy=policy)
    elif os.getenv("DISABLE_DB_CONNECT") == "1":
        logger.debug("DB connect disabled via DISABLE_DB_CONNECT=1 -> mock mode")
        report = import_file(
            args.file, contract, InMemoryRecordStore(MOCK_UNIQUE_KEYS), cfg.imports, policy=policy
        )
    else:
        try:
            with _db_connection(cfg) as store:
                db_mode = "live"
                report = import_file(args.file, contract, store, cfg.imports, policy=policy)
        except Exception as db_e:  # import errors are in the report, this is the DB itself
            if db_mode == "live":
                logger.error(f"database error, transaction rolled back: {db_e}")
                return EXIT_FATAL
            logger.warning(f"DB connection failed -> fallback to mock mode: {db_e}")
            report = import_file(
                args.file, contract, InMemoryRecordStore(MOCK_UNIQUE_KEYS), cfg.imports, policy=policy
            )

    logger.info(f"mode={db_mode} committed_rows={report.committed_rows}")
    if report.error_log_path:
        logger.info(f"error log: {report.error_log_path}")
    if args.errors_out is not None and report.all_errors:
        export_errors(report.all_errors, args.errors_out)
        logger.info(f"errors exported: {args.errors_out}")

    # log_summary adds the "SUMMARY " label itself
    log_summary(render_summary_line(report)[len("SUMMARY "):])

    if report.is_fatal:
        return EXIT_FATAL
    if report.is_complete_success:
        return EXIT_SUCCESS_ALL
    return EXIT_PARTIAL_FAILURE


def main(argv: list[str] | None = None) -> int:
    # None only: an explicit [] must not fall back to sys.argv (pytest arguments)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    logger = setup_logging(debug=args.debug)
    if args.debug:
        logger.debug("debug mode enabled")

    _load_env_file(Path(".env"), override=True)
    try:
        cfg = _resolve_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    try:
        if args.command == "price":
            return _run_price(args, cfg)
        if args.command == "template":
            return _run_template(args, cfg)
        return _run_import(args, cfg)
    except UnknownContractError as e:
        logger.error(str(e))
        return EXIT_FATAL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
