"""Offline tax report export.

Runs the tax engine over the configured ledger and writes CSV and/or PDF
reports to disk.

Usage:
    python scripts/export_tax_report.py --output-dir out/ --cost-basis HIFO \
        --start-date 2024-01-01 --end-date 2024-12-31 --venue Kraken
"""

import argparse
import logging
import sys
from pathlib import Path

from taxengine.services.config import ConfigService, ConfigValidationException
from taxengine.services.currency import FxPolicy
from taxengine.services.errors import TaxEngineError
from taxengine.services.ledger_loader import load_ledger
from taxengine.services.logging_service import configure_from_config
from taxengine.services.lot_matcher import ShortfallPolicy
from taxengine.services.runtime import build_engine, default_options
from taxengine.services.tax_engine import TaxEngine, summarize
from taxengine.services.tax_export import build_tax_csv, build_tax_pdf

logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Export a tax report from a venue ledger")
    parser.add_argument("--config", help="Path to config.yaml")
    parser.add_argument("--ledger", help="Ledger JSON document (overrides config)")
    parser.add_argument("--output-dir", default="reports", help="Directory for report files")
    parser.add_argument("--format", choices=["csv", "pdf", "both"], default="both")
    parser.add_argument("--cost-basis", help="FIFO, LIFO or HIFO")
    parser.add_argument("--base-currency", help="Reporting currency")
    parser.add_argument("--start-date", help="Inclusive ISO-8601 start")
    parser.add_argument("--end-date", help="Inclusive ISO-8601 end")
    parser.add_argument("--venue", action="append", dest="venues", help="Venue allow-list (repeatable)")
    parser.add_argument("--jurisdiction", help="Label for report headers")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Export tax reports. Returns a process exit code."""
    args = parse_args(argv)

    config = ConfigService(args.config)
    try:
        config.load_and_validate()
    except ConfigValidationException as e:
        print(f"FATAL: {e}", file=sys.stderr)
        return 2
    configure_from_config(config)

    try:
        if args.ledger:
            engine = TaxEngine(
                load_ledger(args.ledger),
                fx_policy=FxPolicy(config.get("tax.fx_policy", "fallback")),
                shortfall_policy=ShortfallPolicy(config.get("tax.shortfall_policy", "warn")),
            )
        else:
            engine = build_engine(config)

        options = default_options(config)
        options.cost_basis = args.cost_basis or options.cost_basis
        options.base_currency = args.base_currency or options.base_currency
        options.start_date = args.start_date
        options.end_date = args.end_date
        options.venues = args.venues
        options.jurisdiction = args.jurisdiction or options.jurisdiction

        result = engine.run(options)
    except (TaxEngineError, FileNotFoundError) as e:
        logger.error(f"Tax report failed: {e}")
        return 1

    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    if args.format in ("csv", "both"):
        csv_path = output_dir / "tax-report.csv"
        csv_path.write_text(build_tax_csv(result), encoding="utf-8")
        logger.info(f"Wrote {csv_path}")

    if args.format in ("pdf", "both"):
        pdf_path = output_dir / "tax-report.pdf"
        pdf_path.write_bytes(build_tax_pdf(result, jurisdiction=options.jurisdiction))
        logger.info(f"Wrote {pdf_path}")

    summary = summarize(result)
    logger.info(
        f"Realized {summary['realized_gains']:+.2f} {summary['base_currency']}, "
        f"income {summary['income']:.2f} {summary['base_currency']} "
        f"over {summary['transactions_evaluated']} transactions"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
