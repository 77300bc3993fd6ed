"""``linga-report``: command-line front end for the reporting core.

Subcommands:
    recap   Daily Sales Recap for one store and date range
    pivot   Grouped analysis along one dimension
    export  Workbook (.xlsx) or CSV export of the ledgers

Examples:
    $ linga-report recap --store "Common Grounds DIFC" --from 2024-01-05 --target 12000
    $ linga-report pivot --store-id 5e4be85b7237b70001de9106 --from 2024-01-01 \
        --to 2024-01-07 --dimension category
    $ linga-report export --store "Common Grounds DIFC" --from 2024-01-05 --out dsr.xlsx

Exit codes: 0 on success, 1 when extraction or export fails, 2 on
configuration errors.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from collections.abc import Sequence
from datetime import date
from typing import Optional

from linga_core.client import LingaClient, load_batch
from linga_core.config import LingaSettings, load_store_map, resolve_store
from linga_core.exceptions import ConfigError, LingaAPIError
from linga_core.export import analysis_frame, export_batch
from linga_core.reports.grouping import DIMENSIONS, Dimension, parse_dimension, pivot
from linga_core.reports.recap import RecapMetrics, recap_for_batch
from linga_core.schema import ReportBatch

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG = 2


def _iso_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Invalid date '{value}' (expected YYYY-MM-DD)") from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="linga-report",
        description="Sales reports from the LingaPOS back office.",
    )
    common = argparse.ArgumentParser(add_help=False)
    store = common.add_mutually_exclusive_group(required=True)
    store.add_argument("--store", help="Store name from the allow-list")
    store.add_argument("--store-id", help="Linga store id")
    common.add_argument(
        "--stores-json",
        default=os.environ.get("LINGA_STORES"),
        help="Store allow-list JSON (default: $LINGA_STORES)",
    )
    common.add_argument(
        "--from", dest="from_date", type=_iso_date, required=True, help="First day, YYYY-MM-DD"
    )
    common.add_argument(
        "--to", dest="to_date", type=_iso_date, help="Last day, YYYY-MM-DD (default: --from)"
    )
    common.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    recap = sub.add_parser("recap", parents=[common], help="Daily Sales Recap")
    recap.add_argument(
        "--target", default="0", help="Operational net sales target (default: 0)"
    )

    piv = sub.add_parser("pivot", parents=[common], help="Grouped analysis")
    piv.add_argument(
        "--dimension",
        default=Dimension.CATEGORY.value,
        help=f"One of: {', '.join(d.value for d in Dimension)} (default: CATEGORY)",
    )

    export = sub.add_parser("export", parents=[common], help="Spreadsheet export")
    export.add_argument("--out", required=True, help="Output path (.xlsx or .csv)")
    export.add_argument(
        "--dimension",
        action="append",
        default=[],
        help="Add an analysis sheet for this dimension (repeatable)",
    )
    export.add_argument("--target", default="0", help="Target used for the Recap sheet")
    return parser


def _resolve_store(args: argparse.Namespace) -> tuple[str, str]:
    """Pick the store id and display name from the arguments."""
    if args.stores_json:
        stores = load_store_map(args.stores_json)
        return resolve_store(stores, name=args.store, store_id=args.store_id)
    if args.store:
        raise ConfigError("--store needs a store allow-list (--stores-json or LINGA_STORES)")
    return args.store_id, args.store_id


def format_recap(recap: RecapMetrics, store_name: str) -> str:
    lines = [
        f"Daily Sales Recap: {store_name}",
        "=" * 60,
        f"  Net sales      : {recap.net_total:,.2f}",
        f"  Gross sales    : {recap.gross_total:,.2f}",
        f"  Tax            : {recap.tax_total:,.2f}",
        f"  Discounts      : {recap.discount_total:,.2f}",
        f"  Checks / guests: {recap.ticket_count} / {recap.guest_count}",
        f"  Average check  : {recap.average_ticket:,.2f}",
        f"  Per guest      : {recap.average_per_guest:,.2f}",
        f"  Target         : {recap.operational_target:,.2f}",
        f"  Variance       : {recap.variance:,.2f} ({recap.variance_pct:.1f}%)",
        "",
        "Meal periods",
    ]
    for name, seg in recap.segments.items():
        lines.append(
            f"  {name:<10} {seg.revenue:>12,.2f}  covers {seg.covers:>4}"
            f"  avg {seg.average_spend:,.2f}"
        )
    lines += ["", "Revenue mix"]
    for mix in recap.revenue_classes:
        lines.append(f"  {mix.key:<18} {mix.value:>12,.2f}  {mix.share_pct:5.1f}%")
    lines += ["", "Tenders"]
    for tender in recap.tenders:
        lines.append(f"  {tender.name:<18} {tender.amount:>12,.2f}  tips {tender.tips:,.2f}")
    lines.append(f"  {'Settled':<18} {recap.settled_total:>12,.2f}  tips {recap.tips_total:,.2f}")
    if recap.discount_groups:
        lines += ["", "Discounts"]
        for row in recap.discount_groups:
            lines.append(f"  {row.key:<18} {row.value:>12,.2f}  x{row.count}")
    if not recap.reconciled:
        lines += ["", f"Order lines differ from tickets by {recap.reconciliation_gap:,.2f}"]
    return "\n".join(lines)


def run(args: argparse.Namespace) -> int:
    settings = LingaSettings.from_env()
    store_id, store_name = _resolve_store(args)
    to_date = args.to_date or args.from_date

    # Validate before any request goes out
    if args.from_date > to_date:
        raise ConfigError(f"--from {args.from_date} is after --to {to_date}")
    names = [args.dimension] if args.command == "pivot" else getattr(args, "dimension", [])
    try:
        dimensions = [parse_dimension(name) for name in names]
    except ValueError as e:
        raise ConfigError(str(e)) from e

    batch: ReportBatch = load_batch(
        LingaClient(settings), store_id, args.from_date, to_date, tz=settings.timezone
    )

    if args.command == "recap":
        print(format_recap(recap_for_batch(batch, args.target), store_name))
    elif args.command == "pivot":
        dimension = dimensions[0]
        df = analysis_frame(pivot(batch, dimension), DIMENSIONS[dimension].label)
        print(df.to_string(index=False) if len(df) else "No data for this selection.")
    else:
        paths = export_batch(
            batch,
            args.out,
            store_name=store_name,
            recap=recap_for_batch(batch, args.target),
            dimensions=dimensions,
        )
        for path in paths:
            print(f"[OK] {path}")
    return EXIT_OK


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )
    try:
        return run(args)
    except ConfigError as e:
        logger.error("%s", e)
        return EXIT_CONFIG
    except (LingaAPIError, ValueError) as e:
        logger.error("%s", e)
        return EXIT_FAILURE
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
