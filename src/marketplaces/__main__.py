"""
CLI entry point for marketplace order imports.

Usage:
    python -m marketplaces import --platform shopee --catalog inventory.json \
        --ledger ledger.json orders1.xlsx orders2.xlsx
    python -m marketplaces seed-catalog inventory.xlsx --catalog inventory.json
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from reconciler.config import load_settings
from reconciler.stores import (
    JsonInventoryStore,
    JsonLedgerStore,
    PersistenceError,
)
from reconciler.pipeline import ImportPipeline

from .loader import MarketplaceLoader
from .profiles import PLATFORM_LABELS, Platform


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="marketplaces",
        description="Reconcile marketplace order exports against inventory",
    )
    parser.add_argument(
        "--config",
        default=None,
        metavar="FILE",
        help="Settings JSON file (default: built-in settings)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log debug output",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    imp = sub.add_parser("import", help="Import order exports and update stock")
    imp.add_argument(
        "--platform",
        required=True,
        choices=[p.value.lower() for p in Platform],
        help="Marketplace the exports come from",
    )
    imp.add_argument("--catalog", metavar="FILE", help="Inventory JSON file")
    imp.add_argument("--ledger", metavar="FILE", help="Ledger JSON file")
    imp.add_argument(
        "--cash-flow",
        metavar="FILE",
        help="Cash-flow statement; its orders are marked Completed first",
    )
    imp.add_argument("files", nargs="+", metavar="FILE", help="Order export files")

    seed = sub.add_parser("seed-catalog", help="Create the inventory JSON from a sheet")
    seed.add_argument("sheet", metavar="FILE", help="Inventory spreadsheet (XLSX or CSV)")
    seed.add_argument("--catalog", metavar="FILE", help="Inventory JSON file to write")

    return parser


def _resolve(path_arg: str | None, configured: Path | None, what: str) -> Path:
    path = Path(path_arg) if path_arg else configured
    if path is None:
        raise ValueError(f"No {what} file given (use the option or settings)")
    return path


async def _run_import(args, settings) -> int:
    pipeline = ImportPipeline(
        JsonLedgerStore(_resolve(args.ledger, settings.ledger_path, "ledger")),
        JsonInventoryStore(_resolve(args.catalog, settings.inventory_path, "catalog")),
        PLATFORM_LABELS,
        settings,
    )
    loader = MarketplaceLoader(settings)
    loaded = await loader.import_files(
        pipeline, args.files, args.platform, cash_flow_path=args.cash_flow
    )

    for key, value in loaded.result.summary().items():
        print(f"{key:>22}: {value}")

    report = loaded.quality_report
    if report.issues:
        print(f"\nData quality ({report.source_name}):")
        for issue in report.issues:
            samples = ", ".join(str(s) for s in issue.sample_values)
            print(f"  [{issue.severity}] {issue.description}" + (f" e.g. {samples}" if samples else ""))
    return 0


async def _run_seed(args, settings) -> int:
    loader = MarketplaceLoader(settings)
    products = loader.read_catalog(args.sheet)
    store = JsonInventoryStore(_resolve(args.catalog, settings.inventory_path, "catalog"))
    await store.save_snapshot(products)
    print(f"Wrote {len(products)} products to {store.path}")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    try:
        settings = load_settings(args.config)
        logging.basicConfig(
            level=logging.DEBUG if args.verbose else settings.log_level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        if args.command == "import":
            return asyncio.run(_run_import(args, settings))
        return asyncio.run(_run_seed(args, settings))
    except (FileNotFoundError, ValueError, PersistenceError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
