#!/usr/bin/env python3
# services/vault_insights/main.py

import argparse
import json
import signal
import sys
import threading
from dataclasses import asdict
from pathlib import Path

# ------------------------------------------------------------
# 1) Ensure repo root is on sys.path
# ------------------------------------------------------------
ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# ------------------------------------------------------------
# 2) Imports
# ------------------------------------------------------------
from shared.config import resolve_insights_config
from shared.logutil import LogUtil

from services.vault_insights.adapters.fixture.vault_fixture import VaultFixtureSource
from services.vault_insights.adapters.http.vault_api import VaultApiSource
from services.vault_insights.core.feed import InsightsFeed
from services.vault_insights.core.session import WalletSession
from services.vault_insights.intel.insights_core import (
    compute_attribution,
    compute_hint,
    compute_pnl_snapshot,
    summary_headline,
)
from services.vault_insights.intel.insights_core.models import AttributionWindow, TimeRange
from services.vault_insights.ports.data_source import DataSourceError, VaultDataSource

SERVICE_NAME = "vault_insights"


def build_source(config: dict, logger: LogUtil, session: WalletSession) -> VaultDataSource:
    if config.get("DATA_SOURCE") == "fixture":
        return VaultFixtureSource(logger=logger)
    return VaultApiSource(config, logger, session=session)


def _dump(payload) -> None:
    print(json.dumps(payload, indent=2, default=str))


# ------------------------------------------------------------
# Commands
# ------------------------------------------------------------
def cmd_insights(args, config, logger, source) -> int:
    feed = InsightsFeed(
        source,
        logger,
        page_limit=config["ACTIVITY_PAGE_LIMIT"],
        stale_after_s=config["INSIGHTS_STALE_S"],
    )
    query = feed.query_for(args.vault, args.range, args.filter or ["ALL"])
    snapshot = feed.refresh(query)
    if snapshot is None:
        # Fetch failed before any snapshot was published
        logger.error(f"insights failed: no data from {source.name} for {args.vault}")
        return 1
    summary = snapshot.summary

    out = {
        "vault_id": args.vault,
        "time_range": query.time_range,
        "action_type": query.action_type,
        "headline": summary_headline(summary, query.time_range),
        "summary": asdict(summary) if summary else None,
    }
    if args.hints:
        page = source.fetch_activities(
            args.vault,
            page=1,
            limit=args.hints,
            action_type=query.action_type,
            time_range=query.time_range,
        )
        out["hints"] = [{"id": tx.id, **asdict(compute_hint(tx))} for tx in page.items]
    _dump(out)
    return 0


def cmd_holding(args, config, logger, source) -> int:
    holding = source.fetch_holding(args.vault, args.balance)
    _dump({
        "vault_id": args.vault,
        "snapshot": asdict(compute_pnl_snapshot(holding)),
        "attribution": asdict(compute_attribution(holding, args.window)),
    })
    return 0


def cmd_breakdown(args, config, logger, source) -> int:
    breakdown = source.fetch_breakdown(args.vault)
    _dump({
        "vault_id": args.vault,
        "as_of": breakdown.as_of,
        "slices": [asdict(s) for s in breakdown.slices],
    })
    return 0


def cmd_watch(args, config, logger, source) -> int:
    feed = InsightsFeed(
        source,
        logger,
        page_limit=config["ACTIVITY_PAGE_LIMIT"],
        stale_after_s=config["INSIGHTS_STALE_S"],
    )
    query = feed.query_for(args.vault, args.range, args.filter or ["ALL"])
    interval = args.interval or config["INSIGHTS_REFRESH_S"]

    stop = threading.Event()
    signal.signal(signal.SIGINT, lambda *_: stop.set())
    signal.signal(signal.SIGTERM, lambda *_: stop.set())

    feed.poll(
        query,
        stop,
        interval_s=interval,
        on_snapshot=lambda snap: print(summary_headline(snap.summary, query.time_range), flush=True),
    )
    return 0


COMMANDS = {
    "insights": cmd_insights,
    "holding": cmd_holding,
    "breakdown": cmd_breakdown,
    "watch": cmd_watch,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Vault activity insights and P&L attribution")
    parser.add_argument("--source", choices=["http", "fixture"], help="Override DATA_SOURCE")
    parser.add_argument("--no-truth", action="store_true", help="Skip the Truth (redis) config lookup")
    parser.add_argument("--address", help="Connected wallet address")
    parser.add_argument("--token", help="Access token for the connected wallet")

    sub = parser.add_subparsers(dest="command", required=True)
    ranges = [t.value for t in TimeRange]

    p = sub.add_parser("insights", help="Summarize recent vault activity")
    p.add_argument("--vault", required=True)
    p.add_argument("--range", choices=ranges, default=TimeRange.H24.value)
    p.add_argument("--filter", action="append", help="Activity tab filter (repeatable)")
    p.add_argument("--hints", type=int, default=0, help="Also explain the N latest transactions")

    p = sub.add_parser("holding", help="P&L snapshot and attribution for a wallet position")
    p.add_argument("--vault", required=True)
    p.add_argument("--balance", type=float, default=0.0, help="NDLP balance")
    p.add_argument(
        "--window",
        choices=[w.value for w in AttributionWindow],
        default=AttributionWindow.SINCE_DEPOSIT.value,
    )

    p = sub.add_parser("breakdown", help="LP breakdown, top slices plus Others")
    p.add_argument("--vault", required=True)

    p = sub.add_parser("watch", help="Poll insights until interrupted")
    p.add_argument("--vault", required=True)
    p.add_argument("--range", choices=ranges, default=TimeRange.H24.value)
    p.add_argument("--filter", action="append")
    p.add_argument("--interval", type=float, default=None, help="Seconds between refreshes")

    return parser


# ------------------------------------------------------------
# Main
# ------------------------------------------------------------
def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    # Phase 1: bootstrap logger
    logger = LogUtil(SERVICE_NAME)

    config = resolve_insights_config(use_truth=not args.no_truth, logger=logger)
    if args.source:
        config["DATA_SOURCE"] = args.source

    # Promote logger (config-driven)
    logger.configure_from_config(config)
    logger.debug(f"source={config['DATA_SOURCE']} truth_loaded={config['truth_loaded']}")

    session = WalletSession()
    if args.address:
        session.connect(args.address, args.token)

    source = build_source(config, logger, session)
    try:
        return COMMANDS[args.command](args, config, logger, source)
    except DataSourceError as e:
        logger.error(f"{args.command} failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
