"""
Insights Core v1.0.0

Single authoritative source for vault activity insights and P&L attribution.
The dashboard, the feed and the CLI all import from here.
No other module may independently compute these figures.
"""

from typing import Iterable, Optional

from .models import (
    TxType,
    FlowCategory,
    TimeRange,
    AttributionWindow,
    TokenLeg,
    Transaction,
    ActivityAggregate,
    DriverVerdict,
    InsightSummary,
    AttributionComponents,
    HoldingPosition,
    PnlSnapshot,
    AttributionResult,
    LpSlice,
    LpBreakdown,
    TransactionHint,
)
from .normalizer import usd_value
from .classifier import classify, flow_contribution, action_type_for_filter
from .aggregator import aggregate
from .driver_engine import DriverEngine
from .attribution_engine import compute_attribution, compute_pnl_snapshot
from .breakdown_engine import BreakdownEngine
from .hint_engine import compute_hint, format_usd
from .versioning import InsightsVersion

__version__ = "1.0.0"

__all__ = [
    "TxType",
    "FlowCategory",
    "TimeRange",
    "AttributionWindow",
    "TokenLeg",
    "Transaction",
    "ActivityAggregate",
    "DriverVerdict",
    "InsightSummary",
    "AttributionComponents",
    "HoldingPosition",
    "PnlSnapshot",
    "AttributionResult",
    "LpSlice",
    "LpBreakdown",
    "TransactionHint",
    "DriverEngine",
    "BreakdownEngine",
    "InsightsVersion",
    "usd_value",
    "classify",
    "flow_contribution",
    "action_type_for_filter",
    "aggregate",
    "compute_insights",
    "compute_attribution",
    "compute_pnl_snapshot",
    "aggregate_lp_breakdown",
    "compute_hint",
    "summary_headline",
]


def compute_insights(transactions: Iterable[Transaction]) -> Optional[InsightSummary]:
    """
    Primary entry point. Aggregate a batch and attach the driver verdict.

    Returns None for an empty batch so callers render "no data" instead of
    a zero summary.
    """
    agg = aggregate(transactions)
    if agg is None:
        return None

    verdict = DriverEngine().classify(agg)
    counts = agg.type_count

    return InsightSummary(
        version=InsightsVersion().current_version(),
        transaction_count=agg.transaction_count,
        inflow=agg.inflow,
        outflow=agg.outflow,
        net=agg.net,
        swap_vol=agg.swap_vol,
        type_count=dict(counts),
        reasons=dict(agg.reasons),
        top_reason=agg.top_reason,
        rebalances=agg.rebalances,
        stop_loss_count=agg.stop_loss_count,
        last_stop_loss_ts=agg.last_stop_loss_ts,
        add_open_count=counts.get(TxType.ADD_LIQUIDITY.value, 0) + counts.get(TxType.OPEN.value, 0),
        remove_close_count=counts.get(TxType.REMOVE_LIQUIDITY.value, 0) + counts.get(TxType.CLOSE.value, 0),
        driver=verdict.label,
        next_action=verdict.next_action,
        confidence=verdict.confidence,
        hypothesis=verdict.hypothesis,
        scores=verdict.scores,
    )


def aggregate_lp_breakdown(
    slices: Iterable[LpSlice],
    as_of: Optional[str] = None,
) -> LpBreakdown:
    """Top 8 slices by USD plus the merged "Others" tail."""
    return BreakdownEngine().aggregate(slices, as_of=as_of)


def summary_headline(
    summary: Optional[InsightSummary],
    time_range: TimeRange | str = TimeRange.H24,
) -> str:
    """One-line headline, e.g. 'Net inflow $200.00 (24h).'"""
    label = TimeRange(time_range).value
    if summary is None:
        return f"No activity ({label})."
    if summary.net < 0:
        return f"Net outflow {format_usd(-summary.net)} ({label})."
    return f"Net inflow {format_usd(summary.net)} ({label})."
