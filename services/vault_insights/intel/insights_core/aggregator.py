"""
Insights Core v1.0.0 — Aggregator

Single pass over a transaction batch:
    1. type_count[type code] += 1 (codes upper-cased)
    2. reason frequency; stop-loss detection ("stop-loss" / "drawdown")
    3. inflow / outflow / swap volume via the classifier

Rules:
    - Order of the batch does not affect the output.
    - Duplicate ids are counted as-is.
    - Empty batch → None ("no data"), never an all-zero aggregate.
    - Stop-loss recency compares parsed datetimes, not strings: ISO strings
      with different offsets do not sort lexicographically.
"""

from datetime import datetime, timezone
from typing import Iterable, Optional

from .classifier import flow_contribution, type_code
from .models import ActivityAggregate, FlowCategory, Transaction, TxType

STOP_LOSS_KEYWORDS = ("stop-loss", "drawdown")


def parse_timestamp(iso_str: Optional[str]) -> Optional[datetime]:
    """Parse ISO 8601 to an aware datetime (naive → UTC). Invalid → None."""
    if not iso_str:
        return None
    try:
        text = str(iso_str).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        dt = datetime.fromisoformat(text)
    except (ValueError, TypeError):
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def is_stop_loss_reason(reason: Optional[str]) -> bool:
    if not reason:
        return False
    lowered = reason.lower()
    return any(k in lowered for k in STOP_LOSS_KEYWORDS)


def _is_newer(candidate: str, current: Optional[str]) -> bool:
    """
    True if candidate should replace current as the latest stop-loss time.

    An unparseable current value never blocks a parseable candidate; an
    unparseable candidate only fills an empty slot.
    """
    if current is None:
        return True
    cand_dt = parse_timestamp(candidate)
    if cand_dt is None:
        return False
    cur_dt = parse_timestamp(current)
    if cur_dt is None:
        return True
    return cand_dt > cur_dt


def top_reason(reasons: dict[str, int]) -> Optional[str]:
    """Most frequent reason; ties go to the first seen."""
    best: Optional[str] = None
    best_count = 0
    for reason, count in reasons.items():
        if count > best_count:
            best, best_count = reason, count
    return best


def aggregate(transactions: Iterable[Transaction]) -> Optional[ActivityAggregate]:
    """Aggregate a batch. Returns None for an empty batch."""
    inflow = 0.0
    outflow = 0.0
    swap_vol = 0.0
    type_count: dict[str, int] = {}
    reasons: dict[str, int] = {}
    stop_loss_count = 0
    last_stop_loss_ts: Optional[str] = None
    n = 0

    for tx in transactions:
        n += 1
        code = type_code(tx.type)
        type_count[code] = type_count.get(code, 0) + 1

        reason = tx.reason
        if reason:
            reasons[reason] = reasons.get(reason, 0) + 1
            if is_stop_loss_reason(reason):
                stop_loss_count += 1
                if _is_newer(tx.time, last_stop_loss_ts):
                    last_stop_loss_ts = tx.time

        category, usd = flow_contribution(tx)
        if category is FlowCategory.INFLOW:
            inflow += usd
        elif category is FlowCategory.OUTFLOW:
            outflow += usd
        elif category is FlowCategory.SWAP:
            swap_vol += usd

    if n == 0:
        return None

    rebalances = (
        type_count.get(TxType.OPEN.value, 0)
        + type_count.get(TxType.CLOSE.value, 0)
    )

    return ActivityAggregate(
        inflow=inflow,
        outflow=outflow,
        net=inflow - outflow,
        swap_vol=swap_vol,
        type_count=type_count,
        reasons=reasons,
        top_reason=top_reason(reasons),
        rebalances=rebalances,
        stop_loss_count=stop_loss_count,
        last_stop_loss_ts=last_stop_loss_ts,
        transaction_count=n,
    )
