"""
Insights Core v1.0.0 — Hint Engine

Per-transaction "AI thinking" hint: inferred intent, one-line summary and a
heuristic confidence. Explanatory only; not financial advice.

Confidence = min(1, base + tanh(max(0, value) / 5000) * 0.2)
    base = 0.7 when the strategy supplied a reason, else 0.5
"""

import math

from .classifier import classify
from .models import FlowCategory, Transaction, TransactionHint
from .normalizer import parse_decimal, usd_value

REASONED_BASE = 0.7
UNREASONED_BASE = 0.5
VALUE_BOOST = 0.2
VALUE_SCALE = 5000.0

# (keywords, intent) checked in order against the lower-cased reason
_REASON_INTENTS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("rebalance", "target", "mix"), "Rebalance to target mix"),
    (("vola", "hedge", "risk"), "Risk control adjustment"),
)

_CATEGORY_INTENTS: dict[FlowCategory, str] = {
    FlowCategory.SWAP: "Optimize token exposure",
    FlowCategory.INFLOW: "Increase liquidity position",
    FlowCategory.OUTFLOW: "Decrease liquidity position",
}
DEFAULT_INTENT = "Execution update"


def format_usd(value: float) -> str:
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def infer_intent(tx: Transaction) -> str:
    reason = (tx.reason or "").lower()
    for keywords, intent in _REASON_INTENTS:
        if any(k in reason for k in keywords):
            return intent
    return _CATEGORY_INTENTS.get(classify(tx.type), DEFAULT_INTENT)


def hint_confidence(tx: Transaction) -> float:
    has_reason = bool((tx.reason or "").strip())
    value = max(0.0, parse_decimal(tx.value))
    base = REASONED_BASE if has_reason else UNREASONED_BASE
    return min(1.0, base + math.tanh(value / VALUE_SCALE) * VALUE_BOOST)


def build_summary(tx: Transaction) -> str:
    leg0, leg1 = tx.leg(0), tx.leg(1)
    u0, u1 = usd_value(leg0), usd_value(leg1)
    category = classify(tx.type)

    if category is FlowCategory.SWAP:
        src = leg0.token_symbol if leg0 else ""
        dst = leg1.token_symbol if leg1 else ""
        return f"Shifted exposure {format_usd(min(u0, u1))} from {src} to {dst}"
    total = u0 + u1
    if category is FlowCategory.INFLOW:
        return f"Added liquidity {format_usd(total)}"
    if category is FlowCategory.OUTFLOW:
        return f"Removed liquidity {format_usd(total)}"
    return f"Value {format_usd(total or parse_decimal(tx.value))}"


def compute_hint(tx: Transaction) -> TransactionHint:
    reason = (tx.reason or "").strip() or None
    return TransactionHint(
        intent=infer_intent(tx),
        summary=build_summary(tx),
        confidence=hint_confidence(tx),
        reason=reason,
        leg_usd=tuple(usd_value(leg) for leg in tx.tokens),
    )
