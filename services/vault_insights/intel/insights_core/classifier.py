"""
Insights Core v1.0.0 — Transaction Classifier

Pure mapping from activity type code to flow category, plus the display
helpers that share the same type tables (row signs, labels, filter →
backend action_type).

Categories (frozen):
    ADD_LIQUIDITY, OPEN       → INFLOW   (sum of both legs)
    REMOVE_LIQUIDITY, CLOSE   → OUTFLOW  (sum of both legs)
    SWAP                      → SWAP     (min of the two legs)
    anything else             → NEUTRAL  (counted, never summed)

The smaller swap leg approximates the notional actually swapped, since
fees and slippage make the two legs unequal.
"""

from typing import Iterable

from .models import FlowCategory, Transaction, TxType
from .normalizer import usd_value

_CATEGORY_MAP: dict[str, FlowCategory] = {
    TxType.ADD_LIQUIDITY.value: FlowCategory.INFLOW,
    TxType.OPEN.value: FlowCategory.INFLOW,
    TxType.REMOVE_LIQUIDITY.value: FlowCategory.OUTFLOW,
    TxType.CLOSE.value: FlowCategory.OUTFLOW,
    TxType.SWAP.value: FlowCategory.SWAP,
}

_TYPE_LABELS: dict[str, str] = {
    TxType.ADD_LIQUIDITY.value: "Add Liquidity",
    TxType.REMOVE_LIQUIDITY.value: "Remove Liquidity",
    TxType.CLAIM_REWARDS.value: "Add Reward",
    TxType.SWAP.value: "Swap",
    TxType.ADD_PROFIT_UPDATE_RATE.value: "Add Profit",
    TxType.OPEN.value: "Open Position",
    TxType.CLOSE.value: "Close Position",
}

# Activity tab groups, as the backend filters them
ADD_LIQUIDITY_TYPES = frozenset({
    TxType.ADD_LIQUIDITY.value,
    TxType.OPEN.value,
    TxType.ADD_PROFIT_UPDATE_RATE.value,
    TxType.CLAIM_REWARDS.value,
})
REMOVE_LIQUIDITY_TYPES = frozenset({
    TxType.REMOVE_LIQUIDITY.value,
    TxType.CLOSE.value,
})
SWAP_TYPES = frozenset({TxType.SWAP.value})

FILTER_ALL = "ALL"


def type_code(tx_type) -> str:
    """Canonical upper-case code for a str or TxType."""
    if isinstance(tx_type, TxType):
        return tx_type.value
    return str(tx_type or "").upper()


def classify(tx_type) -> FlowCategory:
    """Map a type code (str or TxType) to its flow category."""
    return _CATEGORY_MAP.get(type_code(tx_type), FlowCategory.NEUTRAL)


def flow_contribution(tx: Transaction) -> tuple[FlowCategory, float]:
    """
    Category and USD amount a transaction adds to its bucket.

    NEUTRAL transactions contribute 0.
    """
    category = classify(tx.type)
    if category is FlowCategory.NEUTRAL:
        return category, 0.0
    usd0 = usd_value(tx.leg(0))
    usd1 = usd_value(tx.leg(1))
    if category is FlowCategory.SWAP:
        return category, min(usd0, usd1)
    return category, usd0 + usd1


def leg_sign(tx_type, leg_index: int) -> int:
    """
    Display sign of a leg amount in an activity row.

    SWAP: leg 0 sold (−), leg 1 bought (+). Outflow types: − on both legs.
    Everything else: +.
    """
    category = classify(tx_type)
    if category is FlowCategory.SWAP:
        return -1 if leg_index == 0 else 1
    if category is FlowCategory.OUTFLOW:
        return -1
    return 1


def type_label(tx_type) -> str:
    """Human label for a type code; unknown codes pass through."""
    code = type_code(tx_type)
    return _TYPE_LABELS.get(code, code)


def display_token_symbol(symbol: str | None) -> str:
    """The vault share token is displayed as its underlying (NDLP → SUI)."""
    if not symbol:
        return ""
    return "SUI" if symbol.upper() == "NDLP" else symbol


def action_type_for_filter(filters: Iterable[str]) -> str:
    """
    Backend action_type query value for an activity tab selection.

    ALL wins; then swap, add-group, remove-group; otherwise no filter.
    OPEN and CLOSE fall inside the add / remove groups.
    """
    selected = {type_code(f) for f in filters}
    if FILTER_ALL in selected:
        return ""
    if selected & SWAP_TYPES:
        return TxType.SWAP.value
    if selected & ADD_LIQUIDITY_TYPES:
        return TxType.ADD_LIQUIDITY.value
    if selected & REMOVE_LIQUIDITY_TYPES:
        return TxType.REMOVE_LIQUIDITY.value
    return ""
