"""
Insights Core v1.0.0 — Activity Adapter

Bridges vault backend JSON rows → Insights Core records.

Handles:
    - Token legs: smallest-unit amount, decimals and price string kept as-is
      (malformed numbers coerce to 0 at valuation time, never here)
    - Legs beyond the second are dropped (leg 0 primary, leg 1 secondary)
    - Rows without a type are skipped
    - Holding payloads (user vault-stats + vault basic) → HoldingPosition
    - LP breakdown payloads → LpSlice list
"""

from typing import Any, Optional

from .models import (
    AttributionComponents,
    HoldingPosition,
    LpSlice,
    TokenLeg,
    Transaction,
)
from .normalizer import parse_decimal, parse_int

MAX_LEGS = 2


def _text(value: Any, default: str = "") -> str:
    if value is None:
        return default
    return str(value)


def adapt_leg(raw: Any) -> Optional[TokenLeg]:
    if not isinstance(raw, dict):
        return None
    return TokenLeg(
        token_symbol=_text(raw.get("token_symbol")),
        token_name=_text(raw.get("token_name")),
        amount=parse_int(raw.get("amount")),
        decimal=max(0, parse_int(raw.get("decimal"))),
        price=_text(raw.get("price"), "0"),
    )


def adapt_transaction(raw: Any) -> Optional[Transaction]:
    """
    Convert one backend activity row to a Transaction.

    Returns None if the row is not a mapping or has no type.
    """
    if not isinstance(raw, dict):
        return None
    tx_type = _text(raw.get("type")).strip().upper()
    if not tx_type:
        return None

    legs = []
    for leg_raw in (raw.get("tokens") or [])[:MAX_LEGS]:
        leg = adapt_leg(leg_raw)
        if leg is not None:
            legs.append(leg)

    reason = raw.get("reason")
    return Transaction(
        id=_text(raw.get("id")),
        type=tx_type,
        time=_text(raw.get("time")),
        value=_text(raw.get("value"), "0"),
        tokens=tuple(legs),
        reason=_text(reason) if reason else None,
        txhash=_text(raw.get("txhash")) or None,
    )


def adapt_transactions(rows: Any) -> list[Transaction]:
    """Convert a list of rows, skipping those that cannot be adapted."""
    out = []
    for row in rows or []:
        tx = adapt_transaction(row)
        if tx is not None:
            out.append(tx)
    return out


def adapt_components(raw: Any) -> Optional[AttributionComponents]:
    """Backend attribution block (camelCase USD keys) → components."""
    if not isinstance(raw, dict):
        return None
    perf = raw.get("performanceFeeUSD")
    net = raw.get("netPnlUSD")
    return AttributionComponents(
        fees_auto_compounded=parse_decimal(raw.get("feesAutoCompUSD")),
        impermanent_loss=parse_decimal(raw.get("impermanentLossUSD")),
        range_rebalance_effect=parse_decimal(raw.get("rangeRebalanceEffectUSD")),
        performance_fee=parse_decimal(perf) if perf is not None else None,
        net_pnl=parse_decimal(net) if net is not None else None,
    )


def adapt_holding(raw: Any, vault: Any = None) -> HoldingPosition:
    """
    Build a HoldingPosition from the user vault-stats payload and the
    vault basic payload (price, TVL, performance fee rate).
    """
    raw = raw if isinstance(raw, dict) else {}
    vault = vault if isinstance(vault, dict) else {}

    exposure: dict[str, float] = {}
    for tok in raw.get("user_vault_tokens") or []:
        if not isinstance(tok, dict):
            continue
        symbol = _text(tok.get("token_symbol") or tok.get("token"))
        if symbol:
            exposure[symbol] = exposure.get(symbol, 0.0) + parse_decimal(tok.get("amount_in_usd"))

    price = vault.get("ndlp_price_usd", raw.get("ndlp_price_usd"))
    current = raw.get("current_value_usd")

    return HoldingPosition(
        ndlp_balance=parse_decimal(raw.get("user_ndlp_balance")),
        ndlp_price=parse_decimal(price),
        current_value=parse_decimal(current) if current is not None else None,
        total_deposits=parse_decimal(raw.get("user_total_deposit_usd")),
        total_withdrawals=parse_decimal(raw.get("user_total_withdraw_usd")),
        performance_fee_rate=parse_decimal(vault.get("performance_fee")),
        fees_24h=parse_decimal(raw.get("user_rewards_24h_usd")),
        vault_total_value=parse_decimal(vault.get("total_value_usd")),
        token_exposure=exposure,
        since_deposit=adapt_components(raw.get("attribution")),
        last_24h=adapt_components(raw.get("pnl24h")),
    )


def adapt_slices(raw: Any) -> list[LpSlice]:
    """LP breakdown `slices` array → LpSlice list; unlabeled entries skipped."""
    out = []
    for s in raw or []:
        if not isinstance(s, dict) or not s.get("label"):
            continue
        out.append(LpSlice(
            label=_text(s.get("label")),
            percent=parse_decimal(s.get("percent")),
            usd=parse_decimal(s.get("usd")),
            color=s.get("color") or None,
            last_changed_ts=s.get("lastChangedTs") or None,
        ))
    return out
