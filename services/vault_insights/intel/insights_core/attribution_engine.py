"""
Insights Core v1.0.0 — Attribution Engine

Holding-level P&L and per-window gains/costs attribution.

Holding formulas (frozen):
    net_deposited    = max(0, total_deposits - total_withdrawals)
    pnl              = current_value - net_deposited
    pnl_pct          = pnl / net_deposited                  (net_deposited = 0 → 0)
    break_even_price = net_deposited / ndlp_balance         (balance ≤ 0 → 0)
    performance_fee  = max(0, pnl * performance_fee_rate)   (never on losses)
    net_pnl          = pnl - performance_fee

Window attribution:
    gains = max(0, fees_auto_compounded)
    costs = |impermanent_loss| + |range_rebalance_effect| + |performance_fee|
    net   = explicit window net_pnl, else
            since-deposit → holding net_pnl, 24h → gains - costs

Windows share the formula shape but read only their own inputs, so
switching windows never alters unrelated fields.
"""

import math

from .models import (
    AttributionComponents,
    AttributionResult,
    AttributionWindow,
    HoldingPosition,
    PnlSnapshot,
)
from .normalizer import parse_decimal

EMPTY_EXPOSURE = "—"


def _num(value) -> float:
    return parse_decimal(value)


def _finite(value: float) -> float:
    return value if math.isfinite(value) else 0.0


def current_value_of(holding: HoldingPosition) -> float:
    if holding.current_value is not None:
        return _num(holding.current_value)
    # Two finite inputs can still overflow to inf
    return _finite(_num(holding.ndlp_balance) * _num(holding.ndlp_price))


def net_deposited_of(holding: HoldingPosition) -> float:
    return max(0.0, _finite(_num(holding.total_deposits) - _num(holding.total_withdrawals)))


def break_even_price(net_deposited: float, ndlp_balance: float) -> float:
    """NDLP price at which current value equals net deposited capital."""
    if ndlp_balance <= 0:
        return 0.0
    return net_deposited / ndlp_balance


def performance_fee_for(pnl: float, rate: float) -> float:
    return max(0.0, _finite(pnl * rate))


def exposure_text(token_exposure: dict[str, float]) -> str:
    """'USDC 62.0% / SUI 38.0%' ordered by USD, or '—' with nothing to show."""
    values = {sym: max(0.0, _num(usd)) for sym, usd in (token_exposure or {}).items()}
    total = sum(values.values())
    if not values or total <= 0:
        return EMPTY_EXPOSURE
    ordered = sorted(values.items(), key=lambda kv: kv[1], reverse=True)
    return " / ".join(f"{sym} {usd / total * 100:.1f}%" for sym, usd in ordered)


def compute_pnl_snapshot(holding: HoldingPosition) -> PnlSnapshot:
    """Derive holding-level P&L figures."""
    current = current_value_of(holding)
    net_dep = net_deposited_of(holding)
    pnl = _finite(current - net_dep)
    pnl_pct = pnl / net_dep if net_dep > 0 else 0.0
    perf_fee = performance_fee_for(pnl, _num(holding.performance_fee_rate))
    tvl = _num(holding.vault_total_value)

    return PnlSnapshot(
        current_value=current,
        net_deposited=net_dep,
        pnl=pnl,
        pnl_pct=pnl_pct,
        break_even_price=break_even_price(net_dep, _num(holding.ndlp_balance)),
        performance_fee=perf_fee,
        net_pnl=pnl - perf_fee,
        share_in_vault=current / tvl if tvl > 0 else 0.0,
        exposure_text=exposure_text(holding.token_exposure),
    )


def _window_components(
    holding: HoldingPosition,
    window: AttributionWindow,
    snapshot: PnlSnapshot,
) -> AttributionComponents:
    if window is AttributionWindow.SINCE_DEPOSIT:
        comp = holding.since_deposit or AttributionComponents()
        if comp.performance_fee is None:
            return AttributionComponents(
                fees_auto_compounded=comp.fees_auto_compounded,
                impermanent_loss=comp.impermanent_loss,
                range_rebalance_effect=comp.range_rebalance_effect,
                performance_fee=-snapshot.performance_fee,
                net_pnl=comp.net_pnl,
            )
        return comp

    if holding.last_24h is not None:
        return holding.last_24h
    return AttributionComponents(fees_auto_compounded=_num(holding.fees_24h))


def compute_attribution(
    holding: HoldingPosition,
    window: AttributionWindow | str = AttributionWindow.SINCE_DEPOSIT,
) -> AttributionResult:
    """Gains / costs / net P&L for one attribution window."""
    window = AttributionWindow(window)
    snapshot = compute_pnl_snapshot(holding)
    comp = _window_components(holding, window, snapshot)

    fees = _num(comp.fees_auto_compounded)
    il = _num(comp.impermanent_loss)
    rng = _num(comp.range_rebalance_effect)
    perf = _num(comp.performance_fee)

    gains = max(0.0, fees)
    costs = abs(il) + abs(rng) + abs(perf)

    if comp.net_pnl is not None:
        net = _num(comp.net_pnl)
    elif window is AttributionWindow.SINCE_DEPOSIT:
        net = snapshot.net_pnl
    else:
        net = gains - costs

    return AttributionResult(
        window=window.value,
        gains=gains,
        costs=costs,
        net_pnl=net,
        fees_auto_compounded=fees,
        impermanent_loss=il,
        range_rebalance_effect=rng,
        performance_fee=perf,
    )


def break_even_deviation(ndlp_price: float, break_even: float) -> float:
    """Fractional distance of the NDLP price from break-even (be ≤ 0 → 0)."""
    if break_even <= 0:
        return 0.0
    return ndlp_price / break_even - 1.0


def format_signed_pct(fraction: float) -> str:
    """
    0.0123 → '+1.23%', -0.05 → '-5%', 0 → '0%'.

    Two decimals max, trailing zeros trimmed.
    """
    pct = round(fraction * 100, 2)
    text = f"{pct:.2f}".rstrip("0").rstrip(".")
    if text in ("-0", ""):
        text = "0"
    sign = "+" if pct > 0 else ""
    return f"{sign}{text}%"
