"""
Insights Core v1.0.0 — Breakdown Engine

LP breakdown aggregation for donut + legend rendering.

Rules (frozen):
    - Stable sort descending by USD (missing USD → 0).
    - Top 8 slices kept as-is; each keeps its own color or takes
      PALETTE[i % len(PALETTE)].
    - Remaining slices merge into one "Others" slice with MUTED_COLOR,
      appended only when the merged percent or USD is > 0.
    - Others percent is rounded to 1 decimal.
    - Display percent: 1 decimal, half-up, trailing ".0" dropped.

Input percentages need not sum to exactly 100.
"""

import math
from decimal import Decimal, ROUND_HALF_UP, localcontext
from typing import Iterable, Optional

import numpy as np

from .models import LpBreakdown, LpSlice
from .normalizer import parse_decimal

TOP_N = 8
OTHERS_LABEL = "Others"

PALETTE: tuple[str, ...] = (
    "var(--chart-1)",
    "var(--chart-2)",
    "var(--chart-3)",
    "var(--chart-4)",
    "var(--chart-5)",
    "var(--chart-6)",
    "var(--chart-7)",
    "var(--chart-8)",
)
MUTED_COLOR = "var(--chart-muted)"

_ONE_DP = Decimal("0.1")
# Covers the integer digits of any finite float plus one decimal
_ROUND_PREC = 400


def round_1dp(value: float) -> float:
    """Half-up rounding to one decimal. Non-finite input → 0.0."""
    value = float(value)
    if not math.isfinite(value):
        return 0.0
    with localcontext() as ctx:
        ctx.prec = _ROUND_PREC
        return float(Decimal(repr(value)).quantize(_ONE_DP, rounding=ROUND_HALF_UP))


def _finite(value) -> float:
    value = float(value)
    return value if math.isfinite(value) else 0.0


def percent_text(value: float) -> str:
    """62.04 → '62%', 12.35 → '12.4%'."""
    fixed = round_1dp(parse_decimal(value))
    if fixed == int(fixed):
        return f"{int(fixed)}%"
    return f"{fixed}%"


class BreakdownEngine:
    """Top-N + Others aggregation. Stateless."""

    def __init__(
        self,
        top_n: int = TOP_N,
        palette: tuple[str, ...] = PALETTE,
        muted_color: str = MUTED_COLOR,
    ):
        if top_n < 0:
            raise ValueError(f"top_n must be >= 0, got {top_n}")
        if not palette:
            raise ValueError("palette must not be empty")
        self.top_n = top_n
        self.palette = palette
        self.muted_color = muted_color

    def aggregate(
        self,
        slices: Iterable[LpSlice],
        as_of: Optional[str] = None,
    ) -> LpBreakdown:
        items = list(slices)
        if not items:
            return LpBreakdown(top=(), others=None, as_of=as_of)

        usd = np.array([parse_decimal(s.usd) for s in items], dtype=np.float64)
        pct = np.array([parse_decimal(s.percent) for s in items], dtype=np.float64)

        # Stable descending order: argsort of the negated values
        order = np.argsort(-usd, kind="stable")
        top_idx = order[: self.top_n]
        rest_idx = order[self.top_n:]

        top = []
        for pos, i in enumerate(top_idx):
            s = items[int(i)]
            top.append(LpSlice(
                label=s.label,
                percent=float(pct[i]),
                usd=float(usd[i]),
                color=s.color or self.palette[pos % len(self.palette)],
                last_changed_ts=s.last_changed_ts,
                percent_text=percent_text(pct[i]),
            ))

        others = None
        if len(rest_idx) > 0:
            with np.errstate(over="ignore"):
                others_usd = _finite(np.sum(usd[rest_idx]))
                others_pct = _finite(np.sum(pct[rest_idx]))
            if others_usd > 0 or others_pct > 0:
                rounded = round_1dp(others_pct)
                others = LpSlice(
                    label=OTHERS_LABEL,
                    percent=rounded,
                    usd=others_usd,
                    color=self.muted_color,
                    percent_text=percent_text(rounded),
                )

        return LpBreakdown(top=tuple(top), others=others, as_of=as_of)
