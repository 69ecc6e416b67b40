"""
Vault Fixture Adapter - deterministic VaultDataSource for demos and QA.

Activity data is regenerated every minute: the generator is seeded with
the current epoch minute plus len(vault_id), so repeated reads inside the
same minute return identical pages. Rows are emitted in backend JSON shape
and go through the same activity adapter as live data.

Generated rows:
    - 5,000 per vault, one per minute going back from now, newest first
    - types ADD_LIQUIDITY / REMOVE_LIQUIDITY / SWAP / OPEN / CLOSE
    - USDC (6 decimals, $1.00) and SUI (9 decimals, $4.00) legs
    - swaps move $100..$1,100; liquidity rows move $0.01..$0.06 pairs
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

import numpy as np

from ...intel.insights_core import aggregate_lp_breakdown
from ...intel.insights_core.activity_adapter import (
    adapt_holding,
    adapt_slices,
    adapt_transactions,
)
from ...intel.insights_core.models import HoldingPosition, LpBreakdown
from ...ports.data_source import ActivityPage, VaultDataSource

TARGET_TOTAL = 5000

USDC_DEC = 6
SUI_DEC = 9
USDC_PRICE = 1.0
SUI_PRICE = 4.0

# Cumulative thresholds on the biased draw
_TYPE_EDGES = np.array([0.25, 0.45, 0.75, 0.9])
_TYPES = ("ADD_LIQUIDITY", "REMOVE_LIQUIDITY", "SWAP", "OPEN", "CLOSE")

REASONS: dict[str, tuple[str, ...]] = {
    "ADD_LIQUIDITY": (
        "Deploy new deposits to active range",
        "Increase position size",
        "Rebalance capital into range",
    ),
    "REMOVE_LIQUIDITY": (
        "Reduce SUI exposure (protective posture)",
        "Trim position after volatility spike",
        "Harvest fees and reduce risk",
    ),
    "SWAP": (
        "Restore target 65/35 mix",
        "Recenter range",
        "Reduce exposure",
    ),
    "OPEN": (
        "Cooldown ended; re-enter balanced range",
        "Initialize range after strategy update",
    ),
    "CLOSE": (
        "Stop-loss triggered; exit LP",
        "Exit to stablecoins due to drawdown",
    ),
}

_RANGE_WINDOWS = {
    "24h": timedelta(hours=24),
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
}

# Dev/QA holding, matches the dashboard's P&L card fixture
QA_HOLDING: dict[str, Any] = {
    "user_ndlp_balance": 8200.0,
    "ndlp_price_usd": "1.04",
    "current_value_usd": 8528.0,
    "user_total_deposit_usd": 10000.0,
    "user_total_withdraw_usd": 1000.0,
    "user_rewards_24h_usd": 1.28,
    "user_vault_tokens": [
        {"token_symbol": "USDC", "amount_in_usd": 5287.36},
        {"token_symbol": "SUI", "amount_in_usd": 3240.64},
    ],
    "attribution": {
        "feesAutoCompUSD": 248.0,
        "impermanentLossUSD": -173.0,
        "rangeRebalanceEffectUSD": -51.0,
        "performanceFeeUSD": -8.0,
        "netPnlUSD": 16.0,
    },
    "pnl24h": {
        "feesAutoCompUSD": 1.28,
        "impermanentLossUSD": -0.92,
        "rangeRebalanceEffectUSD": -0.18,
        "performanceFeeUSD": -0.0,
        "netPnlUSD": 0.18,
    },
}

QA_VAULT_BASIC: dict[str, Any] = {
    "ndlp_price_usd": "1.04",
    "performance_fee": 0.1,
    "total_value_usd": 293058.0,
}

QA_SLICES: tuple[dict[str, Any], ...] = (
    {"label": "USDC", "percent": 62.0, "usd": 5280.0, "color": "#52BDE1"},
    {"label": "SUI", "percent": 38.0, "usd": 3248.0, "color": "#CC98FF"},
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _iso(dt: datetime) -> str:
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def _token(symbol: str, decimal: int, price: float, amount: int) -> dict[str, Any]:
    return {
        "token_name": symbol,
        "token_symbol": symbol,
        "decimal": decimal,
        "amount": amount,
        "price": f"{price:.2f}",
    }


class VaultFixtureSource(VaultDataSource):
    """Synthetic vault backend. Same inputs within one minute → same output."""

    def __init__(
        self,
        logger: Any = None,
        total: int = TARGET_TOTAL,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.logger = logger
        self.total = total
        self._clock = clock or _utcnow

    @property
    def name(self) -> str:
        return "fixture"

    # ------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------

    def generate_rows(self, vault_id: str, now: Optional[datetime] = None) -> list[dict[str, Any]]:
        """Full synthetic activity list for a vault, newest first."""
        now = now or self._clock()
        minute_seed = int(now.timestamp() // 60)
        rng = np.random.default_rng(minute_seed + len(vault_id))
        n = self.total
        idx = np.arange(n)

        type_draw = rng.random(n) + (idx % 5) * 0.01
        type_idx = np.searchsorted(_TYPE_EDGES, type_draw, side="right")

        usdc_in = 100 + rng.random(n) * 1000
        sui_out = usdc_in / SUI_PRICE * (0.995 + rng.random(n) * 0.01)
        usdc_pair = (10 + rng.random(n) * 50) / 1000
        sui_pair = usdc_pair / SUI_PRICE * (0.98 + rng.random(n) * 0.04)
        reason_draw = rng.random(n)

        usdc_in_units = np.round(usdc_in * 10**USDC_DEC).astype(np.int64)
        sui_out_units = np.round(sui_out * 10**SUI_DEC).astype(np.int64)
        usdc_pair_units = np.round(usdc_pair * 10**USDC_DEC).astype(np.int64)
        sui_pair_units = np.round(sui_pair * 10**SUI_DEC).astype(np.int64)

        rows = []
        for i in range(n):
            tx_type = _TYPES[int(type_idx[i])]
            time = _iso(now - timedelta(minutes=i))

            if tx_type == "SWAP":
                a0, a1 = int(usdc_in_units[i]), int(sui_out_units[i])
                value = min(a0 / 10**USDC_DEC * USDC_PRICE, a1 / 10**SUI_DEC * SUI_PRICE)
            else:
                a0, a1 = int(usdc_pair_units[i]), int(sui_pair_units[i])
                value = usdc_pair[i] * USDC_PRICE + sui_pair[i] * SUI_PRICE

            choices = REASONS[tx_type]
            reason = choices[min(len(choices) - 1, int(reason_draw[i] * len(choices)))]

            rows.append({
                "id": f"{vault_id}-{minute_seed}-{i}",
                "type": tx_type,
                "time": time,
                "vault_address": vault_id,
                "status": "success",
                "txhash": f"0x{minute_seed % 4096:x}{i:06x}",
                "value": f"{float(value):.2f}",
                "reason": reason,
                "tokens": [
                    _token("USDC", USDC_DEC, USDC_PRICE, a0),
                    _token("SUI", SUI_DEC, SUI_PRICE, a1),
                ],
            })
        return rows

    # ------------------------------------------------------------
    # VaultDataSource
    # ------------------------------------------------------------

    def fetch_activities(
        self,
        vault_id: str,
        page: int = 1,
        limit: int = 100,
        action_type: str = "",
        time_range: Optional[str] = None,
    ) -> ActivityPage:
        now = self._clock()
        page = max(1, int(page))
        limit = max(1, int(limit))
        rows = self.generate_rows(vault_id, now)

        wanted = (action_type or "").upper()
        if wanted in _TYPES:
            rows = [r for r in rows if r["type"] == wanted]

        window = _RANGE_WINDOWS.get((time_range or "").lower())
        if window is not None:
            cutoff = now - window
            keep = []
            for r in rows:
                ts = datetime.fromisoformat(r["time"].replace("Z", "+00:00"))
                if ts >= cutoff:
                    keep.append(r)
            rows = keep

        start = (page - 1) * limit
        items = adapt_transactions(rows[start:start + limit])
        if self.logger is not None:
            self.logger.debug(
                f"fixture activities vault={vault_id} total={len(rows)} page={page} items={len(items)}"
            )
        return ActivityPage(items=tuple(items), total=len(rows), page=page, limit=limit)

    def fetch_holding(self, vault_id: str, ndlp_balance: float = 0.0) -> HoldingPosition:
        return adapt_holding(QA_HOLDING, QA_VAULT_BASIC)

    def fetch_breakdown(self, vault_id: str) -> LpBreakdown:
        return aggregate_lp_breakdown(
            adapt_slices(list(QA_SLICES)),
            as_of=_iso(self._clock()),
        )
