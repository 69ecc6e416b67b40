"""
Insights Core v1.0.0 — Data Models

Frozen data contracts for the vault activity insights and P&L attribution
engine. Records are immutable once adapted from the backend; every derived
bundle is recomputed per fetch and carries no identity of its own.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class TxType(Enum):
    """Backend activity type codes."""
    ADD_LIQUIDITY = "ADD_LIQUIDITY"
    REMOVE_LIQUIDITY = "REMOVE_LIQUIDITY"
    SWAP = "SWAP"
    OPEN = "OPEN"
    CLOSE = "CLOSE"
    CLAIM_REWARDS = "CLAIM_REWARDS"
    ADD_PROFIT_UPDATE_RATE = "ADD_PROFIT_UPDATE_RATE"


class FlowCategory(Enum):
    """Where a transaction's USD value lands in the aggregate."""
    INFLOW = "inflow"
    OUTFLOW = "outflow"
    SWAP = "swap"
    NEUTRAL = "neutral"


class TimeRange(Enum):
    """Activity query windows offered by the backend."""
    H24 = "24h"
    D7 = "7d"
    D30 = "30d"


class AttributionWindow(Enum):
    """P&L attribution windows. Each is computed from its own inputs only."""
    SINCE_DEPOSIT = "deposit"
    LAST_24H = "24h"


@dataclass(frozen=True)
class TokenLeg:
    """
    One token side of a transaction.

    amount is in the token's smallest unit; price is the backend's USD price
    per whole token at transaction time, kept as the reported string.
    """
    token_symbol: str
    token_name: str
    amount: int
    decimal: int
    price: str


@dataclass(frozen=True)
class Transaction:
    """
    Vault activity record.

    type is the raw backend code so unknown codes survive adaptation
    (they classify as neutral). tokens holds at most two legs:
    leg 0 primary (sold, for swaps), leg 1 secondary (bought).
    """
    id: str
    type: str
    time: str
    value: str = "0"
    tokens: tuple[TokenLeg, ...] = ()
    reason: Optional[str] = None
    txhash: Optional[str] = None

    def leg(self, index: int) -> Optional[TokenLeg]:
        if 0 <= index < len(self.tokens):
            return self.tokens[index]
        return None


@dataclass(frozen=True)
class ActivityAggregate:
    """Single-pass flow totals over one transaction batch."""
    inflow: float
    outflow: float
    net: float
    swap_vol: float
    type_count: dict[str, int]
    reasons: dict[str, int]
    top_reason: Optional[str]
    rebalances: int
    stop_loss_count: int
    last_stop_loss_ts: Optional[str]
    transaction_count: int


@dataclass(frozen=True)
class DriverVerdict:
    """Winning explanatory hypothesis with its normalized confidence."""
    hypothesis: str
    label: str
    next_action: str
    confidence: float
    scores: tuple[float, ...]


@dataclass(frozen=True)
class InsightSummary:
    """
    Complete insight bundle for one (vault, time range, filter) batch.

    Every bundle includes the engine version tag.
    """
    version: str
    transaction_count: int
    inflow: float
    outflow: float
    net: float
    swap_vol: float
    type_count: dict[str, int]
    reasons: dict[str, int]
    top_reason: Optional[str]
    rebalances: int
    stop_loss_count: int
    last_stop_loss_ts: Optional[str]
    add_open_count: int
    remove_close_count: int
    driver: str
    next_action: str
    confidence: float
    hypothesis: str
    scores: tuple[float, ...]


@dataclass(frozen=True)
class AttributionComponents:
    """
    Signed P&L line items for one window, as reported by the backend.

    Costs are usually negative numbers; only their magnitude is used.
    """
    fees_auto_compounded: float = 0.0
    impermanent_loss: float = 0.0
    range_rebalance_effect: float = 0.0
    performance_fee: Optional[float] = None
    net_pnl: Optional[float] = None


@dataclass(frozen=True)
class HoldingPosition:
    """A wallet's position in one vault, in USD unless noted."""
    ndlp_balance: float = 0.0
    ndlp_price: float = 0.0
    current_value: Optional[float] = None
    total_deposits: float = 0.0
    total_withdrawals: float = 0.0
    performance_fee_rate: float = 0.0
    fees_24h: float = 0.0
    vault_total_value: float = 0.0
    token_exposure: dict[str, float] = field(default_factory=dict)
    since_deposit: Optional[AttributionComponents] = None
    last_24h: Optional[AttributionComponents] = None


@dataclass(frozen=True)
class PnlSnapshot:
    """Holding-level P&L figures derived from cashflow and NDLP balance."""
    current_value: float
    net_deposited: float
    pnl: float
    pnl_pct: float
    break_even_price: float
    performance_fee: float
    net_pnl: float
    share_in_vault: float
    exposure_text: str


@dataclass(frozen=True)
class AttributionResult:
    """Gains / costs decomposition of one window's net P&L."""
    window: str
    gains: float
    costs: float
    net_pnl: float
    fees_auto_compounded: float
    impermanent_loss: float
    range_rebalance_effect: float
    performance_fee: float


@dataclass(frozen=True)
class LpSlice:
    """One token slice of the LP breakdown donut."""
    label: str
    percent: float
    usd: float
    color: Optional[str] = None
    last_changed_ts: Optional[str] = None
    percent_text: str = ""


@dataclass(frozen=True)
class LpBreakdown:
    """Top slices plus the optional merged tail."""
    top: tuple[LpSlice, ...]
    others: Optional[LpSlice]
    as_of: Optional[str] = None

    @property
    def slices(self) -> tuple[LpSlice, ...]:
        if self.others is None:
            return self.top
        return self.top + (self.others,)


@dataclass(frozen=True)
class TransactionHint:
    """Heuristic explanation of a single automated transaction."""
    intent: str
    summary: str
    confidence: float
    reason: Optional[str]
    leg_usd: tuple[float, ...]
