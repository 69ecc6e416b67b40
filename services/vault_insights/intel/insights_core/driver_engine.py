"""
Insights Core v1.0.0 — Driver Engine

Rule-based "likely driver" classification over an ActivityAggregate.
Deterministic and auditable: same aggregate → same verdict, every time.

Hypotheses are rows of a frozen table, scored uniformly:

    narrow_range_churn : min(1, rebalances/20) + 1[top_reason ~ churn|narrow]
    inventory_drift    : min(1, log10(1+swap_vol)/6)
                         + 1[top_reason ~ deviation|drift|recenter|out of range]
    protective_exit    : 1[stop_loss_count > 0] + 0.3·1[net < 0]
    stable             : 0.2 (baseline, so a label always exists)

Winner = argmax (first row on ties).
confidence = clamp(best / Σ scores, 0.05, 1); 0.05 when Σ = 0.

Adding a hypothesis means adding a row. No branching changes.
"""

import math
import re
from dataclasses import dataclass
from typing import Callable

from .models import ActivityAggregate, DriverVerdict

CHURN_REBALANCE_SCALE = 20.0
DRIFT_LOG_SCALE = 6.0
NEGATIVE_NET_WEIGHT = 0.3
STABLE_BASELINE = 0.2
CONFIDENCE_FLOOR = 0.05

_CHURN_PATTERN = re.compile(r"churn|narrow", re.IGNORECASE)
_DRIFT_PATTERN = re.compile(r"deviation|drift|recenter|out of range", re.IGNORECASE)


@dataclass(frozen=True)
class Hypothesis:
    """One row of the driver table."""
    key: str
    score: Callable[[ActivityAggregate], float]
    label: str
    next_action: str


def _reason_matches(agg: ActivityAggregate, pattern: re.Pattern) -> float:
    return 1.0 if agg.top_reason and pattern.search(agg.top_reason) else 0.0


def score_narrow_range(agg: ActivityAggregate) -> float:
    return (
        min(1.0, agg.rebalances / CHURN_REBALANCE_SCALE)
        + _reason_matches(agg, _CHURN_PATTERN)
    )


def score_inventory_drift(agg: ActivityAggregate) -> float:
    volume = max(0.0, agg.swap_vol)
    return (
        min(1.0, math.log10(1.0 + volume) / DRIFT_LOG_SCALE)
        + _reason_matches(agg, _DRIFT_PATTERN)
    )


def score_protective_exit(agg: ActivityAggregate) -> float:
    return (
        (1.0 if agg.stop_loss_count > 0 else 0.0)
        + (NEGATIVE_NET_WEIGHT if agg.net < 0 else 0.0)
    )


def score_stable(agg: ActivityAggregate) -> float:
    return STABLE_BASELINE


HYPOTHESES: tuple[Hypothesis, ...] = (
    Hypothesis(
        key="narrow_range_churn",
        score=score_narrow_range,
        label="High churn from narrow range.",
        next_action="Consider widening the range to cut rebalance churn.",
    ),
    Hypothesis(
        key="inventory_drift",
        score=score_inventory_drift,
        label="Inventory drift after deviation.",
        next_action="Review the target mix and recenter if deviation persists.",
    ),
    Hypothesis(
        key="protective_exit",
        score=score_protective_exit,
        label="Protective exit after drawdown.",
        next_action="Wait for the stop-loss cooldown before adding liquidity.",
    ),
    Hypothesis(
        key="stable",
        score=score_stable,
        label="Stable range, no dominant driver.",
        next_action="No action needed; keep monitoring.",
    ),
)


class DriverEngine:
    """Scores every hypothesis row and picks the strongest."""

    def __init__(self, hypotheses: tuple[Hypothesis, ...] = HYPOTHESES):
        if not hypotheses:
            raise ValueError("DriverEngine needs at least one hypothesis")
        self.hypotheses = hypotheses

    def scores(self, agg: ActivityAggregate) -> tuple[float, ...]:
        out = []
        for h in self.hypotheses:
            s = h.score(agg)
            if math.isnan(s) or s < 0:
                s = 0.0
            out.append(s)
        return tuple(out)

    def classify(self, agg: ActivityAggregate) -> DriverVerdict:
        scores = self.scores(agg)

        best_idx = 0
        for i, s in enumerate(scores):
            if s > scores[best_idx]:
                best_idx = i

        total = sum(scores)
        if total > 0:
            confidence = scores[best_idx] / total
        else:
            confidence = CONFIDENCE_FLOOR
        confidence = max(CONFIDENCE_FLOOR, min(1.0, confidence))

        winner = self.hypotheses[best_idx]
        return DriverVerdict(
            hypothesis=winner.key,
            label=winner.label,
            next_action=winner.next_action,
            confidence=confidence,
            scores=scores,
        )
