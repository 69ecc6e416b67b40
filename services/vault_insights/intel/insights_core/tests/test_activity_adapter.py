"""Activity adapter unit tests — backend JSON → Insights Core records."""

import pytest

from ..activity_adapter import (
    adapt_components,
    adapt_holding,
    adapt_slices,
    adapt_transaction,
    adapt_transactions,
)
from ..attribution_engine import compute_attribution, compute_pnl_snapshot
from ..normalizer import usd_value


def _row(**overrides) -> dict:
    row = {
        "id": "0xV001-1-0",
        "type": "SWAP",
        "time": "2025-09-02T12:00:00.000Z",
        "value": "48.00",
        "txhash": "0xabc000000",
        "reason": "Recenter range",
        "tokens": [
            {"token_symbol": "USDC", "token_name": "USDC", "decimal": 6, "amount": 50_000_000, "price": "1.00"},
            {"token_symbol": "SUI", "token_name": "SUI", "decimal": 9, "amount": 12_000_000_000, "price": "4.00"},
        ],
    }
    row.update(overrides)
    return row


class TestAdaptTransaction:
    def test_basic(self):
        tx = adapt_transaction(_row())
        assert tx.type == "SWAP"
        assert tx.reason == "Recenter range"
        assert len(tx.tokens) == 2
        assert usd_value(tx.leg(0)) == pytest.approx(50.0)
        assert usd_value(tx.leg(1)) == pytest.approx(48.0)

    def test_type_upper_cased(self):
        assert adapt_transaction(_row(type="add_liquidity")).type == "ADD_LIQUIDITY"

    def test_missing_type_skipped(self):
        assert adapt_transaction(_row(type=None)) is None
        assert adapt_transaction(_row(type="  ")) is None
        assert adapt_transaction("not a row") is None

    def test_extra_legs_truncated(self):
        legs = _row()["tokens"] * 2
        tx = adapt_transaction(_row(tokens=legs))
        assert len(tx.tokens) == 2

    def test_missing_tokens(self):
        tx = adapt_transaction(_row(tokens=None))
        assert tx.tokens == ()
        assert tx.leg(0) is None

    def test_malformed_numbers_coerce(self):
        bad_leg = {"token_symbol": "USDC", "decimal": "six", "amount": "lots", "price": None}
        tx = adapt_transaction(_row(tokens=[bad_leg]))
        leg = tx.leg(0)
        assert leg.amount == 0
        assert leg.decimal == 0
        assert leg.price == "0"
        assert usd_value(leg) == 0.0

    def test_empty_reason_is_none(self):
        assert adapt_transaction(_row(reason="")).reason is None

    def test_adapt_list_skips_bad_rows(self):
        txs = adapt_transactions([_row(), {"id": "x"}, None, _row(id="2")])
        assert [t.id for t in txs] == ["0xV001-1-0", "2"]
        assert adapt_transactions(None) == []


class TestAdaptHolding:
    STATS = {
        "user_ndlp_balance": 8200.0,
        "user_total_deposit_usd": 10000.0,
        "user_total_withdraw_usd": 1000.0,
        "user_rewards_24h_usd": "1.28",
        "user_vault_tokens": [
            {"token": "USDC", "token_symbol": "USDC", "amount_in_usd": 6200.0},
            {"token": "SUI", "amount_in_usd": 3800.0},
        ],
    }
    BASIC = {"ndlp_price_usd": "1.04", "performance_fee": "0.1", "total_value_usd": "100000"}

    def test_fields(self):
        h = adapt_holding(self.STATS, self.BASIC)
        assert h.ndlp_balance == 8200.0
        assert h.ndlp_price == pytest.approx(1.04)
        assert h.current_value is None
        assert h.performance_fee_rate == pytest.approx(0.1)
        assert h.fees_24h == pytest.approx(1.28)
        assert h.token_exposure == {"USDC": 6200.0, "SUI": 3800.0}
        assert h.since_deposit is None

    def test_snapshot_from_adapted(self):
        snap = compute_pnl_snapshot(adapt_holding(self.STATS, self.BASIC))
        assert snap.current_value == pytest.approx(8528.0)
        assert snap.net_deposited == 9000.0
        assert snap.exposure_text == "USDC 62.0% / SUI 38.0%"

    def test_attribution_blocks(self):
        stats = dict(self.STATS, attribution={
            "feesAutoCompUSD": 248.0,
            "impermanentLossUSD": -173.0,
            "rangeRebalanceEffectUSD": -51.0,
            "performanceFeeUSD": -8.0,
            "netPnlUSD": 16.0,
        })
        res = compute_attribution(adapt_holding(stats, self.BASIC), "deposit")
        assert res.costs == pytest.approx(232.0)
        assert res.net_pnl == pytest.approx(16.0)

    def test_components_optional_fields(self):
        comp = adapt_components({"feesAutoCompUSD": "2"})
        assert comp.fees_auto_compounded == 2.0
        assert comp.performance_fee is None
        assert comp.net_pnl is None
        assert adapt_components(None) is None

    def test_empty_payloads(self):
        h = adapt_holding(None, None)
        assert h.ndlp_balance == 0.0
        assert h.token_exposure == {}


class TestAdaptSlices:
    def test_slices(self):
        slices = adapt_slices([
            {"label": "USDC", "percent": 62.0, "usd": 5280.0, "color": "#52BDE1"},
            {"label": "SUI", "percent": "38", "usd": "3248"},
            {"percent": 1.0},
        ])
        assert [s.label for s in slices] == ["USDC", "SUI"]
        assert slices[1].percent == 38.0
        assert slices[1].color is None
        assert adapt_slices(None) == []
