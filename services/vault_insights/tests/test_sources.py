"""Data source adapter tests — HTTP adapter over a fake session, fixture determinism."""

import io
from datetime import datetime, timedelta, timezone

import pytest
import requests

from shared.logutil import LogUtil

from ..adapters.fixture.vault_fixture import REASONS, VaultFixtureSource
from ..adapters.http.vault_api import VaultApiSource
from ..core.session import WalletSession
from ..intel.insights_core import compute_attribution, compute_insights
from ..ports.data_source import (
    DataSourceError,
    DataSourceResponseError,
    DataSourceTimeoutError,
)


NOW = datetime(2025, 9, 2, 12, 0, 0, tzinfo=timezone.utc)
CONFIG = {"VAULT_API_BASE_URL": "http://api.test/", "VAULT_API_TIMEOUT_S": 5.0}


def _logger() -> LogUtil:
    logger = LogUtil("vault_insights_test", stream=io.StringIO())
    logger.configure_from_config({"LOG_LEVEL": "DEBUG"})
    return logger


class FakeResponse:
    def __init__(self, status_code: int = 200, payload=None, bad_json: bool = False):
        self.status_code = status_code
        self._payload = payload
        self._bad_json = bad_json

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self):
        if self._bad_json:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._payload


class FakeHttp:
    """Stands in for requests.Session; routes on URL suffix."""

    def __init__(self, routes=None, error: Exception | None = None):
        self.routes = routes or {}
        self.error = error
        self.calls = []

    def get(self, url, params=None, headers=None, timeout=None):
        self.calls.append({"url": url, "params": params, "headers": headers, "timeout": timeout})
        if self.error is not None:
            raise self.error
        for suffix, response in self.routes.items():
            if url.endswith(suffix):
                return response
        return FakeResponse(404, {"message": "not mapped"})


ACTIVITY_BODY = {
    "data": {
        "list": [
            {
                "id": "a1",
                "type": "ADD_LIQUIDITY",
                "time": "2025-09-02T11:59:00.000Z",
                "reason": "Increase position size",
                "tokens": [
                    {"token_symbol": "USDC", "decimal": 6, "amount": 100_000_000, "price": "1.00"},
                    {"token_symbol": "SUI", "decimal": 9, "amount": 25_000_000_000, "price": "4.00"},
                ],
            },
        ],
        "total": 1,
        "page": 1,
        "limit": 100,
    }
}


class TestVaultApiSource:
    def test_fetch_activities(self):
        http = FakeHttp({"/position-requests": FakeResponse(200, ACTIVITY_BODY)})
        session = WalletSession().connect("0xABC", "tok-1")
        src = VaultApiSource(CONFIG, _logger(), session=session, http=http)

        page = src.fetch_activities("0xV001", page=1, limit=100, action_type="SWAP", time_range="24h")

        call = http.calls[0]
        assert call["url"] == "http://api.test/data-management/external/position-requests"
        assert call["params"] == {
            "vault_id": "0xV001",
            "page": 1,
            "limit": 100,
            "action_type": "SWAP",
            "time_range": "24h",
        }
        assert call["headers"]["Authorization"] == "Bearer tok-1"
        assert call["timeout"] == 5.0
        assert page.total == 1
        assert compute_insights(page.items).inflow == pytest.approx(200.0)

    def test_optional_params_omitted(self):
        http = FakeHttp({"/position-requests": FakeResponse(200, ACTIVITY_BODY["data"])})
        src = VaultApiSource(CONFIG, _logger(), http=http)
        page = src.fetch_activities("0xV001")
        assert "action_type" not in http.calls[0]["params"]
        assert "time_range" not in http.calls[0]["params"]
        assert "Authorization" not in http.calls[0]["headers"]
        assert len(page.items) == 1

    def test_http_error_status(self):
        http = FakeHttp({"/position-requests": FakeResponse(500, {"message": "boom"})})
        src = VaultApiSource(CONFIG, _logger(), http=http)
        with pytest.raises(DataSourceResponseError) as exc:
            src.fetch_activities("0xV001")
        assert exc.value.status == 500

    def test_malformed_json(self):
        http = FakeHttp({"/position-requests": FakeResponse(200, bad_json=True)})
        src = VaultApiSource(CONFIG, _logger(), http=http)
        with pytest.raises(DataSourceResponseError):
            src.fetch_activities("0xV001")

    def test_non_object_body(self):
        http = FakeHttp({"/position-requests": FakeResponse(200, ["unexpected"])})
        src = VaultApiSource(CONFIG, _logger(), http=http)
        with pytest.raises(DataSourceResponseError):
            src.fetch_activities("0xV001")

    def test_timeout(self):
        http = FakeHttp(error=requests.exceptions.ReadTimeout("slow"))
        src = VaultApiSource(CONFIG, _logger(), http=http)
        with pytest.raises(DataSourceTimeoutError):
            src.fetch_activities("0xV001")

    def test_connection_error(self):
        http = FakeHttp(error=requests.exceptions.ConnectionError("refused"))
        src = VaultApiSource(CONFIG, _logger(), http=http)
        with pytest.raises(DataSourceError) as exc:
            src.fetch_breakdown("0xV001")
        assert not isinstance(exc.value, DataSourceTimeoutError)

    def test_fetch_holding(self):
        stats = {
            "user_ndlp_balance": 100.0,
            "user_total_deposit_usd": 100.0,
            "user_vault_tokens": [{"token_symbol": "USDC", "amount_in_usd": 120.0}],
        }
        basic = {"ndlp_price_usd": "1.2", "performance_fee": 0.1, "total_value_usd": 1200.0}
        http = FakeHttp({
            "/user/vault-stats": FakeResponse(200, {"data": stats}),
            "/vaults/0xV001/basic": FakeResponse(200, basic),
        })
        src = VaultApiSource(CONFIG, _logger(), http=http)

        holding = src.fetch_holding("0xV001", 100.0)

        assert http.calls[0]["params"] == {"vault_id": "0xV001", "ndlp_balance": 100.0}
        res = compute_attribution(holding)
        assert res.costs == pytest.approx(2.0)
        assert res.net_pnl == pytest.approx(18.0)

    def test_fetch_breakdown(self):
        body = {
            "asOf": "2025-09-02T12:00:00Z",
            "slices": [
                {"label": "SUI", "percent": 38.0, "usd": 3248.0},
                {"label": "USDC", "percent": 62.0, "usd": 5280.0, "color": "#52BDE1"},
            ],
        }
        http = FakeHttp({"/vaults/0xV001/lp-breakdown": FakeResponse(200, body)})
        src = VaultApiSource(CONFIG, _logger(), http=http)

        bd = src.fetch_breakdown("0xV001")

        assert [s.label for s in bd.slices] == ["USDC", "SUI"]
        assert bd.top[0].color == "#52BDE1"
        assert bd.as_of == "2025-09-02T12:00:00Z"

    def test_disconnect_drops_auth(self):
        http = FakeHttp({"/position-requests": FakeResponse(200, ACTIVITY_BODY)})
        session = WalletSession().connect("0xABC", "tok-1")
        src = VaultApiSource(CONFIG, _logger(), session=session, http=http)
        session.disconnect()
        src.fetch_activities("0xV001")
        assert "Authorization" not in http.calls[0]["headers"]


class TestVaultFixtureSource:
    def setup_method(self):
        self.src = VaultFixtureSource(clock=lambda: NOW)

    def test_full_list(self):
        page = self.src.fetch_activities("0xV001", page=1, limit=10)
        assert page.total == 5000
        assert len(page.items) == 10
        assert page.has_more

    def test_deterministic_within_minute(self):
        a = self.src.fetch_activities("0xV001", limit=50)
        later = VaultFixtureSource(clock=lambda: NOW + timedelta(seconds=30))
        b = later.fetch_activities("0xV001", limit=50)
        assert [t.type for t in a.items] == [t.type for t in b.items]
        assert [t.tokens for t in a.items] == [t.tokens for t in b.items]

    def test_newest_first(self):
        items = self.src.fetch_activities("0xV001", limit=3).items
        assert items[0].time == "2025-09-02T12:00:00.000Z"
        assert items[1].time == "2025-09-02T11:59:00.000Z"

    def test_time_range_filter(self):
        page = self.src.fetch_activities("0xV001", limit=1, time_range="24h")
        assert page.total == 24 * 60 + 1

    def test_action_filter(self):
        page = self.src.fetch_activities("0xV001", limit=100, action_type="SWAP")
        assert 0 < page.total < 5000
        assert all(t.type == "SWAP" for t in page.items)

    def test_pagination(self):
        p1 = self.src.fetch_activities("0xV001", page=1, limit=10)
        p2 = self.src.fetch_activities("0xV001", page=2, limit=10)
        assert len(p2.items) == 10
        assert {t.id for t in p1.items}.isdisjoint({t.id for t in p2.items})

    def test_row_shape(self):
        for tx in self.src.fetch_activities("0xV001", limit=200).items:
            assert tx.reason in REASONS[tx.type]
            assert [leg.token_symbol for leg in tx.tokens] == ["USDC", "SUI"]
            assert tx.tokens[0].decimal == 6
            assert tx.tokens[1].decimal == 9

    def test_summary_over_fixture(self):
        summary = compute_insights(self.src.fetch_activities("0xV001", limit=100).items)
        assert summary.transaction_count == 100
        assert summary.inflow >= 0
        assert summary.outflow >= 0
        assert 0.05 <= summary.confidence <= 1.0

    def test_holding_fixture(self):
        holding = self.src.fetch_holding("0xV001")
        dep = compute_attribution(holding, "deposit")
        day = compute_attribution(holding, "24h")
        assert dep.gains == pytest.approx(248.0)
        assert dep.costs == pytest.approx(232.0)
        assert dep.net_pnl == pytest.approx(16.0)
        assert day.net_pnl == pytest.approx(0.18)

    def test_breakdown_fixture(self):
        bd = self.src.fetch_breakdown("0xV001")
        assert [(s.label, s.percent_text) for s in bd.slices] == [("USDC", "62%"), ("SUI", "38%")]
        assert bd.others is None
