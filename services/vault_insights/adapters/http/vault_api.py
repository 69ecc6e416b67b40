"""
Vault API Adapter - VaultDataSource over the data-management HTTP API.

Endpoints (GET, relative to VAULT_API_BASE_URL):
    /data-management/external/position-requests       activity pages
    /data-management/external/user/vault-stats        wallet holding
    /data-management/external/vaults/{id}/basic       price, TVL, fee rate
    /data-management/external/vaults/{id}/lp-breakdown  LP slices snapshot

Responses may arrive bare or wrapped in a {"data": ...} envelope.
"""

from typing import Any, Dict, Optional

import requests

from ...core.session import WalletSession
from ...intel.insights_core import aggregate_lp_breakdown
from ...intel.insights_core.activity_adapter import (
    adapt_holding,
    adapt_slices,
    adapt_transactions,
)
from ...intel.insights_core.models import HoldingPosition, LpBreakdown
from ...intel.insights_core.normalizer import parse_int
from ...ports.data_source import (
    ActivityPage,
    VaultDataSource,
    DataSourceError,
    DataSourceTimeoutError,
    DataSourceResponseError,
)

API_PREFIX = "/data-management/external"


class VaultApiSource(VaultDataSource):
    """
    HTTP data source using a shared requests.Session.

    Auth headers come from the WalletSession on every call, so a
    disconnect takes effect on the next request.
    """

    def __init__(
        self,
        config: Dict[str, Any],
        logger: Any,
        session: Optional[WalletSession] = None,
        http: Optional[requests.Session] = None,
    ):
        """
        Initialize adapter with configuration.

        Args:
            config: Resolved insights config (VAULT_API_BASE_URL, VAULT_API_TIMEOUT_S)
            logger: LogUtil instance
            session: Wallet auth context, if a wallet is connected
            http: requests.Session to reuse (injected in tests)
        """
        self.config = config
        self.logger = logger
        self.session = session
        self.base_url = str(config.get("VAULT_API_BASE_URL", "")).rstrip("/")
        self.timeout = float(config.get("VAULT_API_TIMEOUT_S", 10.0))
        self._http = http or requests.Session()

    @property
    def name(self) -> str:
        return "http"

    # ------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.session is not None:
            headers.update(self.session.auth_headers())
        return headers

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}{API_PREFIX}{path}"
        self.logger.debug(f"GET {url} params={params}")

        try:
            r = self._http.get(
                url,
                params=params or {},
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            self.logger.warn(f"timeout after {self.timeout}s: {url}")
            raise DataSourceTimeoutError(f"timeout: {url}") from e
        except requests.exceptions.RequestException as e:
            self.logger.error(f"request error for {url}: {e}")
            raise DataSourceError(str(e)) from e

        if not r.ok:
            self.logger.warn(f"HTTP {r.status_code} for {url}")
            raise DataSourceResponseError(f"HTTP {r.status_code} for {url}", status=r.status_code)

        try:
            body = r.json()
        except ValueError as e:
            self.logger.error(f"malformed JSON from {url}: {e}")
            raise DataSourceResponseError(f"malformed JSON from {url}", status=r.status_code) from e

        return _unwrap(body)

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
        params: Dict[str, Any] = {"vault_id": vault_id, "page": page, "limit": limit}
        if action_type:
            params["action_type"] = action_type
        if time_range:
            params["time_range"] = time_range

        body = self._get("/position-requests", params)
        if not isinstance(body, dict):
            raise DataSourceResponseError("activity response is not an object")

        items = adapt_transactions(body.get("list"))
        return ActivityPage(
            items=tuple(items),
            total=parse_int(body.get("total", len(items))),
            page=parse_int(body.get("page", page)) or page,
            limit=parse_int(body.get("limit", limit)) or limit,
        )

    def fetch_holding(self, vault_id: str, ndlp_balance: float = 0.0) -> HoldingPosition:
        stats = self._get(
            "/user/vault-stats",
            {"vault_id": vault_id, "ndlp_balance": ndlp_balance},
        )
        basic = self._get(f"/vaults/{vault_id}/basic")
        if not isinstance(stats, dict):
            raise DataSourceResponseError("vault-stats response is not an object")
        return adapt_holding(stats, basic)

    def fetch_breakdown(self, vault_id: str) -> LpBreakdown:
        body = self._get(f"/vaults/{vault_id}/lp-breakdown")
        if not isinstance(body, dict):
            raise DataSourceResponseError("lp-breakdown response is not an object")
        return aggregate_lp_breakdown(adapt_slices(body.get("slices")), as_of=body.get("asOf"))


def _unwrap(body: Any) -> Any:
    """Strip a {"data": ...} envelope if present."""
    if isinstance(body, dict) and "data" in body and isinstance(body["data"], (dict, list)):
        return body["data"]
    return body
