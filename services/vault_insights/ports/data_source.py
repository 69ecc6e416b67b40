"""
Vault Data Source Port - Abstract interface for the vault backend.

Abstracts where activities, holdings and LP breakdowns come from so the
backend can be:
- The real data-management HTTP API
- Deterministic fixture data for demos and QA
- Mocked for testing

The insights core never sees this port; the feed fetches through it and
hands adapted records to the core.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from ..intel.insights_core.models import HoldingPosition, LpBreakdown, Transaction


@dataclass(frozen=True)
class ActivityPage:
    """One page of vault activity, newest first."""
    items: tuple[Transaction, ...] = ()
    total: int = 0
    page: int = 1
    limit: int = 0

    @property
    def has_more(self) -> bool:
        return self.page * self.limit < self.total


@dataclass(frozen=True)
class ActivityQuery:
    """Cache key for one (vault, time range, filter) activity view."""
    vault_id: str
    time_range: str = "24h"
    action_type: str = ""


class VaultDataSource(ABC):
    """
    Abstract interface for vault backend reads.

    Implementations raise DataSourceError (or a subclass) on any failure;
    they never return partial or placeholder data.
    """

    @abstractmethod
    def fetch_activities(
        self,
        vault_id: str,
        page: int = 1,
        limit: int = 100,
        action_type: str = "",
        time_range: Optional[str] = None,
    ) -> ActivityPage:
        """
        Fetch one page of vault activity.

        Args:
            vault_id: Vault identifier
            page: 1-based page number
            limit: Page size
            action_type: "" (all), "SWAP", "ADD_LIQUIDITY" or "REMOVE_LIQUIDITY"
            time_range: "24h", "7d", "30d" or None for no window

        Raises:
            DataSourceError: If the fetch fails
        """
        pass

    @abstractmethod
    def fetch_holding(self, vault_id: str, ndlp_balance: float = 0.0) -> HoldingPosition:
        """
        Fetch the connected wallet's position in a vault.

        Raises:
            DataSourceError: If the fetch fails
        """
        pass

    @abstractmethod
    def fetch_breakdown(self, vault_id: str) -> LpBreakdown:
        """
        Fetch the vault's LP breakdown snapshot, already aggregated to
        top slices plus Others.

        Raises:
            DataSourceError: If the fetch fails
        """
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Short source name for logs (e.g. "http", "fixture")."""
        pass


class DataSourceError(Exception):
    """Base exception for vault data source failures."""
    pass


class DataSourceTimeoutError(DataSourceError):
    """Raised when the backend does not answer in time."""
    pass


class DataSourceResponseError(DataSourceError):
    """Raised on a non-2xx status or a malformed response body."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status
