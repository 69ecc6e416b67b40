"""
Ports - Abstract interfaces for external systems.

Ports define the contracts that adapters must implement.
This allows swapping implementations (e.g., fixture data for the HTTP API in tests).
"""

from .data_source import (
    ActivityPage,
    ActivityQuery,
    VaultDataSource,
    DataSourceError,
    DataSourceTimeoutError,
    DataSourceResponseError,
)

__all__ = [
    "ActivityPage",
    "ActivityQuery",
    "VaultDataSource",
    "DataSourceError",
    "DataSourceTimeoutError",
    "DataSourceResponseError",
]
