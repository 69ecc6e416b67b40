"""
WalletSession - per-connection auth context.

Created when a wallet connects and passed explicitly to the HTTP adapter.
Signing stays with the external wallet SDK; this only carries the
resulting address and access tokens.
"""

import re
import threading
from typing import Optional

_HEX_ADDRESS = re.compile(r"^(0x)?[0-9a-fA-F]{1,64}$")


def normalize_address(address: Optional[str]) -> str:
    """
    Canonical Sui address form: 0x + 64 lowercase hex digits.

    Non-hex input is returned stripped and otherwise untouched.
    """
    text = (address or "").strip()
    if not text or not _HEX_ADDRESS.match(text):
        return text
    digits = text[2:] if text.lower().startswith("0x") else text
    return "0x" + digits.lower().rjust(64, "0")


class WalletSession:
    """Auth context for one connected wallet."""

    def __init__(self):
        self._lock = threading.Lock()
        self._address: Optional[str] = None
        self._access_token: Optional[str] = None
        self._refresh_token: Optional[str] = None

    def connect(
        self,
        address: str,
        access_token: str,
        refresh_token: Optional[str] = None,
    ) -> "WalletSession":
        if not address:
            raise ValueError("wallet address is required")
        with self._lock:
            self._address = normalize_address(address)
            self._access_token = access_token or None
            self._refresh_token = refresh_token or None
        return self

    def disconnect(self) -> None:
        with self._lock:
            self._address = None
            self._access_token = None
            self._refresh_token = None

    @property
    def address(self) -> Optional[str]:
        return self._address

    @property
    def refresh_token(self) -> Optional[str]:
        return self._refresh_token

    @property
    def is_authenticated(self) -> bool:
        return bool(self._address and self._access_token)

    def auth_headers(self) -> dict[str, str]:
        with self._lock:
            if not self._access_token:
                return {}
            return {"Authorization": f"Bearer {self._access_token}"}
