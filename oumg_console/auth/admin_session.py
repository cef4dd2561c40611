# oumg_console/auth/admin_session.py

"""Explicit admin session carried into backend calls."""

import re
from dataclasses import dataclass
from typing import Any

from oumg_console.config.settings import Settings

ADMIN_HEADER = "x-admin-wallet"

_ADDRESS_RE = re.compile(r"^0x[a-f0-9]{40}$")


def normalize_address(addr: Any) -> str:
    """Lower-case an EVM address; return ``""`` if it is not 0x + 40 hex."""
    if addr is None:
        return ""
    candidate = str(addr).strip().lower()
    return candidate if _ADDRESS_RE.match(candidate) else ""


@dataclass(frozen=True)
class AdminSession:
    """Operator identity for admin-only backend routes.

    The backend authorises admin calls by the ``x-admin-wallet`` header
    alone; this value only decides whether that header is sent.
    """

    wallet: str = ""
    is_admin: bool = False

    @classmethod
    def anonymous(cls) -> "AdminSession":
        """A session that sends no admin header."""
        return cls()

    @classmethod
    def from_wallet(cls, wallet: Any) -> "AdminSession":
        """Build a session from a wallet address (invalid → anonymous)."""
        normalized = normalize_address(wallet)
        if not normalized:
            return cls.anonymous()
        return cls(wallet=normalized, is_admin=True)

    @classmethod
    def from_env(cls) -> "AdminSession":
        """Build a session from ``OUMG_ADMIN_WALLET``."""
        return cls.from_wallet(Settings.ADMIN_WALLET)

    def headers(self) -> dict[str, str]:
        """Extra request headers for admin calls."""
        if self.is_admin and self.wallet:
            return {ADMIN_HEADER: self.wallet}
        return {}
