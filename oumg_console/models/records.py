# oumg_console/models/records.py

"""Backend records for users, the gold ledger and redemptions."""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from oumg_console.pricing.normalizer import parse_number


class RedemptionStatus(str, Enum):
    """Lifecycle states of a redemption request."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    COMPLETED = "COMPLETED"


def _to_float(value: Any, default: float = 0.0) -> float:
    """Lenient float conversion for backend numeric columns."""
    number = parse_number(value)
    return default if number is None else number


@dataclass
class UserBalances:
    """A user's RM credit and OUMG token balance."""

    wallet: str
    rm_credit: float = 0.0
    rm_spent: float = 0.0
    oumg_grams: float = 0.0
    updated_at: str = ""

    @classmethod
    def from_json(cls, row: dict[str, Any]) -> "UserBalances":
        """Build from a backend row, tolerating missing columns."""
        return cls(
            wallet=str(row.get("wallet", "")).lower(),
            rm_credit=_to_float(row.get("rm_credit")),
            rm_spent=_to_float(row.get("rm_spent")),
            oumg_grams=_to_float(row.get("oumg_grams")),
            updated_at=str(row.get("updated_at") or ""),
        )


@dataclass
class LedgerItem:
    """A gold intake entry (physical gold received into custody)."""

    id: str
    date: str
    source: str
    batch: str
    purity: str
    grams: float
    created_at: str = ""
    updated_at: str = ""

    @classmethod
    def from_json(cls, row: dict[str, Any]) -> "LedgerItem":
        """Build from a backend row, tolerating missing columns."""
        return cls(
            id=str(row.get("id", "")),
            date=str(row.get("date") or ""),
            source=str(row.get("source") or ""),
            batch=str(row.get("batch") or ""),
            purity=str(row.get("purity") or ""),
            grams=_to_float(row.get("grams")),
            created_at=str(row.get("created_at") or ""),
            updated_at=str(row.get("updated_at") or ""),
        )


@dataclass
class Redemption:
    """A user request to redeem OUMG grams for cash or physical gold."""

    id: str
    wallet: str
    grams: float
    type: str
    status: str
    fee_myr: float | None = None
    amount_myr: float | None = None
    created_at: str = ""
    updated_at: str = ""

    @classmethod
    def from_json(cls, row: dict[str, Any]) -> "Redemption":
        """Build from a backend row, tolerating missing columns."""
        return cls(
            id=str(row.get("id", "")),
            wallet=str(row.get("wallet", "")).lower(),
            grams=_to_float(row.get("grams")),
            type=str(row.get("type") or ""),
            status=str(row.get("status") or RedemptionStatus.PENDING.value),
            fee_myr=parse_number(row.get("fee_myr")),
            amount_myr=parse_number(row.get("amount_myr")),
            created_at=str(row.get("created_at") or ""),
            updated_at=str(row.get("updated_at") or ""),
        )
