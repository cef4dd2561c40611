# oumg_console/models/price_snapshot.py

"""Canonical gold price snapshot (MYR per gram)."""

from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class PriceSnapshot:
    """One point-in-time pricing record.

    Every field is optional.  ``None`` means the backend did not supply
    the value and it could not be derived; it is never replaced by zero.
    """

    base: float | None = None
    buy: float | None = None
    sell: float | None = None
    user_buy: float | None = None
    user_sell: float | None = None
    spread_amount: float | None = None
    spread_basis_points: int | None = None
    source: str | None = None
    updated_at: str | None = None
    note: str | None = None

    def to_dict(self) -> dict[str, object]:
        """Return every canonical field as a key (values may be ``None``)."""
        return asdict(self)

    def to_raw(self) -> dict[str, object]:
        """Re-express the snapshot using the backend's canonical key names."""
        return {
            "price_myr_per_g": self.base,
            "buy_myr_per_g": self.buy,
            "sell_myr_per_g": self.sell,
            "user_buy_myr_per_g": self.user_buy,
            "user_sell_myr_per_g": self.user_sell,
            "spread_myr_per_g": self.spread_amount,
            "spread_bps": self.spread_basis_points,
            "source": self.source,
            "updated_at": self.updated_at,
            "note": self.note,
        }

    @property
    def is_empty(self) -> bool:
        """True when no price field is populated."""
        return all(
            value is None
            for value in (
                self.base,
                self.buy,
                self.sell,
                self.user_buy,
                self.user_sell,
            )
        )
