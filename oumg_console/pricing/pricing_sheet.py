# oumg_console/pricing/pricing_sheet.py

"""Derive a full price set from an operator's new pricing sheet.

Two input modes are supported:

* ``direct``: the operator types buy and sell; base is their midpoint.
  Posted to the backend as the ``myrPerG_buy`` / ``myrPerG_sell`` pair.
* ``base-spread``: the operator types a base price plus a spread in MYR
  or in basis points.  Posted as the single ``myrPerG`` base.
"""

from dataclasses import dataclass
from typing import Any

from oumg_console.pricing.normalizer import (
    BPS_PER_UNIT,
    parse_number,
    round_half_up,
)

MODE_DIRECT = "direct"
MODE_BASE_SPREAD = "base-spread"


def _round6(value: float) -> float:
    return round_half_up(value, 6)


def _bps_of(spread: float, base: float) -> int:
    if base <= 0:
        return 0
    return int(round_half_up(spread / base * BPS_PER_UNIT, 0))


@dataclass(frozen=True)
class PricingSheetPreview:
    """The complete set of prices a pricing sheet would publish."""

    mode: str
    base: float
    buy: float
    sell: float
    user_buy: float
    user_sell: float
    spread_myr: float
    spread_bps: int

    def to_payload(self, note: str | None = None) -> dict[str, Any]:
        """Build the ``manual-update`` request body for this sheet."""
        payload: dict[str, Any]
        if self.mode == MODE_DIRECT:
            payload = {
                "myrPerG_buy": self.buy,
                "myrPerG_sell": self.sell,
            }
        else:
            payload = {"myrPerG": self.base}
        if note and note.strip():
            payload["note"] = note.strip()
        return payload


def derive_from_direct(buy: Any, sell: Any) -> PricingSheetPreview | None:
    """Derive base and spread from a direct buy/sell pair.

    Returns ``None`` unless both prices parse and are positive.
    """
    buy_value = parse_number(buy)
    sell_value = parse_number(sell)
    if (
        buy_value is None
        or sell_value is None
        or buy_value <= 0
        or sell_value <= 0
    ):
        return None

    base = _round6((buy_value + sell_value) / 2)
    spread = _round6(abs(buy_value - sell_value))
    return PricingSheetPreview(
        mode=MODE_DIRECT,
        base=base,
        buy=buy_value,
        sell=sell_value,
        user_buy=buy_value,
        user_sell=sell_value,
        spread_myr=spread,
        spread_bps=_bps_of(spread, base),
    )


def derive_from_base_spread(
    base: Any,
    spread_myr: Any = None,
    spread_bps: Any = None,
) -> PricingSheetPreview | None:
    """Derive buy and sell from a base price and a spread.

    A non-negative MYR spread takes precedence over basis points; with
    neither, the spread is zero.  Returns ``None`` unless base is positive.
    """
    base_value = parse_number(base)
    if base_value is None or base_value <= 0:
        return None

    myr = parse_number(spread_myr)
    bps = parse_number(spread_bps)
    if myr is not None and myr >= 0:
        spread = myr
    elif bps is not None and bps >= 0:
        spread = _round6(base_value * bps / BPS_PER_UNIT)
    else:
        spread = 0.0

    half = spread / 2
    buy = _round6(base_value + half)
    sell = _round6(base_value - half)
    return PricingSheetPreview(
        mode=MODE_BASE_SPREAD,
        base=base_value,
        buy=buy,
        sell=sell,
        user_buy=buy,
        user_sell=sell,
        spread_myr=_round6(spread),
        spread_bps=_bps_of(spread, base_value),
    )
