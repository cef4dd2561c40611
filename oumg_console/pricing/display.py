# oumg_console/pricing/display.py

"""Presentation helpers for prices, spreads and timestamps."""

from datetime import datetime
from typing import Any

from oumg_console.config.settings import Settings
from oumg_console.models.price_snapshot import PriceSnapshot
from oumg_console.pricing.normalizer import parse_number, round_half_up

PLACEHOLDER = "—"


def fmt_rm(value: Any) -> str:
    """Format a MYR amount as ``RM 1,234.50`` or the placeholder."""
    number = parse_number(value)
    if number is None:
        return PLACEHOLDER
    return f"RM {round_half_up(number, 2):,.2f}"


def fmt_bps(value: Any) -> str:
    """Format basis points as ``116 bps`` or the placeholder."""
    number = parse_number(value)
    if number is None:
        return PLACEHOLDER
    if number.is_integer():
        return f"{int(number)} bps"
    return f"{number:g} bps"


def fmt_datetime(value: Any) -> str:
    """Format an ISO-8601 timestamp as ``YYYY-MM-DD HH:MM``.

    Unparseable strings are shown as-is.
    """
    if value is None:
        return PLACEHOLDER
    text = str(value).strip()
    if not text:
        return PLACEHOLDER
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return text
    return parsed.strftime("%Y-%m-%d %H:%M")


def resolve_effective_user_buy(
    snapshot: PriceSnapshot | None,
    fallback: float | None = None,
) -> float:
    """Price charged to users: user buy, else buy, else base, else fallback."""
    default = (
        Settings.FALLBACK_PRICE_MYR_PER_G if fallback is None else fallback
    )
    if snapshot is None:
        return default
    for candidate in (snapshot.user_buy, snapshot.buy, snapshot.base):
        if candidate is not None:
            return candidate
    return default


def mint_cost(
    grams: Any,
    snapshot: PriceSnapshot | None,
    fallback: float | None = None,
) -> float | None:
    """MYR cost of minting ``grams`` at the effective user buy price."""
    amount = parse_number(grams)
    if amount is None or amount <= 0:
        return None
    unit_price = resolve_effective_user_buy(snapshot, fallback)
    return round_half_up(amount * unit_price, 2)
