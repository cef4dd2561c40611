# oumg_console/pricing/normalizer.py

"""Price snapshot normalization across historical backend key spellings.

The pricing backend has renamed its fields several times, and different
endpoints (current price, snapshot history, cron writers) still emit
different spellings.  :func:`normalize_price_snapshot` maps any of them onto
one :class:`~oumg_console.models.price_snapshot.PriceSnapshot` and fills the
derivable gaps (spread, bps, the missing side of the book, user prices)
without ever overwriting a value the backend supplied.

The function is total: malformed or missing values simply resolve to
``None``.
"""

import logging
import math
from collections.abc import Mapping
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from oumg_console.models.price_snapshot import PriceSnapshot

logger = logging.getLogger("oumg_console.pricing")

BPS_PER_UNIT = 10_000

# Ordered, first present key wins
PRICE_FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "base": (
        "price_myr_per_g",
        "computed_myr_per_g",
        "myrPerG",
        "price",
        "base_myr_per_g",
    ),
    "buy": (
        "buy_myr_per_g",
        "buyMyrPerG",
        "internalBuy",
        "buyPrice",
        "buy",
    ),
    "sell": (
        "sell_myr_per_g",
        "sellMyrPerG",
        "internalSell",
        "sellPrice",
        "sell",
    ),
    "user_buy": (
        "user_buy_myr_per_g",
        "userBuyMyrPerG",
        "user_buy",
    ),
    "user_sell": (
        "user_sell_myr_per_g",
        "userSellMyrPerG",
        "user_sell",
    ),
    "spread_amount": (
        "spread_myr_per_g",
        "spreadMyrPerG",
        "myr_spread",
        "absolute_spread",
    ),
    "spread_basis_points": (
        "spread_bps",
        "markup_bps",
        "spreadBps",
        "markupBps",
    ),
    "updated_at": (
        "updated_at",
        "updatedAt",
        "last_updated",
        "lastUpdated",
        "effective_date",
        "effectiveDate",
        "created_at",
        "createdAt",
        "effectiveAt",
    ),
    "source": ("source", "kind"),
    "note": ("note",),
}

_TRUTHY_STRINGS: frozenset[str] = frozenset({"true", "1", "yes"})


def parse_number(value: Any) -> float | None:
    """Parse ints, floats, Decimals and numeric strings to a finite float.

    Booleans, blank strings, NaN, infinities and anything else return
    ``None``.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        if isinstance(value, (int, float, Decimal)):
            number = float(value)
        elif isinstance(value, str):
            text = value.strip()
            if not text:
                return None
            number = float(text)
        else:
            return None
    except (ValueError, OverflowError):
        return None
    return number if math.isfinite(number) else None


def round_half_up(value: float, places: int = 2) -> float:
    """Round half away from zero on the value's decimal representation.

    ``round_half_up(1.005)`` is ``1.01`` (the built-in :func:`round` gives
    ``1.0`` because of binary representation and banker's rounding).
    """
    quantum = Decimal(1).scaleb(-places)
    try:
        rounded = Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        # Beyond decimal context precision; float rounding is exact enough
        return round(value, places)
    return float(rounded)


def first_present(raw: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    """Return the value of the first key holding a non-null, non-blank value."""
    for key in keys:
        value = raw.get(key)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def _text(value: Any, allow_numbers: bool = False) -> str | None:
    """Trimmed text, or ``None`` for blanks and non-text values.

    Numbers pass only with ``allow_numbers`` (epoch timestamps).
    """
    if isinstance(value, str):
        return value.strip() or None
    if allow_numbers and parse_number(value) is not None:
        return str(value)
    return None


def _is_truthy_flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY_STRINGS
    return False


def _resolve_source(raw: Mapping[str, Any]) -> str | None:
    source = _text(first_present(raw, PRICE_FIELD_ALIASES["source"]))
    if source is not None:
        return source
    if _is_truthy_flag(raw.get("manual")):
        return "manual"
    return None


def _number(raw: Mapping[str, Any], field: str) -> float | None:
    return parse_number(first_present(raw, PRICE_FIELD_ALIASES[field]))


def _money(value: float | None) -> float | None:
    if value is None or not math.isfinite(value):
        return None
    return round_half_up(value, 2)


def _bps(value: float | None) -> int | None:
    if value is None or not math.isfinite(value):
        return None
    return int(round_half_up(value, 0))


def normalize_price_snapshot(raw: Mapping[str, Any] | None) -> PriceSnapshot:
    """Map a loosely-typed backend price record onto a derived snapshot.

    Derivation runs in a fixed order and each step only fills fields that
    are still ``None``:

    1. spread from ``|buy - sell|``;
    2. spread from ``base * bps / 10000`` (``base > 0``);
    3. missing buy/sell from ``base ± spread / 2``;
    4. the missing side reflected around base (``2 * base - other``),
       after which the spread is taken from the completed pair;
    5. bps from ``spread / base * 10000`` (``base > 0``);
    6. user buy/sell default to buy/sell.

    Currency fields are rounded to 2 decimals and bps to an integer as they
    are read and as each one is derived, so every derived value agrees with
    the rounded values it was computed from.
    """
    if not isinstance(raw, Mapping):
        if raw is not None:
            logger.debug(
                "Ignoring non-mapping price payload of type %s",
                type(raw).__name__,
            )
        raw = {}

    base = _money(_number(raw, "base"))
    buy = _money(_number(raw, "buy"))
    sell = _money(_number(raw, "sell"))
    user_buy = _money(_number(raw, "user_buy"))
    user_sell = _money(_number(raw, "user_sell"))
    spread = _money(_number(raw, "spread_amount"))
    bps = _bps(_number(raw, "spread_basis_points"))

    derived: list[str] = []

    # 1. spread from the book
    if spread is None and buy is not None and sell is not None:
        spread = _money(abs(buy - sell))
        derived.append("spread_amount")

    # 2. spread from basis points
    if (
        spread is None
        and base is not None
        and bps is not None
        and base > 0
    ):
        spread = _money(base * bps / BPS_PER_UNIT)
        derived.append("spread_amount")

    # 3. symmetric fill around base
    if (
        (buy is None or sell is None)
        and base is not None
        and spread is not None
    ):
        half = spread / 2
        if buy is None and sell is None:
            buy = _money(base + half)
            # Keeps the filled pair exactly one spread apart
            sell = _money(buy - spread) if buy is not None else None
            derived.extend(("buy", "sell"))
        elif buy is None:
            buy = _money(base + half)
            derived.append("buy")
        else:
            sell = _money(base - half)
            derived.append("sell")

    # 4. reflect the known side around base
    if base is not None:
        if buy is not None and sell is None:
            sell = _money(2 * base - buy)
            derived.append("sell")
        elif sell is not None and buy is None:
            buy = _money(2 * base - sell)
            derived.append("buy")
        if spread is None and buy is not None and sell is not None:
            spread = _money(abs(buy - sell))
            derived.append("spread_amount")

    # 5. basis points from spread
    if (
        bps is None
        and base is not None
        and base > 0
        and spread is not None
    ):
        bps = _bps(spread / base * BPS_PER_UNIT)
        derived.append("spread_basis_points")

    # 6. user-facing prices
    if user_buy is None and buy is not None:
        user_buy = buy
        derived.append("user_buy")
    if user_sell is None and sell is not None:
        user_sell = sell
        derived.append("user_sell")

    if derived:
        logger.debug("Derived price fields: %s", ", ".join(derived))

    return PriceSnapshot(
        base=base,
        buy=buy,
        sell=sell,
        user_buy=user_buy,
        user_sell=user_sell,
        spread_amount=spread,
        spread_basis_points=bps,
        source=_resolve_source(raw),
        updated_at=_text(
            first_present(raw, PRICE_FIELD_ALIASES["updated_at"]),
            allow_numbers=True,
        ),
        note=_text(first_present(raw, PRICE_FIELD_ALIASES["note"])),
    )


def normalize_many(rows: Any) -> list[PriceSnapshot]:
    """Normalize a list of raw records, skipping non-mapping rows."""
    if not isinstance(rows, list):
        return []
    snapshots: list[PriceSnapshot] = []
    skipped = 0
    for row in rows:
        if not isinstance(row, Mapping):
            skipped += 1
            continue
        snapshots.append(normalize_price_snapshot(row))
    if skipped:
        logger.warning("Skipped %d non-object price rows", skipped)
    return snapshots
