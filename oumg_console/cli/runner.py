# oumg_console/cli/runner.py

"""Headless CLI commands for pricing and backend checks."""

import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.table import Table

from oumg_console.api.client import ApiError, OumgApiClient
from oumg_console.models.price_snapshot import PriceSnapshot
from oumg_console.pricing.display import (
    fmt_bps,
    fmt_datetime,
    fmt_rm,
    mint_cost,
    resolve_effective_user_buy,
)
from oumg_console.pricing.normalizer import (
    normalize_many,
    normalize_price_snapshot,
    parse_number,
)
from oumg_console.pricing.pricing_sheet import (
    PricingSheetPreview,
    derive_from_base_spread,
    derive_from_direct,
)
from oumg_console.storage.price_history_db import PriceHistoryDB

logger = logging.getLogger("oumg_console.cli")

# Stderr console for status messages so stdout stays clean for JSON
_err = Console(stderr=True)


def _emit_json(data: Any) -> None:
    json.dump(data, sys.stdout, ensure_ascii=False, indent=2)
    sys.stdout.write("\n")


def _print_snapshot_table(
    snapshots: list[PriceSnapshot], title: str,
) -> None:
    """Render a Rich table of price snapshots to stdout."""
    table = Table(
        title=title,
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("#", style="dim", width=4)
    table.add_column("Updated")
    table.add_column("Base", justify="right")
    table.add_column("Buy", justify="right", style="green")
    table.add_column("Sell", justify="right", style="red")
    table.add_column("User buy", justify="right", style="green")
    table.add_column("User sell", justify="right", style="red")
    table.add_column("Spread", justify="right")
    table.add_column("Bps", justify="right")
    table.add_column("Source", style="magenta")

    for idx, s in enumerate(snapshots, 1):
        table.add_row(
            str(idx),
            fmt_datetime(s.updated_at),
            fmt_rm(s.base),
            fmt_rm(s.buy),
            fmt_rm(s.sell),
            fmt_rm(s.user_buy),
            fmt_rm(s.user_sell),
            fmt_rm(s.spread_amount),
            fmt_bps(s.spread_basis_points),
            (s.source or "—").upper(),
        )

    Console().print(table)


def _output_snapshots(
    snapshots: list[PriceSnapshot],
    output_format: str,
    title: str,
) -> None:
    if output_format == "table":
        _print_snapshot_table(snapshots, title)
    else:
        _emit_json([s.to_dict() for s in snapshots])


def _report_api_error(action: str, exc: ApiError) -> int:
    logger.error("%s failed: %s", action, exc, exc_info=True)
    _err.print(f"[red]{action} failed: {exc}[/red]")
    return 1


def run_price(output_format: str, record: bool = False) -> int:
    """Show the current normalized price; optionally archive it locally."""
    client = OumgApiClient()
    try:
        snapshot = client.get_price_snapshot()
    except ApiError as exc:
        return _report_api_error("Fetching current price", exc)
    finally:
        client.close()

    if snapshot.is_empty:
        _err.print(
            "[yellow]Backend returned no usable price; "
            f"effective user buy falls back to "
            f"{fmt_rm(resolve_effective_user_buy(snapshot))}[/yellow]"
        )

    if record and not snapshot.is_empty:
        db = PriceHistoryDB()
        try:
            db.record_snapshots([snapshot])
        finally:
            db.close()
        _err.print("[dim]Snapshot recorded locally[/dim]")

    if output_format == "table":
        _print_snapshot_table([snapshot], "Current Gold Price (MYR/g)")
    else:
        _emit_json(snapshot.to_dict())
    return 0


def run_history(
    limit: int | None,
    offset: int,
    output_format: str,
) -> int:
    """List one page of backend price history."""
    client = OumgApiClient()
    try:
        snapshots = client.list_price_snapshots(limit=limit, offset=offset)
    except ApiError as exc:
        return _report_api_error("Fetching price history", exc)
    finally:
        client.close()

    if not snapshots:
        _err.print("[yellow]No price history returned.[/yellow]")
    _output_snapshots(snapshots, output_format, "Price History")
    return 0


def run_normalize(filepath: str, output_format: str) -> int:
    """Normalize raw price records from a JSON file without the backend."""
    path = Path(filepath)
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError) as exc:
        logger.error("Cannot read %s: %s", path, exc, exc_info=True)
        _err.print(f"[red]Cannot read {path}: {exc}[/red]")
        return 1

    if isinstance(data, dict) and "data" in data:
        data = data["data"]

    if isinstance(data, list):
        snapshots = normalize_many(data)
    else:
        snapshots = [normalize_price_snapshot(data)]

    _output_snapshots(snapshots, output_format, f"Normalized: {path.name}")
    return 0


def _print_preview(preview: PricingSheetPreview) -> None:
    table = Table(
        title=f"Pricing Sheet Preview ({preview.mode})",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("Field", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("Base", fmt_rm(preview.base))
    table.add_row("Buy", fmt_rm(preview.buy))
    table.add_row("Sell", fmt_rm(preview.sell))
    table.add_row("User buy", fmt_rm(preview.user_buy))
    table.add_row("User sell", fmt_rm(preview.user_sell))
    table.add_row("Spread", fmt_rm(preview.spread_myr))
    table.add_row("Spread (bps)", fmt_bps(preview.spread_bps))
    Console().print(table)


def run_sheet(
    buy: str | None,
    sell: str | None,
    base: str | None,
    spread_myr: str | None,
    spread_bps: str | None,
    note: str | None,
    apply: bool,
    output_format: str,
) -> int:
    """Preview a new pricing sheet and optionally publish it."""
    if base is not None:
        preview = derive_from_base_spread(base, spread_myr, spread_bps)
        if preview is None:
            _err.print("[red]Base price must be a positive number.[/red]")
            return 1
    else:
        preview = derive_from_direct(buy, sell)
        if preview is None:
            _err.print(
                "[red]Buy and sell must both be positive numbers.[/red]"
            )
            return 1

    payload = preview.to_payload(note)
    if output_format == "table":
        _print_preview(preview)
    else:
        _emit_json({"preview": asdict(preview), "payload": payload})

    if not apply:
        _err.print("[dim]Preview only; pass --apply to publish.[/dim]")
        return 0

    client = OumgApiClient()
    try:
        if not client.admin_session.is_admin:
            _err.print(
                "[red]Set OUMG_ADMIN_WALLET to publish prices.[/red]"
            )
            return 1
        client.manual_price_update(payload)
    except ApiError as exc:
        return _report_api_error("Publishing price", exc)
    finally:
        client.close()

    _err.print("[green]✓ Price updated successfully.[/green]")
    return 0


def run_quote(grams: str, output_format: str) -> int:
    """Quote the MYR cost of minting ``grams`` at the current price."""
    client = OumgApiClient()
    try:
        snapshot = client.get_price_snapshot()
    except ApiError as exc:
        logger.warning("Price unavailable, quoting at fallback: %s", exc)
        _err.print(
            f"[yellow]Price unavailable ({exc}); using fallback.[/yellow]"
        )
        snapshot = None
    finally:
        client.close()

    cost = mint_cost(grams, snapshot)
    if cost is None:
        _err.print("[red]Grams must be a positive number.[/red]")
        return 1

    unit_price = resolve_effective_user_buy(snapshot)
    if output_format == "table":
        Console().print(
            f"{grams} g × {fmt_rm(unit_price)} = [bold green]"
            f"{fmt_rm(cost)}[/bold green]"
        )
    else:
        _emit_json({
            "grams": parse_number(grams),
            "unit_price_myr_per_g": unit_price,
            "cost_myr": cost,
        })
    return 0


def run_trend(output_format: str, limit: int | None = None) -> int:
    """Summarise locally archived snapshots."""
    db = PriceHistoryDB()
    try:
        summary = db.get_trend_summary()
        recent = db.get_history(limit=limit)
    finally:
        db.close()

    if summary is None:
        _err.print("[yellow]No local price history yet.[/yellow]")
        return 1

    if output_format == "table":
        _err.print(
            f"[bold]User buy[/bold] min {fmt_rm(summary['min'])}  "
            f"max {fmt_rm(summary['max'])}  avg {fmt_rm(summary['avg'])}  "
            f"latest {fmt_rm(summary['latest'])}  "
            f"[dim]({summary['count']} snapshots)[/dim]"
        )
        _print_snapshot_table(recent, "Local Price History")
    else:
        _emit_json({
            "summary": summary,
            "recent": [s.to_dict() for s in recent],
        })
    return 0


def run_import_history(filepaths: list[str]) -> int:
    """Import raw price JSON files into the local archive."""
    from rich.progress import Progress

    _err.print("[bold]Importing price files into local history...[/bold]")

    db = PriceHistoryDB()
    total = 0
    try:
        with Progress(console=_err) as progress:
            task = progress.add_task("Importing...", total=len(filepaths))
            for filepath in filepaths:
                total += db.import_single_file(Path(filepath))
                progress.advance(task)
    finally:
        db.close()

    _err.print(
        f"[green]✓ Imported {total:,} snapshots"
        f" from {len(filepaths)} files[/green]"
    )
    return 0 if total else 1


async def run_health_check() -> int:
    """Run a connectivity check on the backend routes."""
    from oumg_console.services.health_checker import HealthChecker

    _err.print("[bold]Running backend health check...[/bold]")
    checker = HealthChecker()
    results = await checker.check_all()

    table = Table(
        title="Backend Health Check",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("Endpoint", style="bold")
    table.add_column("Status", justify="center")
    table.add_column("Latency", justify="right")
    table.add_column("Notes", style="dim")

    any_down = False
    for r in results:
        if r.status == "ok":
            status = "[green]✅ OK[/green]"
        elif r.status == "slow":
            status = "[yellow]⚠️  SLOW[/yellow]"
        else:
            status = "[red]❌ DOWN[/red]"
            any_down = True

        latency = (
            f"{r.latency_ms:.0f}ms"
            if r.latency_ms > 0
            else "—"
        )
        table.add_row(
            r.endpoint_id, status, latency, r.message,
        )

    Console().print(table)
    return 1 if any_down else 0
