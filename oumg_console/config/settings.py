# oumg_console/config/settings.py

"""Central configuration for the OUMG operator console."""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Central configuration for the OUMG operator console."""

    # --- Backend ---
    API_BASE: str = (
        os.getenv("OUMG_API_BASE", "http://localhost:4000").rstrip("/")
        or "http://localhost:4000"
    )
    ADMIN_WALLET: str = os.getenv("OUMG_ADMIN_WALLET", "")

    # --- HTTP ---
    REQUEST_TIMEOUT: int = 15           # Seconds before a request times out
    MAX_RETRIES: int = 3                # Retry count on transient failures
    REQUEST_DELAY: float = 1.0          # Base back-off between retries (secs)
    SLOW_THRESHOLD_MS: float = 3000.0   # Health probe latency considered slow

    # --- Pricing ---
    FALLBACK_PRICE_MYR_PER_G: float = 500.0  # Display fallback, never stored
    PAGE_SIZE: int = 20                 # Snapshot history page size
    CURRENCY: str = "MYR"

    # --- Backend routes ---
    API_PATHS: dict[str, str] = {
        # Pricing
        "price_current": "/api/price/current",
        "price_manual_update": "/api/price/manual-update",
        "price_snapshots": "/api/price/snapshots",
        # Chain pause/resume
        "chain_paused": "/api/chain/paused",
        "chain_pause": "/api/chain/pause",
        "chain_unpause": "/api/chain/unpause",
        # Admin
        "admin_fund_preset": "/api/admin/fund-preset",
        "admin_users": "/api/admin/users",
        "admin_balances": "/api/admin/balances",
        "admin_audits": "/api/admin/audits",
        # Token operations
        "token_buy_mint": "/api/token/buy-mint",
        "token_sell_burn": "/api/token/sell-burn",
        "token_ops": "/api/token/ops",
        # Ledger
        "ledger_gold": "/api/ledger/gold",
        # Redemptions
        "redemption": "/api/redemption",
    }

    # --- Health probes ---
    HEALTH_ENDPOINTS: list[dict[str, str]] = [
        {
            "id": "price",
            "label": "Current price",
            "path": "price_current",
            "admin": "",
        },
        {
            "id": "chain",
            "label": "Chain status",
            "path": "chain_paused",
            "admin": "",
        },
        {
            "id": "admin",
            "label": "Admin users",
            "path": "admin_users",
            "admin": "1",
        },
    ]

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    DATA_DIR: Path = BASE_DIR / "data"
    LOGS_DIR: Path = BASE_DIR / "logs"
    PRICE_DB_PATH: Path = DATA_DIR / "price_history.db"
