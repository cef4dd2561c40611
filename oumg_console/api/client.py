# oumg_console/api/client.py

"""JSON REST client for the OUMG custody backend."""

import json
import logging
import time
from typing import Any

from curl_cffi import requests as curl_requests

from oumg_console.auth.admin_session import AdminSession, normalize_address
from oumg_console.config.settings import Settings
from oumg_console.models.price_snapshot import PriceSnapshot
from oumg_console.models.records import (
    LedgerItem,
    Redemption,
    RedemptionStatus,
    UserBalances,
)
from oumg_console.pricing.normalizer import (
    normalize_many,
    normalize_price_snapshot,
    parse_number,
)


class ApiError(Exception):
    """Backend or transport failure.

    ``status`` is the HTTP status code, or ``None`` when no response was
    received at all.
    """

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status

    def __str__(self) -> str:
        if self.status is None:
            return self.message
        return f"{self.message} (HTTP {self.status})"


def _query_params(params: dict[str, Any] | None) -> dict[str, str]:
    """Keep only truthy params, stringified."""
    if not params:
        return {}
    return {key: str(value) for key, value in params.items() if value}


def _require_wallet(wallet: Any) -> str:
    normalized = normalize_address(wallet)
    if not normalized:
        raise ValueError(f"Invalid wallet address: {wallet!r}")
    return normalized


def _require_positive(value: Any, name: str) -> float:
    number = parse_number(value)
    if number is None or number <= 0:
        raise ValueError(f"{name} must be a positive number, got {value!r}")
    return number


def _rows(data: Any) -> list[dict[str, Any]]:
    """Extract the row list from ``{"data": [...]}`` or a bare list."""
    rows = data.get("data") if isinstance(data, dict) else data
    if not isinstance(rows, list):
        return []
    return [row for row in rows if isinstance(row, dict)]


class OumgApiClient:
    """Thin wrapper around the backend's pricing, admin and ledger routes.

    GET requests are retried on transport errors, HTTP 429 and 5xx.
    Mutating requests (POST / PATCH) are sent once so that a mint or burn
    is never submitted twice.
    """

    def __init__(
        self,
        base_url: str | None = None,
        session: AdminSession | None = None,
    ) -> None:
        self.logger = logging.getLogger("oumg_console.api")
        self.settings = Settings()
        self.base_url = (base_url or self.settings.API_BASE).rstrip("/")
        self.admin_session = (
            session if session is not None else AdminSession.from_env()
        )
        self.paths = self.settings.API_PATHS
        self.session = curl_requests.Session()
        self._request_timeout: int = self.settings.REQUEST_TIMEOUT

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self.session.close()

    # ── Low level ────────────────────────────────────────

    def build_url(self, path: str) -> str:
        """Join a route to the base URL; absolute URLs pass through."""
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.base_url}{path}"

    def _build_headers(
        self,
        admin: bool,
        session: AdminSession | None = None,
    ) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if admin:
            headers.update((session or self.admin_session).headers())
        return headers

    @staticmethod
    def _parse_body(resp: curl_requests.Response) -> Any:
        """Decode JSON; empty bodies become ``{}``, plain text a message."""
        text = resp.text
        if not text or not text.strip():
            return {}
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            return {"message": text}

    @staticmethod
    def _error_message(data: Any, status: int) -> str:
        if isinstance(data, dict):
            message = data.get("error") or data.get("message")
            if message:
                return str(message)
        return f"HTTP {status}"

    def fetch_json(
        self,
        path: str,
        method: str = "GET",
        body: dict[str, Any] | None = None,
        admin: bool = False,
        params: dict[str, Any] | None = None,
        session: AdminSession | None = None,
    ) -> Any:
        """Send one JSON request and return the decoded body.

        Raises:
            ApiError: on a non-2xx response or when every attempt failed
                at the transport level.
        """
        url = self.build_url(path)
        headers = self._build_headers(admin, session)
        query = _query_params(params)
        attempts = self.settings.MAX_RETRIES if method == "GET" else 1
        last_error: ApiError | None = None

        for attempt in range(attempts):
            try:
                resp = self.session.request(
                    method,
                    url,
                    headers=headers,
                    params=query or None,
                    json=body if body else None,
                    timeout=self._request_timeout,
                )
            except Exception as exc:
                self.logger.warning(
                    "%s %s failed on attempt %d: %s",
                    method,
                    url,
                    attempt + 1,
                    exc,
                    exc_info=True,
                )
                last_error = ApiError(f"Request failed: {exc}")
                time.sleep(self.settings.REQUEST_DELAY * (attempt + 1))
                continue

            data = self._parse_body(resp)
            status = resp.status_code
            if 200 <= status < 300:
                self.logger.debug("%s %s -> HTTP %d", method, url, status)
                return data

            error = ApiError(self._error_message(data, status), status)
            if status == 429 or status >= 500:
                self.logger.warning(
                    "%s %s returned HTTP %d on attempt %d",
                    method,
                    url,
                    status,
                    attempt + 1,
                )
                last_error = error
                time.sleep(self.settings.REQUEST_DELAY * (attempt + 1))
                continue
            raise error

        if last_error is None:
            last_error = ApiError(f"No response from {url}")
        self.logger.error(
            "%s %s gave up after %d attempt(s): %s",
            method,
            url,
            attempts,
            last_error,
        )
        raise last_error

    # ── Pricing ──────────────────────────────────────────

    def get_raw_price_snapshot(self) -> dict[str, Any]:
        """Current price exactly as the backend sent it."""
        response = self.fetch_json(self.paths["price_current"])
        if not isinstance(response, dict):
            return {}
        data = response.get("data", response)
        return data if isinstance(data, dict) else {}

    def get_price_snapshot(self) -> PriceSnapshot:
        """Current price, normalized."""
        return normalize_price_snapshot(self.get_raw_price_snapshot())

    def list_price_snapshots(
        self,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[PriceSnapshot]:
        """One page of price history, newest first, normalized."""
        response = self.fetch_json(
            self.paths["price_snapshots"],
            admin=True,
            params={
                "limit": limit or self.settings.PAGE_SIZE,
                "offset": offset,
            },
        )
        rows = response.get("data") if isinstance(response, dict) else response
        return normalize_many(rows)

    def manual_price_update(self, payload: dict[str, Any]) -> Any:
        """Publish a new price (``myrPerG`` or the buy/sell pair)."""
        if not payload:
            raise ValueError("Price update payload is empty")
        self.logger.info("Publishing manual price update: %s", payload)
        return self.fetch_json(
            self.paths["price_manual_update"],
            method="POST",
            body=payload,
            admin=True,
        )

    # ── Chain (pause / resume) ───────────────────────────

    def get_paused_status(self) -> bool:
        """Whether the token contract is currently paused."""
        response = self.fetch_json(self.paths["chain_paused"])
        return bool(isinstance(response, dict) and response.get("paused"))

    def pause_contract(self) -> Any:
        return self.fetch_json(
            self.paths["chain_pause"], method="POST", admin=True,
        )

    def unpause_contract(self) -> Any:
        return self.fetch_json(
            self.paths["chain_unpause"], method="POST", admin=True,
        )

    # ── Admin (users / balances / audits) ────────────────

    def list_users(
        self,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[UserBalances]:
        response = self.fetch_json(
            self.paths["admin_users"],
            admin=True,
            params={"limit": limit, "offset": offset},
        )
        return [UserBalances.from_json(row) for row in _rows(response)]

    def get_user_balances(self, wallet: str) -> UserBalances | None:
        """Balances for one wallet, or ``None`` if the backend has none."""
        normalized = _require_wallet(wallet)
        response = self.fetch_json(
            self.paths["admin_balances"],
            admin=True,
            params={"wallet": normalized},
        )
        data = response.get("data") if isinstance(response, dict) else None
        if not isinstance(data, dict):
            return None
        return UserBalances.from_json(data)

    def list_audits(
        self,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        response = self.fetch_json(
            self.paths["admin_audits"],
            admin=True,
            params={"limit": limit, "offset": offset},
        )
        return _rows(response)

    def fund_preset(self, wallet: str, amount_myr: float) -> Any:
        """Credit a user's RM balance."""
        body = {
            "wallet": _require_wallet(wallet),
            "amountMyr": _require_positive(amount_myr, "amount_myr"),
        }
        self.logger.info(
            "Funding %s with RM %.2f", body["wallet"], body["amountMyr"],
        )
        return self.fetch_json(
            self.paths["admin_fund_preset"],
            method="POST",
            body=body,
            admin=True,
        )

    def is_admin_address(self, wallet: str) -> bool:
        """Ask the backend whether ``wallet`` is on the admin whitelist."""
        normalized = normalize_address(wallet)
        if not normalized:
            return False
        try:
            self.fetch_json(
                self.paths["admin_users"],
                admin=True,
                params={"limit": 1},
                session=AdminSession.from_wallet(normalized),
            )
        except ApiError as exc:
            if exc.status is None:
                raise
            self.logger.info(
                "Wallet %s rejected as admin: %s", normalized, exc,
            )
            return False
        return True

    # ── Token operations ─────────────────────────────────

    def buy_mint(self, wallet: str, grams: float) -> Any:
        """Mint ``grams`` of OUMG to ``wallet`` against its RM credit."""
        body = {
            "wallet": _require_wallet(wallet),
            "grams": _require_positive(grams, "grams"),
        }
        self.logger.info("Minting %s g to %s", body["grams"], body["wallet"])
        return self.fetch_json(
            self.paths["token_buy_mint"],
            method="POST",
            body=body,
            admin=True,
        )

    def sell_burn(self, wallet: str, grams: float) -> Any:
        """Burn ``grams`` of OUMG from ``wallet``."""
        body = {
            "wallet": _require_wallet(wallet),
            "grams": _require_positive(grams, "grams"),
        }
        self.logger.info("Burning %s g from %s", body["grams"], body["wallet"])
        return self.fetch_json(
            self.paths["token_sell_burn"],
            method="POST",
            body=body,
            admin=True,
        )

    def list_token_ops(
        self,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        response = self.fetch_json(
            self.paths["token_ops"],
            admin=True,
            params={"limit": limit, "offset": offset},
        )
        return _rows(response)

    # ── Gold ledger ──────────────────────────────────────

    def list_gold_ledger(self) -> list[LedgerItem]:
        response = self.fetch_json(self.paths["ledger_gold"], admin=True)
        return [LedgerItem.from_json(row) for row in _rows(response)]

    def create_gold_ledger(
        self,
        date: str,
        source: str,
        batch: str,
        purity: str,
        grams: float,
    ) -> LedgerItem:
        """Record a gold intake batch."""
        body = {
            "date": date,
            "source": source,
            "batch": batch,
            "purity": purity,
            "grams": _require_positive(grams, "grams"),
        }
        response = self.fetch_json(
            self.paths["ledger_gold"],
            method="POST",
            body=body,
            admin=True,
        )
        item = (
            response.get("data", response)
            if isinstance(response, dict) else {}
        )
        return LedgerItem.from_json(item if isinstance(item, dict) else {})

    # ── Redemptions ──────────────────────────────────────

    def list_redemptions(
        self,
        status: str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Redemption]:
        params: dict[str, Any] = {"limit": limit, "offset": offset}
        if status:
            params["status"] = RedemptionStatus(status).value
        response = self.fetch_json(
            self.paths["redemption"], admin=True, params=params,
        )
        return [Redemption.from_json(row) for row in _rows(response)]

    def update_redemption(
        self,
        redemption_id: str,
        status: str | None = None,
        note: str | None = None,
        tx_hash: str | None = None,
    ) -> Any:
        """Move a redemption along its workflow."""
        if not str(redemption_id).strip():
            raise ValueError("Redemption id is required")
        body: dict[str, Any] = {}
        if status:
            body["status"] = RedemptionStatus(status).value
        if note:
            body["note"] = note
        if tx_hash:
            body["txHash"] = tx_hash
        return self.fetch_json(
            f"{self.paths['redemption']}/{redemption_id}",
            method="PATCH",
            body=body,
            admin=True,
        )
