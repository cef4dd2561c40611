# oumg_console/services/health_checker.py

"""Backend connectivity health checker."""

import asyncio
import logging
import time
from dataclasses import dataclass

from oumg_console.api.client import ApiError, OumgApiClient
from oumg_console.auth.admin_session import AdminSession
from oumg_console.config.settings import Settings

logger = logging.getLogger("oumg_console.health")


@dataclass
class HealthResult:
    """Result of a single endpoint health check."""

    endpoint_id: str
    status: str  # "ok", "slow", "down"
    latency_ms: float
    message: str


def probe_endpoint(
    endpoint: dict[str, str],
    base_url: str | None = None,
    session: AdminSession | None = None,
) -> HealthResult:
    """Call one backend route with its own client and classify the outcome."""
    endpoint_id = endpoint["id"]
    admin = bool(endpoint.get("admin"))

    try:
        client = OumgApiClient(base_url=base_url, session=session)
    except Exception as exc:
        return HealthResult(
            endpoint_id=endpoint_id,
            status="down",
            latency_ms=0.0,
            message=f"Failed to create client: {exc}",
        )

    path = client.paths.get(endpoint["path"], endpoint["path"])
    start = time.monotonic()
    try:
        client.fetch_json(
            path,
            admin=admin,
            params={"limit": 1} if admin else None,
        )
    except ApiError as exc:
        elapsed_ms = (time.monotonic() - start) * 1000
        return HealthResult(
            endpoint_id=endpoint_id,
            status="down",
            latency_ms=elapsed_ms,
            message=str(exc)[:80],
        )
    finally:
        client.close()
    elapsed_ms = (time.monotonic() - start) * 1000

    if elapsed_ms > Settings.SLOW_THRESHOLD_MS:
        return HealthResult(
            endpoint_id=endpoint_id,
            status="slow",
            latency_ms=elapsed_ms,
            message="High latency",
        )

    return HealthResult(
        endpoint_id=endpoint_id,
        status="ok",
        latency_ms=elapsed_ms,
        message="",
    )


class HealthChecker:
    """Runs concurrent probes against the configured backend routes."""

    def __init__(
        self,
        base_url: str | None = None,
        session: AdminSession | None = None,
    ) -> None:
        self.endpoints = Settings.HEALTH_ENDPOINTS
        self.base_url = base_url
        self.session = session

    async def check_all(self) -> list[HealthResult]:
        """Probe every configured endpoint concurrently."""
        tasks = [
            asyncio.to_thread(
                probe_endpoint, endpoint, self.base_url, self.session,
            )
            for endpoint in self.endpoints
        ]
        results: list[HealthResult] = list(
            await asyncio.gather(*tasks)
        )
        for r in results:
            logger.info(
                "Health check %s: %s (%.0fms) %s",
                r.endpoint_id,
                r.status,
                r.latency_ms,
                r.message,
            )
        return results
