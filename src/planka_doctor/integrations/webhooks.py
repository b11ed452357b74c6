"""Best-effort webhook fan-out."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from planka_doctor.infrastructure.logging import BoundLogger, get_logger, log_event

DEFAULT_WEBHOOK_TIMEOUT_SECONDS = 5.0


class WebhookRegistry:
    """Set of webhook URLs that receive ``{"event", "payload"}`` POSTs.

    Delivery is fire-and-forget: a failing endpoint is logged and reported as
    ``False`` but never prevents delivery to the others. There is no retry.
    """

    def __init__(
        self,
        *,
        client: httpx.AsyncClient | None = None,
        logger: BoundLogger | None = None,
        timeout: float = DEFAULT_WEBHOOK_TIMEOUT_SECONDS,
    ) -> None:
        self._urls: dict[str, None] = {}
        self._client = client
        self._logger = logger or get_logger("planka_doctor.webhooks")
        self._timeout = timeout

    def register(self, url: str) -> None:
        self._urls[url] = None

    def unregister(self, url: str) -> None:
        self._urls.pop(url, None)

    @property
    def registered(self) -> tuple[str, ...]:
        return tuple(self._urls)

    def __len__(self) -> int:
        return len(self._urls)

    def __contains__(self, url: object) -> bool:
        return url in self._urls

    async def _deliver(self, client: httpx.AsyncClient, url: str, body: dict[str, Any]) -> bool:
        try:
            response = await client.post(url, json=body, timeout=self._timeout)
        except httpx.HTTPError as exc:
            log_event(
                self._logger,
                "webhook.delivery.failed",
                level=logging.ERROR,
                url=url,
                webhook_event=body["event"],
                error=str(exc) or type(exc).__name__,
            )
            return False
        if response.is_error:
            log_event(
                self._logger,
                "webhook.delivery.rejected",
                level=logging.ERROR,
                url=url,
                webhook_event=body["event"],
                status=response.status_code,
            )
            return False
        log_event(self._logger, "webhook.delivery.sent", level=logging.DEBUG, url=url)
        return True

    async def emit(self, event: str, payload: Any) -> dict[str, bool]:
        """POST ``event`` to every registered URL; returns delivery per URL."""

        if not self._urls:
            return {}
        body = {"event": event, "payload": payload}
        targets = list(self._urls)
        results: dict[str, bool] = {}
        if self._client is None:
            async with httpx.AsyncClient() as client:
                for url in targets:
                    results[url] = await self._deliver(client, url, body)
        else:
            for url in targets:
                results[url] = await self._deliver(self._client, url, body)
        return results


__all__ = ["WebhookRegistry"]
