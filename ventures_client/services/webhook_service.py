"""Webhook Service: fire-and-report notifications through the internal webhook relay.

Invariants:
    - trigger() never raises: validation, transport and relay failures become failure results
    - email is required for every webhook type
    - Relay calls never carry the session bearer token

Design Decisions:
    - A separate httpx.AsyncClient against webhook_base_url: the relay is a
      different origin from the API and takes no credentials
"""

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from ventures_client.core.api_result import error_result, success_result
from ventures_client.core.domain_types import WebhookType
from ventures_client.schemas.webhook import WebhookPayload

logger = logging.getLogger(__name__)

WEBHOOK_ENDPOINTS: dict[WebhookType, str] = {
    t: f"/api/webhooks/{t.value}" for t in WebhookType
}


class WebhookService:
    def __init__(
        self,
        base_url: str = "",
        timeout_seconds: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(
            base_url=base_url, timeout=timeout_seconds, transport=transport,
        )

    async def close(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def trigger(self, webhook_type: WebhookType | str, data: dict[str, Any] | None) -> dict:
        try:
            kind = WebhookType(webhook_type)
        except ValueError:
            logger.error(f"Unknown webhook type: {webhook_type}")
            return error_result(f"Unknown webhook type: {webhook_type}")

        try:
            payload = WebhookPayload.model_validate(data or {})
        except ValidationError:
            logger.error(f"Email is required for webhook: {kind.value}")
            return error_result("Email is required")

        endpoint = WEBHOOK_ENDPOINTS[kind]
        try:
            response = await self._http.post(
                endpoint, json=payload.model_dump(exclude_none=True),
            )
        except httpx.HTTPError as e:
            logger.error(f"Webhook {kind.value} error: {e}", extra={"endpoint": endpoint})
            return error_result(str(e) or "Network error")

        try:
            result = response.json()
        except ValueError:
            result = {}
        if not isinstance(result, dict):
            result = {}

        if not response.is_success or not result.get("success"):
            error = result.get("error") or "Webhook failed"
            logger.error(
                f"Webhook {kind.value} failed: {error}",
                extra={"endpoint": endpoint, "status_code": response.status_code},
            )
            return error_result(error)

        logger.info(f"Webhook {kind.value} triggered", extra={"endpoint": endpoint})
        return success_result()

    async def account_created(self, email: str) -> dict:
        return await self.trigger(WebhookType.ACCOUNT_CREATED, {"email": email})

    async def investment_draft(self, user_data: dict) -> dict:
        return await self.trigger(WebhookType.INVESTMENT_DRAFT, user_data)

    async def investment_pending(self, user_data: dict) -> dict:
        return await self.trigger(WebhookType.INVESTMENT_PENDING, user_data)

    async def investment_complete(self, user_data: dict) -> dict:
        return await self.trigger(WebhookType.INVESTMENT_COMPLETE, user_data)
