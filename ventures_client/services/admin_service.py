"""Admin Service: user, investment and activity administration plus the time machine.

Invariants:
    - List endpoints request page size admin_page_size (backend max 100)
    - Without an explicit page, every remaining page is fetched concurrently
      and concatenated in page order; the result reports page 1
    - With an explicit page, exactly that page is returned
    - Display user ids ("USR-1004") are reduced to digits before use in paths
    - An id with no digits is rejected before any request
    - delete_user never raises
"""

import asyncio
import logging
from typing import Any

from ventures_client.core.api_result import as_result, error_result, success_result
from ventures_client.core.domain_types import HttpMethod, InvestmentId, numeric_id
from ventures_client.core.errors import VenturesClientError
from ventures_client.core.normalize import normalize_page
from ventures_client.infrastructure.api_client import ApiClient

logger = logging.getLogger(__name__)

ADMIN_USERS_ENDPOINT = "/api/admin/users"
ADMIN_INVESTMENTS_ENDPOINT = "/api/admin/investments"
ADMIN_EVENTS_ENDPOINT = "/api/admin/activity/events"
TIME_MACHINE_ENDPOINT = "/api/admin/time-machine"
MAX_PAGE_SIZE = 100


class AdminService:
    def __init__(self, api: ApiClient, page_size: int = MAX_PAGE_SIZE):
        self.api = api
        self.page_size = max(1, min(page_size, MAX_PAGE_SIZE))

    # ─── Paginated listings ──────────────────────────────────────

    async def list_users(self, filters: dict[str, Any] | None = None) -> dict:
        """Filters: page, size, is_verified, account_type, search."""
        return await self._list_all(ADMIN_USERS_ENDPOINT, "users", filters)

    async def list_investments(self, filters: dict[str, Any] | None = None) -> dict:
        """Filters: page, size, status, user_id, search."""
        return await self._list_all(ADMIN_INVESTMENTS_ENDPOINT, "investments", filters)

    async def list_activity_events(self, filters: dict[str, Any] | None = None) -> dict:
        """Filters: page, size, user_id, investment_id, activity_type, status, search, order_by."""
        result = await self._list_all(ADMIN_EVENTS_ENDPOINT, "events", filters)
        result["items"] = result["events"]
        return result

    async def get_user_activity_events(self, user_id: object) -> dict:
        digits = numeric_id(user_id)
        if not digits:
            return error_result(f"Invalid user id: {user_id}")
        return await self.list_activity_events({
            "user_id": int(digits),
            "size": MAX_PAGE_SIZE,
        })

    async def _list_all(
        self, endpoint: str, key: str, filters: dict[str, Any] | None,
    ) -> dict:
        params = {k: v for k, v in (filters or {}).items() if v is not None and v != ""}
        explicit_page = params.pop("page", None)
        size = params.pop("size", None) or self.page_size

        first = normalize_page(
            await self._get_page(endpoint, explicit_page or 1, size, params), key,
        )
        items = first["items"]
        page, pages = first["page"], first["pages"]

        if pages > 1 and page == 1 and explicit_page is None:
            logger.info(
                f"Fetching {pages - 1} more pages of {key}",
                extra={"endpoint": endpoint},
            )
            rest = await asyncio.gather(*(
                self._get_page(endpoint, n, size, params) for n in range(2, pages + 1)
            ))
            for body in rest:
                items.extend(normalize_page(body, key)["items"])
            page = 1

        return success_result(**{key: items}, total=first["total"], page=page, pages=pages)

    async def _get_page(
        self, endpoint: str, page: int, size: int, params: dict[str, Any],
    ) -> Any:
        return await self.api.execute(
            endpoint, HttpMethod.GET, params={"page": page, "size": size, **params},
        )

    # ─── Investment review ───────────────────────────────────────

    async def approve_investment(self, investment_id: InvestmentId) -> dict:
        data = await self.api.execute(
            f"{ADMIN_INVESTMENTS_ENDPOINT}/{investment_id}/approve", HttpMethod.POST,
        )
        return _review_result(data)

    async def reject_investment(
        self, investment_id: InvestmentId, reason: str | None = None,
    ) -> dict:
        data = await self.api.execute(
            f"{ADMIN_INVESTMENTS_ENDPOINT}/{investment_id}/reject", HttpMethod.POST,
            {"reason": reason} if reason else None,
        )
        return _review_result(data)

    # ─── Users ───────────────────────────────────────────────────

    async def delete_user(self, user_id: object) -> dict:
        try:
            data = await self.api.execute(
                f"{ADMIN_USERS_ENDPOINT}/{numeric_id(user_id)}", HttpMethod.DELETE,
            )
        except VenturesClientError as e:
            logger.error(f"Delete user failed: {e.message}", extra={"error_code": e.code})
            return error_result(e.message or "Failed to delete user", partialSuccess=False)
        data = data if isinstance(data, dict) else {}
        return {
            "success": True,
            "message": data.get("message") or "User deleted successfully",
            **data,
        }

    # ─── Time machine ────────────────────────────────────────────

    async def get_app_time(self) -> dict:
        return as_result(await self.api.execute(f"{TIME_MACHINE_ENDPOINT}/status", HttpMethod.GET))

    async def set_app_time(self, app_time: str) -> dict:
        return as_result(await self.api.execute(
            f"{TIME_MACHINE_ENDPOINT}/set", HttpMethod.POST, {"appTime": app_time},
        ))

    async def reset_app_time(self) -> dict:
        return as_result(await self.api.execute(f"{TIME_MACHINE_ENDPOINT}/reset", HttpMethod.POST))


def _review_result(data: Any) -> dict:
    body = data if isinstance(data, dict) else {}
    return {"success": True, "investment": data, **body}
