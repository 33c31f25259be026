"""User Service: current-user profile, account confirmation, password and trusted contact.

Invariants:
    - Profile reads are coalesced under one key: concurrent callers share one
      GET /api/profile and receive the same normalized user object
    - get_current_user never raises; an expired or missing session reads as
      {"success": False, "user": None}
    - Outbound profile payloads go through to_backend_profile (backend names, 10-digit phone)
    - Inbound users go through normalize_user (derived fields, display phone)
"""

import json
import logging

from ventures_client.core.api_result import as_result, error_result
from ventures_client.core.domain_types import HttpMethod, numeric_id
from ventures_client.core.errors import (
    ApiRequestError, SessionExpiredError, VenturesClientError,
)
from ventures_client.core.normalize import (
    apply_display_phone, normalize_user, to_backend_profile, to_backend_trusted_contact,
)
from ventures_client.infrastructure.api_client import ApiClient
from ventures_client.schemas.auth import ChangePasswordRequest, ConfirmAccountRequest

logger = logging.getLogger(__name__)

PROFILE_ENDPOINT = "/api/profile"
TRUSTED_CONTACT_ENDPOINT = "/api/profile/trusted_contact"
PROFILE_KEY = "profile"


class UserService:
    """Operations on the authenticated user's own profile."""

    def __init__(self, api: ApiClient):
        self.api = api
        self.tokens = api.tokens

    # ─── Profile reads ───────────────────────────────────────────

    async def _fetch_profile(self) -> dict:
        return await self.api.coalescer.coalesce(PROFILE_KEY, self._load_profile)

    async def _load_profile(self) -> dict:
        data = await self.api.execute(PROFILE_ENDPOINT, HttpMethod.GET)
        return normalize_user(data)

    async def get_current_user(self) -> dict:
        """Resolve the signed-in user, refreshing first when only a refresh token is held."""
        await self.tokens.ensure_loaded()

        if not self.tokens.access_token and self.tokens.refresh_token:
            try:
                await self.api.refresh_access_token()
            except VenturesClientError as e:
                logger.debug(f"Session restore failed: {e.message}", extra={"error_code": e.code})
                return {"success": False, "user": None}

        if not self.tokens.access_token:
            return {"success": False, "user": None}

        try:
            user = await self._fetch_profile()
        except SessionExpiredError:
            return {"success": False, "user": None}
        except ApiRequestError as e:
            if e.status_code == 401:
                return {"success": False, "user": None}
            return {"success": False, "user": None, "error": e.message}
        except VenturesClientError as e:
            return {"success": False, "user": None, "error": e.message}
        return {"success": True, "user": user}

    async def get_user_profile(self) -> dict:
        """The normalized user; errors propagate."""
        await self.tokens.ensure_loaded()
        return await self._fetch_profile()

    # ─── Profile writes ──────────────────────────────────────────

    async def update_profile(self, data: dict) -> dict:
        response = await self.api.execute(
            PROFILE_ENDPOINT, HttpMethod.PUT, to_backend_profile(data),
        )
        return as_result(_with_display_phone(response))

    async def patch_profile(self, data: dict) -> dict:
        response = await self.api.execute(
            PROFILE_ENDPOINT, HttpMethod.PATCH,
            to_backend_profile(data, include_onboarding=False),
        )
        return as_result(_with_display_phone(response))

    async def confirm_account(self, user_id: object, verification_code: str) -> dict:
        try:
            result = await self.api.execute(
                f"{PROFILE_ENDPOINT}/confirm/{numeric_id(user_id)}", HttpMethod.PUT,
                ConfirmAccountRequest(verification_code=verification_code).model_dump(by_alias=True),
            )
        except VenturesClientError as e:
            logger.error(f"Account confirmation failed: {e.message}", extra={"error_code": e.code})
            details = json.dumps(e.response_data) if e.response_data is not None else str(e)
            return error_result(
                e.message or "Verification failed",
                status_code=e.status_code,
                details=details,
            )
        return as_result(result)

    async def change_password(self, current_password: str, new_password: str) -> dict:
        body = ChangePasswordRequest(
            current_password=current_password, new_password=new_password,
        ).model_dump(by_alias=True)
        return as_result(
            await self.api.execute(f"{PROFILE_ENDPOINT}/change_password", HttpMethod.PUT, body)
        )

    # ─── Trusted contact ─────────────────────────────────────────

    async def get_trusted_contact(self) -> dict:
        return as_result(await self.api.execute(TRUSTED_CONTACT_ENDPOINT, HttpMethod.GET))

    async def create_trusted_contact(self, data: dict) -> dict:
        return as_result(await self.api.execute(
            TRUSTED_CONTACT_ENDPOINT, HttpMethod.POST, to_backend_trusted_contact(data),
        ))

    async def update_trusted_contact(self, data: dict) -> dict:
        return as_result(await self.api.execute(
            TRUSTED_CONTACT_ENDPOINT, HttpMethod.PUT, to_backend_trusted_contact(data),
        ))


def _with_display_phone(response):
    if isinstance(response, dict) and isinstance(response.get("user"), dict):
        apply_display_phone(response["user"])
    return response
