"""Auth Service: login, logout, registration, session refresh and password reset.

Invariants:
    - login stores the token pair before fetching the profile
    - A failed profile fetch after login still reports success (user: None)
    - A login response without access_token never touches the token store
    - logout is idempotent and always succeeds
    - register and refresh_session convert errors to failure results; the rest propagate
"""

import logging

from ventures_client.core.api_result import as_result, success_result
from ventures_client.core.domain_types import AuthEndpoint, HttpMethod
from ventures_client.core.errors import VenturesClientError
from ventures_client.core.normalize import normalize_user
from ventures_client.infrastructure.api_client import ApiClient
from ventures_client.schemas.auth import (
    LoginRequest,
    PasswordResetConfirm,
    PasswordResetRequest,
    RegisterRequest,
    TokenResponse,
)
from ventures_client.services.user_service import PROFILE_ENDPOINT

logger = logging.getLogger(__name__)


class AuthService:
    """Session lifecycle operations."""

    def __init__(self, api: ApiClient):
        self.api = api
        self.tokens = api.tokens

    async def login(self, email: str, password: str) -> dict:
        logger.debug("Login attempt", extra={"endpoint": AuthEndpoint.LOGIN.value})
        data = await self.api.execute(
            AuthEndpoint.LOGIN.value, HttpMethod.POST,
            LoginRequest(email=email, password=password).model_dump(),
        )
        token = TokenResponse.from_body(data)
        if not token.access_token:
            failure = dict(data) if isinstance(data, dict) else {}
            failure["success"] = False
            failure.setdefault("error", "Login failed")
            return failure

        await self.tokens.set_tokens(token.access_token, token.refresh_token)

        try:
            profile = await self.api.execute(PROFILE_ENDPOINT, HttpMethod.GET)
        except VenturesClientError as e:
            logger.warning(
                f"Profile fetch after login failed: {e.message}",
                extra={"error_code": e.code},
            )
            return success_result(user=None, access_token=token.access_token)

        user = normalize_user(profile)
        await self.tokens.remember_user(user.get("id"), user.get("email"))
        return success_result(
            user=user,
            access_token=token.access_token,
            refresh_token=token.refresh_token,
            token_type=token.token_type,
            expires_in=token.expires_in,
        )

    async def logout(self) -> dict:
        await self.tokens.clear_tokens()
        return success_result(message="Logged out successfully")

    async def register(self, email: str, password: str, full_name: str | None) -> dict:
        try:
            result = await self.api.execute(
                PROFILE_ENDPOINT, HttpMethod.POST,
                RegisterRequest(email=email, password=password, full_name=full_name).model_dump(),
            )
        except VenturesClientError as e:
            logger.error(f"Registration failed: {e.message}", extra={"error_code": e.code})
            return e.to_result() | {"error": e.message or "Registration failed"}
        return as_result(result)

    async def register_pending(self, email: str, password: str) -> dict:
        return await self.register(email, password, None)

    async def refresh_session(self) -> dict:
        try:
            await self.api.refresh_access_token()
        except VenturesClientError as e:
            return e.to_result()
        return success_result()

    async def request_password_reset(self, email: str) -> dict:
        data = await self.api.execute(
            "/api/auth/request-reset", HttpMethod.POST,
            PasswordResetRequest(email=email).model_dump(),
        )
        return as_result(data)

    async def reset_password(self, token: str, new_password: str) -> dict:
        data = await self.api.execute(
            "/api/auth/reset-password", HttpMethod.POST,
            PasswordResetConfirm(token=token, new_password=new_password).model_dump(),
        )
        return as_result(data)
