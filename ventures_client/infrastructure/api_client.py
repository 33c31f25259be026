"""Request Executor: authenticated HTTP calls with one transparent refresh-and-replay.

Invariants:
    - ensure_loaded() runs before any token is read
    - Login and refresh endpoints never carry a bearer credential and never trigger a refresh
    - A 401 triggers at most one refresh and at most one replay per call
    - Concurrent 401s share a single refresh (single-flight); a call whose token was
      already replaced by another caller's refresh is replayed without refreshing again
    - Refresh failure during recovery clears the whole session and raises SessionExpiredError
    - A 401 that survives the replay drops the in-memory access token
    - 204 responses normalize to {"success": True}
    - Unparseable bodies normalize to {"error": "Invalid response format"}
    - Non-2xx raises ApiRequestError carrying message, parsed body and status
    - Transport failures raise NetworkError / RequestTimeoutError (no structured detail)

Design Decisions:
    - httpx.AsyncClient owned by the executor unless one is injected (tests pass
      a client over httpx.MockTransport)
    - Same-origin proxy mode sends relative paths against the proxy origin
    - The refresh shares RequestCoalescer with a reserved key instead of a bespoke lock
"""

import logging
from typing import Any

import httpx

from ventures_client.core.api_result import (
    INVALID_RESPONSE_FORMAT, extract_error_message,
)
from ventures_client.core.domain_types import AuthEndpoint, HttpMethod
from ventures_client.core.errors import (
    ApiRequestError,
    ErrorContext,
    NetworkError,
    NoRefreshTokenError,
    RequestTimeoutError,
    SessionExpiredError,
    TokenRefreshError,
    VenturesClientError,
)
from ventures_client.infrastructure.coalescer import RequestCoalescer
from ventures_client.infrastructure.token_store import TokenStore
from ventures_client.schemas.auth import RefreshRequest, TokenResponse

logger = logging.getLogger(__name__)

REFRESH_KEY = "auth:refresh"
PLAID_LINK_SUCCESS_ENDPOINT = "/api/plaid/link-success"


class ApiClient:
    """Executes one logical API call with bearer auth and 401 recovery."""

    def __init__(
        self,
        tokens: TokenStore,
        base_url: str = "",
        same_origin_proxy: bool = False,
        proxy_origin: str = "http://localhost:3000",
        timeout_seconds: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        coalescer: RequestCoalescer | None = None,
    ):
        self.tokens = tokens
        self.base_url = base_url.rstrip("/") if base_url else ""
        self.same_origin_proxy = same_origin_proxy
        self.timeout_seconds = timeout_seconds
        self.coalescer = coalescer or RequestCoalescer()
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(
            base_url=proxy_origin if same_origin_proxy else "",
            timeout=timeout_seconds,
            transport=transport,
        )

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    # ─── URL resolution ──────────────────────────────────────────

    def build_url(self, endpoint: str) -> str:
        """Relative path in proxy mode (or without a base), absolute base + path otherwise."""
        if self.same_origin_proxy or not self.base_url:
            return endpoint
        path = endpoint if endpoint.startswith("/") else f"/{endpoint}"
        return f"{self.base_url}{path}"

    @property
    def backend_url(self) -> str:
        return self.base_url or "relative /api routes"

    # ─── Public entry points ─────────────────────────────────────

    async def execute(
        self,
        endpoint: str,
        method: HttpMethod | str = HttpMethod.GET,
        body: Any = None,
        headers: dict[str, str] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Perform the call and return the parsed body (or raise)."""
        method = _method_name(method)
        response = await self._send_with_recovery(endpoint, method, body, headers, params)
        return self._parse(response, endpoint, method)

    async def execute_raw(
        self,
        endpoint: str,
        method: HttpMethod | str = HttpMethod.GET,
        headers: dict[str, str] | None = None,
        params: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Same auth and recovery as execute(), but hands back the raw response."""
        return await self._send_with_recovery(
            endpoint, _method_name(method), None, headers, params,
        )

    async def refresh_access_token(self) -> str:
        """Exchange the refresh token for a new pair. Concurrent callers share one exchange."""
        return await self.coalescer.coalesce(REFRESH_KEY, self._exchange_refresh_token)

    # ─── Recovery cycle ──────────────────────────────────────────

    async def _send_with_recovery(
        self,
        endpoint: str,
        method: str,
        body: Any,
        headers: dict[str, str] | None,
        params: dict[str, Any] | None,
    ) -> httpx.Response:
        await self.tokens.ensure_loaded()
        sent_token = self._bearer_for(endpoint)
        response = await self._send(endpoint, method, body, headers, params, sent_token)

        if (
            response.status_code != 401
            or not self.tokens.refresh_token
            or _is_auth_endpoint(endpoint)
        ):
            return response

        try:
            await self._refresh_unless_rotated(sent_token)
        except VenturesClientError as e:
            logger.warning(
                f"Token refresh failed during 401 recovery: {e.message}",
                extra={"endpoint": endpoint, "method": method, "error_code": e.code},
            )
            await self.tokens.clear_tokens()
            raise SessionExpiredError(
                ErrorContext(endpoint=endpoint, method=method, status_code=401),
            ) from e

        response = await self._send(
            endpoint, method, body, headers, params,
            self._bearer_for(endpoint), attempt=2,
        )
        if response.status_code == 401:
            logger.warning(
                "Request still unauthorized after refresh",
                extra={"endpoint": endpoint, "method": method, "status_code": 401},
            )
            self.tokens.clear_access_token()
        return response

    async def _refresh_unless_rotated(self, sent_token: str | None) -> None:
        current = self.tokens.access_token
        if current and current != sent_token:
            logger.debug("Access token already rotated, replaying without refresh")
            return
        await self.refresh_access_token()

    async def _exchange_refresh_token(self) -> str:
        if not self.tokens.refresh_token:
            await self.tokens.ensure_loaded()
        refresh_token = self.tokens.refresh_token
        if not refresh_token:
            raise NoRefreshTokenError(
                ErrorContext(endpoint=AuthEndpoint.REFRESH.value, method="POST"),
            )

        try:
            response = await self._send(
                AuthEndpoint.REFRESH.value, "POST",
                RefreshRequest(refresh_token=refresh_token).model_dump(),
                None, None, None,
            )
        except NetworkError:
            await self.tokens.clear_tokens()
            raise

        data = _json_or_none(response)
        token = TokenResponse.from_body(data)
        if not response.is_success or not token.access_token:
            await self.tokens.clear_tokens()
            raise TokenRefreshError(
                response.status_code,
                ErrorContext(endpoint=AuthEndpoint.REFRESH.value, method="POST"),
            )

        await self.tokens.set_tokens(
            token.access_token, token.refresh_token or refresh_token,
        )
        logger.info("Access token refreshed", extra={"endpoint": AuthEndpoint.REFRESH.value})
        return token.access_token

    # ─── Transport ───────────────────────────────────────────────

    def _bearer_for(self, endpoint: str) -> str | None:
        if _is_auth_endpoint(endpoint):
            return None
        return self.tokens.access_token

    async def _send(
        self,
        endpoint: str,
        method: str,
        body: Any,
        headers: dict[str, str] | None,
        params: dict[str, Any] | None,
        bearer: str | None,
        attempt: int = 1,
    ) -> httpx.Response:
        request_headers = {"Content-Type": "application/json", **(headers or {})}
        if bearer:
            request_headers["Authorization"] = f"Bearer {bearer}"
        context = ErrorContext(endpoint=endpoint, method=method)

        logger.debug(
            f"{method} {endpoint}",
            extra={"endpoint": endpoint, "method": method, "attempt": attempt},
        )
        try:
            return await self._http.request(
                method,
                self.build_url(endpoint),
                json=body,
                headers=request_headers,
                params=params,
            )
        except httpx.TimeoutException as e:
            logger.error(
                f"Request timed out: {endpoint}",
                extra={"endpoint": endpoint, "method": method, "attempt": attempt},
            )
            raise RequestTimeoutError(self.timeout_seconds, context) from e
        except httpx.TransportError as e:
            logger.error(
                f"API request failed: {endpoint}: {e}",
                extra={"endpoint": endpoint, "method": method, "attempt": attempt},
            )
            raise NetworkError(str(e) or type(e).__name__, context) from e

    def _parse(self, response: httpx.Response, endpoint: str, method: str) -> Any:
        if response.status_code == 204:
            return {"success": True}

        data = _json_or_none(response)
        if data is None:
            data = {"error": INVALID_RESPONSE_FORMAT}

        if response.is_success:
            return data

        status = response.status_code
        message = extract_error_message(data, status)
        lowered = message.lower()
        is_profile_locked = status == 403 and (
            "profile is complete" in lowered or "cannot be modified" in lowered
        )
        is_expected_conflict = status == 409 and PLAID_LINK_SUCCESS_ENDPOINT in endpoint
        if not is_profile_locked and not is_expected_conflict:
            logger.error(
                f"Request failed [{status}] {endpoint}: {message}",
                extra={"endpoint": endpoint, "method": method, "status_code": status},
            )
        raise ApiRequestError(
            message,
            status,
            response_data=data,
            is_profile_locked=is_profile_locked,
            context=ErrorContext(endpoint=endpoint, method=method),
        )


def _method_name(method: HttpMethod | str) -> str:
    return method.value if isinstance(method, HttpMethod) else str(method).upper()


def _is_auth_endpoint(endpoint: str) -> bool:
    return any(e.value in endpoint for e in AuthEndpoint)


def _json_or_none(response: httpx.Response) -> Any:
    """Parsed JSON body, or None when the body is not valid JSON."""
    try:
        return response.json()
    except ValueError:
        return None
