"""Investment Service: investment lifecycle, funding and agreement documents.

Invariants:
    - submit_investment sends a body only when the payload is non-empty
    - fund_investment omits memo when absent
    - get_agreement never raises: transport and session failures become failure results
    - Binary agreements are returned base64-encoded with the file name from Content-Disposition

Design Decisions:
    - The agreement fetch uses execute_raw: same bearer and 401 recovery as every
      other call, but the body may be a PDF instead of JSON
"""

import base64
import logging
import re
from urllib.parse import unquote

import httpx

from ventures_client.core.api_result import as_result, success_result
from ventures_client.core.domain_types import FundingId, HttpMethod, InvestmentId, PaymentMethodId
from ventures_client.core.errors import VenturesClientError
from ventures_client.core.normalize import normalize_agreement
from ventures_client.infrastructure.api_client import ApiClient
from ventures_client.schemas.payment import FundingRequest

logger = logging.getLogger(__name__)

INVESTMENTS_ENDPOINT = "/api/investments"
AGREEMENT_ACCEPT = "application/json, application/pdf;q=0.9,*/*;q=0.8"

_FILENAME = re.compile(r"""filename\*?=(?:UTF-8'')?["']?([^;"']+)""", re.IGNORECASE)
_JSON_TYPES = ("application/json", "application/vnd.api+json")


class InvestmentService:
    def __init__(self, api: ApiClient):
        self.api = api

    # ─── Lifecycle ───────────────────────────────────────────────

    async def list_investments(self) -> dict:
        data = await self.api.execute(INVESTMENTS_ENDPOINT, HttpMethod.GET)
        return as_result(data, list_key="investments")

    async def get_investment(self, investment_id: InvestmentId) -> dict:
        return as_result(await self.api.execute(
            f"{INVESTMENTS_ENDPOINT}/{investment_id}", HttpMethod.GET,
        ))

    async def create_investment(self, data: dict) -> dict:
        logger.info("Creating investment", extra={"endpoint": INVESTMENTS_ENDPOINT})
        return as_result(await self.api.execute(INVESTMENTS_ENDPOINT, HttpMethod.POST, data))

    async def update_investment(self, investment_id: InvestmentId, fields: dict) -> dict:
        return as_result(await self.api.execute(
            f"{INVESTMENTS_ENDPOINT}/{investment_id}", HttpMethod.PATCH, fields,
        ))

    async def save_identity_draft(self, investment_id: InvestmentId, draft: dict) -> dict:
        return await self.update_investment(investment_id, {"identityDraft": draft})

    async def delete_investment(self, investment_id: InvestmentId) -> dict:
        await self.api.execute(f"{INVESTMENTS_ENDPOINT}/{investment_id}", HttpMethod.DELETE)
        return success_result(message="Investment deleted successfully")

    async def submit_investment(
        self, investment_id: InvestmentId, payload: dict | None = None,
    ) -> dict:
        return as_result(await self.api.execute(
            f"{INVESTMENTS_ENDPOINT}/{investment_id}/submit", HttpMethod.POST,
            payload or None,
        ))

    async def get_payout_summary(self, investment_id: InvestmentId) -> dict:
        return as_result(await self.api.execute(
            f"{INVESTMENTS_ENDPOINT}/{investment_id}/payout-summary", HttpMethod.GET,
        ))

    async def get_compounding_summary(self, investment_id: InvestmentId) -> dict:
        return as_result(await self.api.execute(
            f"{INVESTMENTS_ENDPOINT}/{investment_id}/compounding-summary", HttpMethod.GET,
        ))

    async def create_attestation(self, investment_id: InvestmentId, data: dict) -> dict:
        return as_result(await self.api.execute(
            f"{INVESTMENTS_ENDPOINT}/{investment_id}/attestations", HttpMethod.POST, data,
        ))

    async def get_activity_events(self) -> dict:
        data = await self.api.execute("/api/activity/events", HttpMethod.GET)
        return as_result(data, list_key="events")

    # ─── Funding ─────────────────────────────────────────────────

    async def fund_investment(
        self,
        investment_id: InvestmentId,
        payment_method_id: PaymentMethodId,
        amount_cents: int,
        idempotency_key: str,
        memo: str | None = None,
    ) -> dict:
        body = FundingRequest(
            payment_method_id=payment_method_id,
            amount_cents=amount_cents,
            idempotency_key=idempotency_key,
            memo=memo or None,
        ).model_dump(exclude_none=True)
        return as_result(await self.api.execute(
            f"{INVESTMENTS_ENDPOINT}/{investment_id}/fund", HttpMethod.POST, body,
        ))

    async def get_funding_status(
        self, investment_id: InvestmentId, funding_id: FundingId,
    ) -> dict:
        return as_result(await self.api.execute(
            f"{INVESTMENTS_ENDPOINT}/{investment_id}/funding/{funding_id}", HttpMethod.GET,
        ))

    async def request_withdrawal(self, investment_id: InvestmentId) -> dict:
        return as_result(await self.api.execute(
            f"{INVESTMENTS_ENDPOINT}/{investment_id}/withdraw", HttpMethod.POST,
        ))

    # ─── Agreement documents ─────────────────────────────────────

    async def get_agreement(self, investment_id: InvestmentId) -> dict:
        """Fetch the bond agreement as {success, data{signed_url, pdf_base64, ...}, error?}."""
        if not investment_id:
            return {
                "success": False,
                "error": "investmentId is required to fetch agreement",
                "data": None,
            }

        endpoint = f"{INVESTMENTS_ENDPOINT}/{investment_id}/agreement"
        try:
            response = await self.api.execute_raw(
                endpoint, HttpMethod.GET, headers={"Accept": AGREEMENT_ACCEPT},
            )
        except VenturesClientError as e:
            logger.warning(
                f"Agreement fetch failed: {e.message}",
                extra={"endpoint": endpoint, "error_code": e.code},
            )
            return {
                "success": False,
                "error": e.message or "Failed to load investment agreement",
                "data": e.response_data,
            }

        content_type = response.headers.get("content-type", "")
        is_json = any(t in content_type for t in _JSON_TYPES)

        if not response.is_success:
            return _agreement_failure(response, is_json)

        if is_json:
            try:
                raw = response.json()
            except ValueError:
                return {"success": False, "error": "Invalid response format", "data": None}
            return normalize_agreement(raw)

        content = response.content
        if not content:
            return {"success": False, "error": "Agreement response was empty", "data": None}

        return normalize_agreement({
            "success": True,
            "data": {
                "pdf_base64": base64.b64encode(content).decode("ascii"),
                "content_type": content_type or "application/pdf",
                "file_name": _file_name(response.headers.get("content-disposition", "")),
            },
        })


def _agreement_failure(response: httpx.Response, is_json: bool) -> dict:
    payload = None
    if is_json:
        try:
            payload = response.json()
        except ValueError:
            payload = None
    elif response.text:
        payload = {"error": response.text}

    fallback = f"Failed to load investment agreement (status {response.status_code})"
    if isinstance(payload, dict) and payload:
        result = normalize_agreement(payload)
        result["success"] = False
        result.setdefault("error", fallback)
        return result
    return {"success": False, "error": fallback, "data": None}


def _file_name(content_disposition: str) -> str | None:
    match = _FILENAME.search(content_disposition)
    if not match:
        return None
    return unquote(match.group(1).replace('"', "").replace("'", ""))
