"""Payment Method Service: Plaid link, manual bank accounts and micro-deposit verification."""

from ventures_client.core.api_result import as_result
from ventures_client.core.domain_types import HttpMethod, PaymentMethodId
from ventures_client.infrastructure.api_client import ApiClient, PLAID_LINK_SUCCESS_ENDPOINT
from ventures_client.schemas.payment import (
    ManualPaymentMethodRequest,
    PlaidLinkSuccess,
    PlaidLinkTokenRequest,
    VerifyPaymentMethodRequest,
)

PAYMENT_METHODS_ENDPOINT = "/api/payment-methods"


class PaymentService:
    def __init__(self, api: ApiClient):
        self.api = api

    async def create_plaid_link_token(self) -> dict:
        return as_result(await self.api.execute(
            "/api/plaid/link-token", HttpMethod.POST, PlaidLinkTokenRequest().model_dump(),
        ))

    async def post_plaid_link_success(
        self,
        public_token: str,
        account_id: str,
        institution: str | dict | None = None,
        account_mask: str | None = None,
        account_name: str | None = None,
        save_for_reuse: bool = True,
        idempotency_key: str | None = None,
    ) -> dict:
        """A 409 here means the account is already linked; callers treat it as expected."""
        body = PlaidLinkSuccess(
            public_token=public_token,
            account_id=account_id,
            institution=institution or None,
            account_mask=account_mask or None,
            account_name=account_name or None,
            save_for_reuse=save_for_reuse,
            idempotency_key=idempotency_key,
        ).model_dump(exclude_none=True)
        return as_result(await self.api.execute(
            PLAID_LINK_SUCCESS_ENDPOINT, HttpMethod.POST, body,
        ))

    async def create_manual_payment_method(
        self,
        account_holder_name: str,
        routing_number: str,
        account_number: str,
        idempotency_key: str,
        account_type: str = "checking",
        save_for_reuse: bool = True,
    ) -> dict:
        body = ManualPaymentMethodRequest(
            account_holder_name=account_holder_name,
            routing_number=routing_number,
            account_number=account_number,
            account_type=account_type,
            save_for_reuse=save_for_reuse,
            idempotency_key=idempotency_key,
        ).model_dump()
        return as_result(await self.api.execute(
            f"{PAYMENT_METHODS_ENDPOINT}/manual", HttpMethod.POST, body,
        ))

    async def verify_payment_method(
        self, payment_method_id: PaymentMethodId, amounts: list[int | float],
    ) -> dict:
        body = VerifyPaymentMethodRequest(amounts=amounts).model_dump()
        return as_result(await self.api.execute(
            f"{PAYMENT_METHODS_ENDPOINT}/{payment_method_id}/verify", HttpMethod.POST, body,
        ))

    async def list_payment_methods(self, type: str = "bank_ach") -> dict:
        data = await self.api.execute(
            PAYMENT_METHODS_ENDPOINT, HttpMethod.GET, params={"type": type},
        )
        return as_result(data, list_key="payment_methods")

    async def delete_payment_method(self, payment_method_id: PaymentMethodId) -> dict:
        return as_result(await self.api.execute(
            f"{PAYMENT_METHODS_ENDPOINT}/{payment_method_id}", HttpMethod.DELETE,
        ))
