"""Payment Schemas: Plaid link, manual bank accounts, micro-deposit verification and ACH funding.

Invariants:
    - Idempotency keys are passed through verbatim (caller-generated)
    - Optional Plaid metadata is omitted from the body when absent
    - amount_cents is an integer number of cents
"""

from typing import Literal

from pydantic import BaseModel, Field


class PlaidLinkTokenRequest(BaseModel):
    use_case: str = "processor"
    client_app: str = "web"


class PlaidLinkSuccess(BaseModel):
    public_token: str
    account_id: str
    institution: str | dict | None = None
    account_mask: str | None = None
    account_name: str | None = None
    save_for_reuse: bool = True
    idempotency_key: str | None = None


class ManualPaymentMethodRequest(BaseModel):
    account_holder_name: str
    routing_number: str
    account_number: str
    account_type: Literal["checking", "savings"] = "checking"
    save_for_reuse: bool = True
    idempotency_key: str | None = None


class VerifyPaymentMethodRequest(BaseModel):
    amounts: list[int | float] = Field(min_length=1)


class FundingRequest(BaseModel):
    payment_method_id: str
    amount_cents: int
    idempotency_key: str
    memo: str | None = None
