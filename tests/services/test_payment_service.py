"""Payment Method Service tests — Plaid link, manual accounts, verification and listing."""

import httpx
import pytest

from ventures_client.core.errors import ApiRequestError
from ventures_client.services.payment_service import PaymentService
from tests.fake_backend import json_response


@pytest.fixture
def payments(api_client):
    return PaymentService(api_client)


async def test_plaid_link_token_request(payments, backend, signed_in):
    backend.on("POST", "/api/plaid/link-token", json_response(200, {"link_token": "lt"}))

    result = await payments.create_plaid_link_token()

    assert result == {"success": True, "link_token": "lt"}
    assert backend.requests[0].body == {"use_case": "processor", "client_app": "web"}


async def test_plaid_link_success_omits_empty_metadata(payments, backend, signed_in):
    backend.on("POST", "/api/plaid/link-success", json_response(201, {"id": "pm_1"}))

    await payments.post_plaid_link_success("public-tok", "acc-1", account_mask="", idempotency_key="k1")

    assert backend.requests[0].body == {
        "public_token": "public-tok", "account_id": "acc-1",
        "save_for_reuse": True, "idempotency_key": "k1",
    }


async def test_plaid_link_conflict_still_raises(payments, backend, signed_in):
    backend.on("POST", "/api/plaid/link-success", json_response(409, {"detail": "Already linked"}))

    with pytest.raises(ApiRequestError) as exc_info:
        await payments.post_plaid_link_success("p", "a")

    assert exc_info.value.status_code == 409


async def test_manual_payment_method(payments, backend, signed_in):
    backend.on("POST", "/api/payment-methods/manual", json_response(201, {"id": "pm_2"}))

    await payments.create_manual_payment_method("Ada Lovelace", "011000015", "123456789", "idem-2")

    assert backend.requests[0].body == {
        "account_holder_name": "Ada Lovelace",
        "routing_number": "011000015",
        "account_number": "123456789",
        "account_type": "checking",
        "save_for_reuse": True,
        "idempotency_key": "idem-2",
    }


async def test_verify_list_and_delete(payments, backend, signed_in):
    backend.on("POST", "/api/payment-methods/pm_2/verify", json_response(200, {"status": "verified"}))
    backend.on("GET", "/api/payment-methods", json_response(200, [{"id": "pm_2"}]))
    backend.on("DELETE", "/api/payment-methods/pm_2", httpx.Response(204))

    await payments.verify_payment_method("pm_2", [32, 45])
    listed = await payments.list_payment_methods()
    deleted = await payments.delete_payment_method("pm_2")

    assert backend.requests[0].body == {"amounts": [32, 45]}
    assert backend.requests[1].params == {"type": "bank_ach"}
    assert listed == {"success": True, "payment_methods": [{"id": "pm_2"}]}
    assert deleted == {"success": True}
