"""Investment Access Rules: account-type locking and draft payment method choice.

Invariants:
    - Only pending or active investments lock the account type (pending checked first)
    - The most recently updated (else created) locking investment wins
    - No lock is reported when no account type can be resolved
    - IRA accounts and amounts above WIRE_THRESHOLD always fund by wire

Design Decisions:
    - Pure functions over investment dicts: the UI layer and services share them
    - Unparseable timestamps sort as the epoch rather than raising
"""

from datetime import datetime
from typing import Any

from ventures_client.core.domain_types import InvestmentStatus, PaymentMethodChoice

LOCKING_STATUSES: tuple[InvestmentStatus, ...] = (
    InvestmentStatus.PENDING, InvestmentStatus.ACTIVE,
)
WIRE_THRESHOLD = 100_000

DRAFT_PAYMENT_METHOD_KEY = "investment_draft_paymentMethod"

_NO_LOCK: dict[str, Any] = {
    "lockedAccountType": None,
    "lockingStatus": None,
    "investmentId": None,
    "investment": None,
}


def investment_payment_method_key(investment_id: object) -> str:
    return f"investment_{investment_id}_paymentMethodPreference"


def get_investment_type_lock_info(
    user_or_investments: Any, explicit_account_type: str | None = None,
) -> dict:
    """Resolve which account type, if any, the user is locked into."""
    if isinstance(user_or_investments, list):
        investments = user_or_investments
        fallback = explicit_account_type
    else:
        source = user_or_investments if isinstance(user_or_investments, dict) else {}
        investments = source.get("investments") if isinstance(source.get("investments"), list) else []
        fallback = explicit_account_type or source.get("accountType")

    candidate = None
    for status in LOCKING_STATUSES:
        matches = [
            inv for inv in investments
            if _normalize_status(inv.get("status")) == status.value
        ]
        if matches:
            matches.sort(key=_recency, reverse=True)
            candidate = (status, matches[0])
            break

    if candidate is None:
        return dict(_NO_LOCK)

    status, investment = candidate
    locked_type = investment.get("accountType") or fallback
    if not locked_type:
        return dict(_NO_LOCK)

    return {
        "lockedAccountType": locked_type,
        "lockingStatus": status.value,
        "investmentId": investment.get("id"),
        "investment": investment,
    }


def has_investment_type_lock(
    user_or_investments: Any, explicit_account_type: str | None = None,
) -> bool:
    info = get_investment_type_lock_info(user_or_investments, explicit_account_type)
    return bool(info["lockedAccountType"] and info["lockingStatus"])


def determine_draft_payment_method(
    account_type: str | None, amount: Any,
) -> PaymentMethodChoice:
    if account_type == "ira":
        return PaymentMethodChoice.WIRE
    if _to_amount(amount) > WIRE_THRESHOLD:
        return PaymentMethodChoice.WIRE
    return PaymentMethodChoice.ACH


def _normalize_status(status: Any) -> str:
    return status.lower() if isinstance(status, str) else ""


def _recency(investment: dict) -> float:
    return _timestamp_or_zero(investment.get("updatedAt") or investment.get("createdAt"))


def _timestamp_or_zero(value: Any) -> float:
    if not value:
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00")).timestamp()
    except ValueError:
        return 0.0


def _to_amount(amount: Any) -> float:
    if isinstance(amount, bool):
        return 0.0
    if isinstance(amount, (int, float)):
        return float(amount)
    if isinstance(amount, str):
        try:
            return float(amount)
        except ValueError:
            return 0.0
    return 0.0
