"""Domain Types: rich types that replace bare primitives across the client.

Invariants:
    - Durable storage keys are only ever referenced through StorageKey
    - Auth endpoints are only ever referenced through AuthEndpoint
    - All valid states encoded as Enums: no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON and compare equal to their wire values
"""

import re
from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

UserId = NewType("UserId", str)
InvestmentId = NewType("InvestmentId", str)
PaymentMethodId = NewType("PaymentMethodId", str)
FundingId = NewType("FundingId", str)


# ─── Enums ───────────────────────────────────────────────────────

class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"


class StorageKey(str, Enum):
    """Durable storage keys owned by the token lifecycle."""
    REFRESH_TOKEN = "refresh_token"
    LEGACY_ACCESS_TOKEN = "access_token"  # written by older clients; removed, never read
    CURRENT_USER_ID = "currentUserId"
    SIGNUP_EMAIL = "signupEmail"


# Keys removed together on logout
SESSION_KEYS: tuple[StorageKey, ...] = (
    StorageKey.LEGACY_ACCESS_TOKEN,
    StorageKey.REFRESH_TOKEN,
    StorageKey.CURRENT_USER_ID,
    StorageKey.SIGNUP_EMAIL,
)


class AuthEndpoint(str, Enum):
    """Endpoints that must never carry a bearer credential."""
    LOGIN = "/api/auth/token"
    REFRESH = "/api/auth/refresh"


class WebhookType(str, Enum):
    ACCOUNT_CREATED = "account-created"
    INVESTMENT_DRAFT = "investment-draft"
    INVESTMENT_PENDING = "investment-pending"
    INVESTMENT_COMPLETE = "investment-complete"


class PaymentMethodChoice(str, Enum):
    """Funding rail chosen for a draft investment."""
    ACH = "ach"
    WIRE = "wire"


class InvestmentStatus(str, Enum):
    DRAFT = "draft"
    PENDING = "pending"
    ACTIVE = "active"


# ─── Helpers ─────────────────────────────────────────────────────

_NON_DIGITS = re.compile(r"\D")


def numeric_id(user_id: object) -> str:
    """Reduce display ids like "USR-1004" to the digits the backend routes on."""
    return _NON_DIGITS.sub("", str(user_id))


def digits_only(value: str) -> str:
    return _NON_DIGITS.sub("", value)
