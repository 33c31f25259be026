"""Wire Normalization: one pure function per entity between backend shapes and client shapes.

Invariants:
    - normalize_user never drops a wire field; derived fields are added alongside
    - Explicitly derived user fields (USER_DERIVED_FIELDS) are always present
    - Outbound profile payloads carry snake_case backend names only
    - Phone numbers travel to the backend as 10 digits, come back as +1XXXXXXXXXX
    - normalize_agreement / normalize_page never raise on unexpected shapes

Design Decisions:
    - Envelopes ({user: {...}} vs bare object) are unwrapped here and nowhere else
    - Dict in, dict out: the payloads stay opaque to the client beyond these fields
"""

import re
from typing import Any

from ventures_client.core.domain_types import digits_only


# ─── User ────────────────────────────────────────────────────────

USER_DERIVED_FIELDS: tuple[str, ...] = (
    "id", "email", "full_name", "isAdmin", "isVerified", "needsOnboarding",
)

# client name -> backend name
_PROFILE_FIELD_MAP: dict[str, str] = {
    "phoneNumber": "phone",
    "onboardingCompletedAt": "onboarding_completed_at",
    "onboardingToken": "onboarding_token",
    "onboardingTokenExpires": "onboarding_token_expires",
}


def unwrap_user(payload: Any) -> dict:
    """Accept both {user: {...}} and a bare user object."""
    if not isinstance(payload, dict):
        return {}
    inner = payload.get("user")
    if isinstance(inner, dict):
        return inner
    return payload


def normalize_user(payload: Any) -> dict:
    """Map a profile response to the client user shape."""
    wire = unwrap_user(payload)
    user: dict[str, Any] = {
        "id": wire.get("id"),
        "email": wire.get("email"),
        "full_name": wire.get("full_name"),
        "isAdmin": bool(wire.get("isAdmin") or wire.get("is_superuser") or False),
        "isVerified": _first_defined(wire, "isVerified", "is_verified", default=False),
        "needsOnboarding": not wire.get("onboarding_completed"),
    }
    # Wire values win for keys the backend already sends in client form
    user.update(wire)
    return apply_display_phone(user)


def apply_display_phone(user: dict) -> dict:
    """Mirror the phone into phoneNumber, upgrading 10-digit US numbers to +1."""
    phone = user.get("phone")
    if not phone or not isinstance(phone, str):
        return user
    digits = digits_only(phone)
    if len(digits) == 10:
        user["phone"] = f"+1{digits}"
        user["phoneNumber"] = f"+1{digits}"
    else:
        user["phoneNumber"] = phone
    return user


def to_backend_phone(phone: str) -> str:
    """Strip formatting and a leading US country code."""
    digits = digits_only(phone)
    if len(digits) == 11 and digits.startswith("1"):
        return digits[1:]
    if len(digits) == 10:
        return digits
    return phone


def to_backend_profile(data: dict, include_onboarding: bool = True) -> dict:
    """Rename client profile fields to backend names.

    include_onboarding=False is the PATCH variant: only phone fields are renamed.
    """
    out = dict(data)
    for client_name, backend_name in _PROFILE_FIELD_MAP.items():
        if not include_onboarding and client_name != "phoneNumber":
            continue
        if client_name in out:
            out[backend_name] = out.pop(client_name)
    if include_onboarding and "needsOnboarding" in out:
        out["onboarding_completed"] = not out.pop("needsOnboarding")
    if isinstance(out.get("phone"), str) and out["phone"]:
        out["phone"] = to_backend_phone(out["phone"])
    return out


# ─── Trusted Contact ─────────────────────────────────────────────

def to_backend_trusted_contact(data: dict) -> dict:
    relationship = data.get("relationship") or data.get("relationshipType") or ""
    contact: dict[str, Any] = {
        "firstName": _trimmed_or_none(data.get("firstName")),
        "lastName": _trimmed_or_none(data.get("lastName")),
        "email": _trimmed_or_none(data.get("email")),
        "relationshipType": _trimmed_or_none(relationship),
        "phone": None,
    }
    phone = data.get("phone")
    if isinstance(phone, str):
        digits = digits_only(phone)
        if len(digits) >= 10:
            contact["phone"] = digits[-10:]
    return contact


# ─── Pagination ──────────────────────────────────────────────────

def normalize_page(data: Any, key: str) -> dict:
    """Read a paginated list body: bare list, {items: [...]}, or {<key>: [...]}."""
    if isinstance(data, list):
        return {"items": data, "total": 0, "pages": 1, "page": 1}
    if not isinstance(data, dict):
        return {"items": [], "total": 0, "pages": 1, "page": 1}
    items = data.get("items") or data.get(key) or []
    return {
        "items": list(items),
        "total": data.get("total") or 0,
        "pages": data.get("pages") or 1,
        "page": data.get("page") or 1,
    }


# ─── Agreement ───────────────────────────────────────────────────

_WHITESPACE = re.compile(r"\s+")


def normalize_agreement(raw: Any) -> dict:
    """Normalize an agreement response into {success, data, error?}.

    Success requires a signed URL or inline PDF bytes.
    """
    if not raw:
        return {"success": False, "error": "Empty agreement response", "data": None}
    if not isinstance(raw, dict):
        return {"success": False, "error": "Agreement not available", "data": None}

    payload = _agreement_payload(raw)
    signed_url = _first_present(
        payload, "signed_url", "signedUrl", "url", "download_url", "downloadUrl",
    )
    pdf_base64 = _first_present(
        payload, "pdf_base64", "pdfBase64", "pdf", "pdf_bytes", "pdfBytes",
    )
    signed_url = signed_url.strip() if isinstance(signed_url, str) and signed_url.strip() else None
    pdf_clean = (
        _WHITESPACE.sub("", pdf_base64)
        if isinstance(pdf_base64, str) and pdf_base64.strip() else None
    )
    content_type = _first_present(payload, "content_type", "contentType")
    if content_type is None and (pdf_base64 or signed_url):
        content_type = "application/pdf"

    data = {
        "signed_url": signed_url,
        "pdf_base64": pdf_clean,
        "expires_at": _first_present(payload, "expires_at", "expiresAt"),
        "file_name": _first_present(payload, "file_name", "fileName"),
        "content_type": content_type,
        "payload": payload,
    }

    if "success" in raw and raw["success"] is not None:
        success = bool(raw["success"])
    else:
        success = bool(signed_url or pdf_clean)

    if success and not signed_url and not pdf_clean:
        return {
            "success": False,
            "error": "Agreement response missing file artifacts",
            "data": data,
        }
    if not success:
        error = raw.get("error") or raw.get("message") or raw.get("detail") or "Agreement not available"
        return {"success": False, "error": error, "data": data}
    return {"success": True, "data": data}


def _agreement_payload(raw: dict) -> dict:
    nested = raw.get("data")
    if isinstance(nested, dict) and isinstance(nested.get("agreement"), dict):
        return nested["agreement"]
    if isinstance(raw.get("agreement"), dict):
        return raw["agreement"]
    if isinstance(nested, dict):
        return nested
    return raw


# ─── Helpers ─────────────────────────────────────────────────────

def _first_defined(source: dict, *keys: str, default: Any = None) -> Any:
    for key in keys:
        if source.get(key) is not None:
            return source[key]
    return default


def _first_present(source: dict, *keys: str) -> Any:
    return _first_defined(source, *keys, default=None)


def _trimmed_or_none(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    return value.strip() or None
