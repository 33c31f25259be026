"""Wire Normalization tests — pure tests for user, profile, contact, page and agreement shapes.

Tests cover:
    - normalize_user: envelope unwrap, derived flags, field preservation, display phone
    - to_backend_profile / to_backend_trusted_contact: renames and phone reduction
    - normalize_page: list, items and keyed bodies
    - normalize_agreement: payload lookup, artifact checks, error selection
"""

from ventures_client.core.normalize import (
    USER_DERIVED_FIELDS,
    normalize_agreement,
    normalize_page,
    normalize_user,
    to_backend_profile,
    to_backend_trusted_contact,
)


# -- normalize_user -----------------------------------------------------------

def test_normalize_user_unwraps_envelope():
    user = normalize_user({"success": True, "user": {"id": 7, "email": "a@b.co"}})
    assert user["id"] == 7
    assert user["email"] == "a@b.co"


def test_normalize_user_derives_flags():
    user = normalize_user({"id": 1, "is_superuser": True, "is_verified": True})
    assert user["isAdmin"] is True
    assert user["isVerified"] is True
    assert user["needsOnboarding"] is True


def test_normalize_user_always_has_derived_fields():
    user = normalize_user({})
    assert set(USER_DERIVED_FIELDS) <= set(user)
    assert user["isAdmin"] is False
    assert user["isVerified"] is False


def test_normalize_user_prefers_camel_is_verified():
    user = normalize_user({"isVerified": False, "is_verified": True})
    assert user["isVerified"] is False


def test_normalize_user_preserves_unknown_fields():
    user = normalize_user({"id": 1, "accountType": "ira", "onboarding_completed": True})
    assert user["accountType"] == "ira"
    assert user["needsOnboarding"] is False


def test_ten_digit_phone_gets_country_code():
    user = normalize_user({"phone": "(555) 123-4567"})
    assert user["phone"] == "+15551234567"
    assert user["phoneNumber"] == "+15551234567"


def test_other_phone_is_mirrored():
    user = normalize_user({"phone": "+44 20 7946 0958"})
    assert user["phone"] == "+44 20 7946 0958"
    assert user["phoneNumber"] == "+44 20 7946 0958"


# -- outbound payloads --------------------------------------------------------

def test_to_backend_profile_renames_fields():
    out = to_backend_profile({
        "phoneNumber": "+1 (555) 123-4567",
        "needsOnboarding": False,
        "onboardingCompletedAt": "2024-01-01",
        "onboardingToken": "tok",
        "onboardingTokenExpires": "2024-02-01",
        "first_name": "Ada",
    })
    assert out == {
        "phone": "5551234567",
        "onboarding_completed": True,
        "onboarding_completed_at": "2024-01-01",
        "onboarding_token": "tok",
        "onboarding_token_expires": "2024-02-01",
        "first_name": "Ada",
    }


def test_patch_profile_variant_renames_phone_only():
    out = to_backend_profile(
        {"phoneNumber": "5551234567", "needsOnboarding": True}, include_onboarding=False,
    )
    assert out == {"phone": "5551234567", "needsOnboarding": True}


def test_to_backend_profile_does_not_mutate_input():
    data = {"phoneNumber": "5551234567"}
    to_backend_profile(data)
    assert data == {"phoneNumber": "5551234567"}


def test_trusted_contact_trims_and_reduces_phone():
    out = to_backend_trusted_contact({
        "firstName": "  Ada ", "lastName": "", "email": " a@b.co ",
        "relationship": " sibling ", "phone": "+1 555 123 4567",
    })
    assert out == {
        "firstName": "Ada", "lastName": None, "email": "a@b.co",
        "relationshipType": "sibling", "phone": "5551234567",
    }


def test_trusted_contact_short_phone_is_dropped():
    assert to_backend_trusted_contact({"phone": "12345"})["phone"] is None


# -- normalize_page -----------------------------------------------------------

def test_normalize_page_shapes():
    assert normalize_page([1, 2], "users") == {"items": [1, 2], "total": 0, "pages": 1, "page": 1}
    assert normalize_page({"users": [3], "total": 1}, "users")["items"] == [3]
    page = normalize_page({"items": [4], "total": 9, "pages": 3, "page": 2}, "users")
    assert page == {"items": [4], "total": 9, "pages": 3, "page": 2}


# -- normalize_agreement ------------------------------------------------------

def test_agreement_empty_response():
    assert normalize_agreement(None) == {
        "success": False, "error": "Empty agreement response", "data": None,
    }


def test_agreement_signed_url_under_data_agreement():
    result = normalize_agreement({
        "data": {"agreement": {"signedUrl": " https://x/doc.pdf ", "expiresAt": "soon"}},
    })
    assert result["success"] is True
    assert result["data"]["signed_url"] == "https://x/doc.pdf"
    assert result["data"]["expires_at"] == "soon"
    assert result["data"]["content_type"] == "application/pdf"


def test_agreement_base64_whitespace_stripped():
    result = normalize_agreement({"pdf_base64": "QUJD\nREVG "})
    assert result["data"]["pdf_base64"] == "QUJDREVG"


def test_agreement_success_without_artifacts_fails():
    result = normalize_agreement({"success": True, "data": {"file_name": "a.pdf"}})
    assert result["success"] is False
    assert result["error"] == "Agreement response missing file artifacts"


def test_agreement_failure_uses_backend_error():
    result = normalize_agreement({"success": False, "detail": "Not generated"})
    assert result == {
        "success": False, "error": "Not generated", "data": result["data"],
    }
