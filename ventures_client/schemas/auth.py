"""Auth Schemas: login, refresh, registration and password payloads.

Invariants:
    - TokenResponse tolerates extra fields and a missing access_token
      (callers decide what a missing token means)
    - Empty-string tokens are read as absent
    - A malformed token body (wrong field types) reads as a body with no tokens
"""

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


class LoginRequest(BaseModel):
    email: str
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class TokenResponse(BaseModel):
    """Body of /api/auth/token and /api/auth/refresh."""
    model_config = ConfigDict(extra="allow")

    access_token: str | None = None
    refresh_token: str | None = None
    token_type: str | None = None
    expires_in: float | None = None

    @field_validator("access_token", "refresh_token", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @classmethod
    def from_body(cls, data: object) -> "TokenResponse":
        if not isinstance(data, dict):
            return cls()
        try:
            return cls.model_validate(data)
        except ValidationError:
            return cls()


class RegisterRequest(BaseModel):
    email: str
    password: str
    full_name: str | None = None


class PasswordResetRequest(BaseModel):
    email: str


class PasswordResetConfirm(BaseModel):
    token: str
    new_password: str


class ChangePasswordRequest(BaseModel):
    """Backend expects camelCase keys on this endpoint."""
    model_config = ConfigDict(populate_by_name=True)

    current_password: str = Field(serialization_alias="currentPassword")
    new_password: str = Field(serialization_alias="newPassword")


class ConfirmAccountRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    verification_code: str = Field(serialization_alias="verificationCode")
