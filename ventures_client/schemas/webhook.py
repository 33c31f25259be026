"""Webhook Schemas: payload forwarded to the internal webhook relay routes.

Invariants:
    - email is required and non-blank for every webhook type
    - Unknown contact fields are forwarded untouched
"""

from pydantic import BaseModel, ConfigDict, field_validator


class WebhookPayload(BaseModel):
    model_config = ConfigDict(extra="allow")

    email: str
    phone: str | None = None
    firstName: str | None = None
    lastName: str | None = None

    @field_validator("email")
    @classmethod
    def email_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("email cannot be empty")
        return v
