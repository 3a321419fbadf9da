"""
API Request and Response Schemas

Field names on the wire are camelCase (what the bundled page posts); the
Python attributes are snake_case.

Every request field is optional at this layer: missing email/token is a
decision for the validator (which must see the honeypot first), not a
schema error.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class ValidateRequest(BaseModel):
    """Request model for POST /api/validate."""
    model_config = ConfigDict(populate_by_name=True)

    email: Optional[str] = Field(default=None, description="Email address to check")
    turnstile_token: Optional[str] = Field(
        default=None,
        alias="turnstileToken",
        description="Turnstile response token"
    )
    # Any JSON value; non-string values count as filled in
    honeypot_field: Any = Field(
        default=None,
        alias="honeypotField",
        description="Hidden field; must be empty"
    )


class ValidateResponse(BaseModel):
    """Response model for POST /api/validate."""
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    message: Optional[str] = None
    redirect_url: Optional[str] = Field(default=None, alias="redirectUrl")
