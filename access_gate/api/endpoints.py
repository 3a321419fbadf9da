"""
FastAPI Endpoints for the Access Gate

This module defines the HTTP surface with minimal logic.
Endpoints only handle:
- Request parsing
- Error handling and HTTP responses
- Delegating to the service layer

Rate limiting happens before routing (RateLimitMiddleware); all access
decisions live in AccessValidator.
"""

import logging
from pathlib import Path

from fastapi import APIRouter, Request, status
from fastapi.responses import FileResponse, JSONResponse
from pydantic import ValidationError

from access_gate.api.schemas import ValidateRequest, ValidateResponse
from access_gate.core.client_ip import get_client_ip
from access_gate.core.exceptions import (
    AuthorizationFailure,
    ConfigurationFault,
    ValidationFailure,
)
from access_gate.core.service_manager import get_services

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).resolve().parent.parent / "static"

INVALID_BODY_MESSAGE = "Invalid request body"
INTERNAL_ERROR_MESSAGE = "Internal server error"

router = APIRouter()


def validation_response(status_code: int, **fields) -> JSONResponse:
    body = ValidateResponse(**fields).model_dump(by_alias=True, exclude_none=True)
    return JSONResponse(status_code=status_code, content=body)


def static_file(filename: str, media_type: str) -> FileResponse:
    return FileResponse(STATIC_DIR / filename, media_type=media_type)


@router.get("/", include_in_schema=False)
@router.get("/index.html", include_in_schema=False)
async def index():
    return static_file("index.html", "text/html; charset=utf-8")


@router.get("/styles.css", include_in_schema=False)
async def styles():
    return static_file("styles.css", "text/css; charset=utf-8")


@router.get("/script.js", include_in_schema=False)
async def script():
    return static_file("script.js", "application/javascript; charset=utf-8")


@router.post(
    "/api/validate",
    response_model=ValidateResponse,
    summary="Validate an access request",
    description="Checks honeypot, bot verification, deny-list and allow-list, then returns a redirect URL"
)
async def validate_access(request: Request) -> JSONResponse:
    """
    Decide one access request.

    Returns:
        200 with redirectUrl on success
        400 for missing/malformed input
        403 for any refusal (deliberately indistinguishable)
        500 when no redirect target is configured or on unexpected errors
    """
    client_ip = get_client_ip(request)

    try:
        payload = await request.json()
        body = ValidateRequest.model_validate(payload)
    except (ValueError, ValidationError):
        return validation_response(
            status.HTTP_400_BAD_REQUEST, success=False, message=INVALID_BODY_MESSAGE
        )

    validator = get_services(request.app).validator

    try:
        redirect_url = await validator.validate(
            email=body.email,
            turnstile_token=body.turnstile_token,
            honeypot_field=body.honeypot_field,
            client_ip=client_ip,
        )
    except (ValidationFailure, AuthorizationFailure, ConfigurationFault) as e:
        return validation_response(e.status_code, success=False, message=e.message)
    except Exception as e:
        logger.error(f"Validation error: {str(e)}", exc_info=True)
        return validation_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, success=False, message=INTERNAL_ERROR_MESSAGE
        )

    return validation_response(status.HTTP_200_OK, success=True, redirectUrl=redirect_url)
