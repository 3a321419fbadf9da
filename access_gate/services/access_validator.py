"""
Access Validator

Runs the checks for one verification request, in a fixed order, stopping
at the first failure:

1. honeypot field filled              -> AuthorizationFailure
2. email or token missing             -> ValidationFailure
3. email not shaped local@domain.tld  -> ValidationFailure
4. bot verification rejected          -> AuthorizationFailure
5. client IP on the deny-list         -> AuthorizationFailure
6. email not on the allow-list        -> AuthorizationFailure
7. redirect pool empty                -> ConfigurationFault

All authorization failures carry the same client-facing message; only the
logged reason differs.
"""

import logging
from typing import Any, Optional

from access_gate.core.exceptions import AuthorizationFailure, ValidationFailure
from access_gate.core.validators import is_blank, is_valid_email, normalize_email
from access_gate.services.access_lists import AccessListService
from access_gate.services.bot_verifier import TurnstileVerifier
from access_gate.services.redirect_service import RedirectService

logger = logging.getLogger(__name__)

MISSING_FIELDS_MESSAGE = "Missing required fields"
INVALID_EMAIL_MESSAGE = "Invalid email format"


class AccessValidator:
    """Orchestrates the access checks for POST /api/validate."""

    def __init__(
        self,
        access_lists: AccessListService,
        verifier: TurnstileVerifier,
        redirect_service: RedirectService
    ):
        self.access_lists = access_lists
        self.verifier = verifier
        self.redirect_service = redirect_service

    async def validate(
        self,
        email: Optional[str],
        turnstile_token: Optional[str],
        honeypot_field: Any,
        client_ip: str
    ) -> str:
        """
        Decide a request and return the redirect URL on success.

        Raises:
            AuthorizationFailure, ValidationFailure, ConfigurationFault
        """
        if not is_blank(honeypot_field):
            logger.info(f"Honeypot field filled by IP: {client_ip}")
            raise AuthorizationFailure("honeypot")

        if not email or not turnstile_token:
            raise ValidationFailure(MISSING_FIELDS_MESSAGE)

        if not is_valid_email(email):
            raise ValidationFailure(INVALID_EMAIL_MESSAGE)

        if not await self.verifier.verify(turnstile_token, client_ip):
            logger.info(f"Invalid Turnstile token for IP: {client_ip}")
            raise AuthorizationFailure("bot verification")

        deny_list = await self.access_lists.get_deny_list()
        if client_ip in deny_list:
            logger.info(f"Blocked deny-listed IP: {client_ip}")
            raise AuthorizationFailure("deny-list")

        allow_set = await self.access_lists.get_allow_set()
        if normalize_email(email) not in allow_set:
            logger.info(f"Unauthorized access attempt - IP: {client_ip}, Email: {email}")
            raise AuthorizationFailure("allow-list")

        redirect_url = await self.redirect_service.get_redirect_url(email)
        logger.info(f"Successful redirect - IP: {client_ip}, Email: {email}, URL: {redirect_url}")
        return redirect_url
