"""
Bot Verification Service

Verifies Cloudflare Turnstile response tokens against the siteverify
endpoint. A single attempt is made; anything other than an explicit
success (transport error, bad JSON, success=false) counts as a failure.
"""

import logging
from typing import Optional

import httpx

logger = logging.getLogger(__name__)


class TurnstileVerifier:
    """Client for the Turnstile siteverify API."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        secret_key: str,
        verify_url: str = "https://challenges.cloudflare.com/turnstile/v0/siteverify"
    ):
        self.http_client = http_client
        self.secret_key = secret_key
        self.verify_url = verify_url

    async def verify(self, token: Optional[str], remote_ip: str) -> bool:
        """
        Check a response token.

        Args:
            token: Token produced by the client-side widget
            remote_ip: Address of the client that solved the challenge

        Returns:
            True only when the service reports success
        """
        if not token:
            logger.warning("No Turnstile token provided")
            return False

        try:
            response = await self.http_client.post(
                self.verify_url,
                data={
                    "secret": self.secret_key,
                    "response": token,
                    "remoteip": remote_ip,
                },
            )
            result = response.json()
        except Exception as e:
            logger.error(f"Turnstile verification error: {str(e)}", exc_info=True)
            return False

        if not isinstance(result, dict) or result.get("success") is not True:
            logger.warning(f"Turnstile verification failed: {result}")
            return False
        return True
