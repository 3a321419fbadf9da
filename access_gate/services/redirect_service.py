"""
Redirect Service

Picks the redirect target for an authorized request.

Design Decisions:
- Uniform random choice over the configured pool on every request
- The email is appended verbatim (as typed, not lower-cased) to the end of
  the chosen URL; pool entries are expected to end with the query
  parameter that receives it (e.g. https://host/path?u=)
- An empty pool is a configuration fault, not an access decision
"""

import random
from typing import Optional

from access_gate.core.exceptions import ConfigurationFault
from access_gate.services.access_lists import AccessListService

NO_REDIRECT_URLS_MESSAGE = "No redirect URLs available"


def build_redirect_url(target: str, email: str) -> str:
    return f"{target}{email}"


class RedirectService:
    """Chooses a target from the redirect pool."""

    def __init__(self, access_lists: AccessListService, rng: Optional[random.Random] = None):
        """
        Args:
            access_lists: Source of the redirect pool
            rng: Random generator (seeded in tests)
        """
        self.access_lists = access_lists
        self.rng = rng or random.Random()

    async def get_redirect_url(self, email: str) -> str:
        """
        Final redirect URL for email.

        Raises:
            ConfigurationFault: If the redirect pool is empty
        """
        pool = await self.access_lists.get_redirect_pool()
        if not pool:
            raise ConfigurationFault(NO_REDIRECT_URLS_MESSAGE)
        return build_redirect_url(self.rng.choice(pool), email)
