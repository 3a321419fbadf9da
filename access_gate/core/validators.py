"""
Input Validators and Normalizers

This module provides validation and normalization functions for user inputs
and for entries loaded from the remote document repository.
"""

import re
from typing import Any

# local@domain.tld with no whitespace and a single '@'
EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')


def is_blank(value: Any) -> bool:
    """
    Return True for None, empty or whitespace-only strings.

    Any other value (numbers, booleans, lists) counts as filled in.
    """
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    return False


def is_valid_email(email: str) -> bool:
    """
    Basic syntactic email check.

    Only verifies the `local@domain.tld` shape. Deliverability is not checked,
    membership of the allow-list is what actually grants access.
    """
    if not email or not isinstance(email, str):
        return False
    return EMAIL_PATTERN.match(email) is not None


def normalize_email(email: str) -> str:
    """Lower-case an email for allow-list comparison."""
    return email.strip().lower()


def is_http_url(url: str) -> bool:
    """Loose scheme check used for line-oriented redirect lists."""
    return bool(url) and url.startswith("http")
