"""
Custom Exceptions

This module defines the failure taxonomy of the access gate.

- TransportFailure: a store or remote endpoint could not be reached. Raised
  by KeyValueStore.get/put and by document fetch attempts; always handled
  inside the service layer and degraded to a safe default.
- ValidationFailure: malformed or missing input, reported with its message.
- AuthorizationFailure: honeypot, bot verification, deny-list or allow-list
  rejection. The reason is kept for logging only; clients always see the
  same generic message.
- ConfigurationFault: the deployment is misconfigured (no redirect targets).
"""

GENERIC_DENIAL_MESSAGE = "Access denied"


class AccessGateException(Exception):
    """Base exception for the access gate service."""
    pass


class TransportFailure(AccessGateException):
    """Raised when the key-value store or a remote endpoint is unreachable."""

    def __init__(self, target: str, original_error: Exception = None):
        self.target = target
        self.original_error = original_error
        super().__init__(f"Transport failure talking to {target}: {original_error}")


class ValidationFailure(AccessGateException):
    """Raised when request input is missing or malformed."""

    status_code = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class AuthorizationFailure(AccessGateException):
    """Raised when a request is refused access."""

    status_code = 403

    def __init__(self, reason: str):
        self.reason = reason
        self.message = GENERIC_DENIAL_MESSAGE
        super().__init__(f"{GENERIC_DENIAL_MESSAGE}: {reason}")


class ConfigurationFault(AccessGateException):
    """Raised when the deployment cannot serve a valid request."""

    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)
