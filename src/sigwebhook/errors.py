"""sigwebhook exception hierarchy.

All library exceptions inherit from :class:`SignatureWebhookError`.
An invalid signature is not an exception: verification simply returns
``False`` for it.
"""

from __future__ import annotations


class SignatureWebhookError(Exception):
    """Base exception for all sigwebhook errors."""


class ConfigError(SignatureWebhookError):
    """Raised when the signature validator is configured incorrectly.

    Always raised at setup time, before any request is served.
    """


class MalformedBodyError(SignatureWebhookError):
    """Raised when a webhook body is not valid JSON or lacks required fields."""


class VerificationError(SignatureWebhookError):
    """Raised when the verification material cannot be used by the algorithm."""
