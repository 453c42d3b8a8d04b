"""sigwebhook - Signature validation for Vehicle Detector webhooks.

Checks the JWA signature carried in the ``x-signature`` header of inbound
webhook requests and parses verified bodies into typed events.

Supported Algorithms:
- Symmetric: HS256, HS384, HS512 (shared secret)
- Asymmetric: RS256/384/512, PS256/384/512, ES256/384/512 (PEM public key)

Usage:
    from aiohttp import web
    from sigwebhook import (
        SymmetricSignatureConfig,
        get_webhook_event,
        webhook_signature_middleware,
    )

    config = SymmetricSignatureConfig(algorithm="HS256", secret="shared-secret")

    async def handle(request: web.Request) -> web.Response:
        event = get_webhook_event(request)
        print(event.detected_at, len(event.attachments))
        return web.Response(status=204)

    app = web.Application(middlewares=[webhook_signature_middleware(config)])
    app.router.add_post("/webhook", handle)

Other frameworks:
    from sigwebhook import verify_signature

    if verify_signature(raw_body, signature_header, config):
        ...
"""

from sigwebhook.algorithms import (
    ASYMMETRIC_ALGORITHMS,
    SUPPORTED_ALGORITHMS,
    SYMMETRIC_ALGORITHMS,
    Algorithm,
    AlgorithmFamily,
    AsymmetricAlgorithm,
    SymmetricAlgorithm,
    family_of,
    is_asymmetric,
    is_symmetric,
)
from sigwebhook.config import (
    AsymmetricSignatureConfig,
    ResolvedConfig,
    SignatureConfig,
    SymmetricSignatureConfig,
    WebhookSettings,
    resolve_config,
    signature_config,
)
from sigwebhook.errors import (
    ConfigError,
    MalformedBodyError,
    SignatureWebhookError,
    VerificationError,
)
from sigwebhook.events import (
    APIResult,
    Attachment,
    Color,
    Coords,
    MMRCategory,
    MMRResult,
    PlateCategory,
    PlateChar,
    PlateResult,
    RegionOfInterest,
    WebhookEvent,
    parse_event,
)
from sigwebhook.middleware import (
    SIGNATURE_HEADER,
    WEBHOOK_EVENT_KEY,
    WEBHOOK_RAW_BODY_KEY,
    WebhookSignatureValidator,
    collect_body,
    get_webhook_event,
    verified_webhook,
    webhook_signature_middleware,
)
from sigwebhook.verifier import verify, verify_signature

__version__ = "1.0.0"

__all__ = [
    # Algorithms
    "Algorithm",
    "AlgorithmFamily",
    "SymmetricAlgorithm",
    "AsymmetricAlgorithm",
    "SYMMETRIC_ALGORITHMS",
    "ASYMMETRIC_ALGORITHMS",
    "SUPPORTED_ALGORITHMS",
    "family_of",
    "is_symmetric",
    "is_asymmetric",
    # Configuration
    "SignatureConfig",
    "SymmetricSignatureConfig",
    "AsymmetricSignatureConfig",
    "ResolvedConfig",
    "WebhookSettings",
    "resolve_config",
    "signature_config",
    # Errors
    "SignatureWebhookError",
    "ConfigError",
    "MalformedBodyError",
    "VerificationError",
    # Events
    "WebhookEvent",
    "Attachment",
    "APIResult",
    "MMRResult",
    "MMRCategory",
    "PlateResult",
    "PlateChar",
    "PlateCategory",
    "Color",
    "RegionOfInterest",
    "Coords",
    "parse_event",
    # Verification
    "verify",
    "verify_signature",
    # aiohttp
    "SIGNATURE_HEADER",
    "WEBHOOK_EVENT_KEY",
    "WEBHOOK_RAW_BODY_KEY",
    "WebhookSignatureValidator",
    "collect_body",
    "get_webhook_event",
    "verified_webhook",
    "webhook_signature_middleware",
]
