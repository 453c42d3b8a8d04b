"""aiohttp integration for webhook signature validation.

Each request goes through the same steps: the ``x-signature`` header is
checked, the body is buffered, the signature is verified and the body is
parsed into a :class:`~sigwebhook.events.WebhookEvent`. Handlers only run for
verified requests and read the event with :func:`get_webhook_event`.

Responses sent by the validator:
- 401 "Unauthorized: missing or duplicate signature header."
- 401 "Unauthorized: invalid signature."
- 500 "Internal Server Error" for any failure while buffering, verifying or
  parsing. Details are logged, never sent to the client.

Usage:
    from aiohttp import web
    from sigwebhook import SymmetricSignatureConfig, webhook_signature_middleware

    config = SymmetricSignatureConfig(algorithm="HS256", secret="shared")
    app = web.Application(middlewares=[webhook_signature_middleware(config)])

    # Or protect a single route
    @verified_webhook(config)
    async def handle(request: web.Request) -> web.Response:
        event = get_webhook_event(request)
        ...
"""

from __future__ import annotations

import functools
from collections.abc import AsyncIterable, Awaitable, Callable

import structlog
from aiohttp import web

from sigwebhook.config import (
    ResolvedConfig,
    SignatureConfig,
    describe_config,
    resolve_config,
)
from sigwebhook.events import WebhookEvent, parse_event
from sigwebhook.verifier import verify

logger = structlog.get_logger()

SIGNATURE_HEADER = "x-signature"

WEBHOOK_EVENT_KEY = web.RequestKey("webhook_event", WebhookEvent)
WEBHOOK_RAW_BODY_KEY = web.RequestKey("webhook_raw_body", bytes)

MISSING_SIGNATURE_MESSAGE = "Unauthorized: missing or duplicate signature header."
INVALID_SIGNATURE_MESSAGE = "Unauthorized: invalid signature."
INTERNAL_ERROR_MESSAGE = "Internal Server Error"

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]
Middleware = Callable[[web.Request, Handler], Awaitable[web.StreamResponse]]


async def collect_body(chunks: AsyncIterable[bytes]) -> bytes:
    """Accumulate body chunks, in arrival order, until the stream ends."""
    buffer = bytearray()
    async for chunk in chunks:
        buffer.extend(chunk)
    return bytes(buffer)


def get_webhook_event(request: web.Request) -> WebhookEvent:
    """Return the event attached to a verified request.

    Raises:
        KeyError: If the request did not pass through the validator.
    """
    return request[WEBHOOK_EVENT_KEY]


class WebhookSignatureValidator:
    """Validates webhook signatures for aiohttp requests.

    The configuration is resolved when the validator is created, so a bad
    algorithm, a missing secret or a missing key file raises
    :class:`~sigwebhook.errors.ConfigError` before the application starts.
    """

    def __init__(self, config: SignatureConfig) -> None:
        self._config = resolve_config(config)
        describe_config(self._config)

    @property
    def config(self) -> ResolvedConfig:
        return self._config

    async def __call__(
        self,
        request: web.Request,
        handler: Handler,
    ) -> web.StreamResponse:
        signatures = request.headers.getall(SIGNATURE_HEADER, [])
        if len(signatures) != 1:
            return self._reject(request, MISSING_SIGNATURE_MESSAGE, count=len(signatures))

        try:
            raw_body = await collect_body(request.content.iter_any())

            if not verify(raw_body, signatures[0], self._config):
                return self._reject(request, INVALID_SIGNATURE_MESSAGE)

            logger.debug("Signature is valid", path=request.path)
            request[WEBHOOK_RAW_BODY_KEY] = raw_body
            request[WEBHOOK_EVENT_KEY] = parse_event(raw_body)
        except Exception:
            logger.exception(
                "Webhook request processing failed",
                path=request.path,
                algorithm=self._config.algorithm,
            )
            return web.Response(text=INTERNAL_ERROR_MESSAGE, status=500)

        return await handler(request)

    def _reject(self, request: web.Request, message: str, **details: object) -> web.Response:
        logger.warning(
            "Webhook request rejected",
            path=request.path,
            reason=message,
            **details,
        )
        return web.Response(text=message, status=401)


def webhook_signature_middleware(config: SignatureConfig) -> Middleware:
    """Create an aiohttp middleware that validates every request.

    Args:
        config: The configuration for the signature validator.

    Returns:
        The configured middleware.

    Raises:
        ConfigError: If the configuration is invalid.
    """
    validator = WebhookSignatureValidator(config)

    @web.middleware
    async def signature_middleware(
        request: web.Request,
        handler: Handler,
    ) -> web.StreamResponse:
        return await validator(request, handler)

    return signature_middleware


def verified_webhook(config: SignatureConfig) -> Callable[[Handler], Handler]:
    """Decorate a single route handler with signature validation.

    Raises:
        ConfigError: If the configuration is invalid.
    """
    validator = WebhookSignatureValidator(config)

    def decorator(handler: Handler) -> Handler:
        @functools.wraps(handler)
        async def wrapper(request: web.Request) -> web.StreamResponse:
            return await validator(request, handler)

        return wrapper

    return decorator
