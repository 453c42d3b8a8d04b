"""Standalone webhook receiver.

A minimal aiohttp application that accepts signed webhooks on a single
route and logs every verified event. Used by ``sigwebhook serve``.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable

import structlog
from aiohttp import web

from sigwebhook.config import SignatureConfig
from sigwebhook.events import WebhookEvent
from sigwebhook.middleware import get_webhook_event, verified_webhook

logger = structlog.get_logger()

EventCallback = Callable[[WebhookEvent], Awaitable[None]]


async def log_event(event: WebhookEvent) -> None:
    # The event object is not validated; any JSON value may sit under "plate".
    plate = event.event.get("plate") if isinstance(event.event, dict) else None
    logger.info(
        "Webhook event received",
        detected_at=event.detected_at.isoformat(),
        attachments=len(event.attachments),
        plate=plate.get("unicodeText") if isinstance(plate, dict) else None,
    )


def create_app(
    config: SignatureConfig,
    path: str = "/webhook",
    on_event: EventCallback | None = None,
) -> web.Application:
    """Build the receiver application.

    Args:
        config: Signature configuration, resolved immediately.
        path: Route that accepts POSTed webhooks.
        on_event: Coroutine called with each verified event. Defaults to
            logging a summary of the event.

    Returns:
        The aiohttp application.

    Raises:
        ConfigError: If the configuration is invalid.
    """
    callback = on_event or log_event

    @verified_webhook(config)
    async def handle_webhook(request: web.Request) -> web.Response:
        await callback(get_webhook_event(request))
        return web.Response(status=204)

    app = web.Application()
    app.router.add_post(path, handle_webhook)
    return app
