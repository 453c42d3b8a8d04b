"""Vehicle Detector webhook events.

A verified webhook body looks like::

    {
        "detectionTimestamp": 1668171698000,
        "event": {"mmr": {...}, "plate": {...}},
        "attachments": [{"mimeType": "image/jpeg", "data": "<base64>"}]
    }

:func:`parse_event` turns it into a :class:`WebhookEvent` with a UTC
``detected_at`` and decoded attachment bytes. The ``event`` object is passed
through exactly as received; the ``TypedDict`` records below only describe
its usual shape.
"""

from __future__ import annotations

import base64
import binascii
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Literal, TypedDict, cast

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from sigwebhook.errors import MalformedBodyError

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

MMRCategory = Literal["UNK", "BUS", "CAR", "HVT", "LGT", "VAN"]

PlateCategory = Literal[
    "NONE",
    "COMMON",
    "CUSTOM",
    "TAXI",
    "DIPLOMATIC",
    "EXPORT",
    "OLD_TIMER",
    "MOTORCYCLE",
    "PUBLIC_TRANSPORT",
    "COMMERCIAL",
    "POLICE",
    "GOVERNMENT",
    "PROBATION",
    "DRIVING_SCHOOL",
    "TRAILER",
    "ARMY",
    "CONSULAR",
    "EQUIPMENT",
    "SECURITY_FORCES",
    "PRIVATE_TRANSPORT",
    "UNDER_EXPERIMENT",
    "EMIRI_GUARDS",
    "UN",
    "LIMOUSINE",
    "TEMP_TRANSIT",
]


class Coords(TypedDict):
    """Coordinates of a point in the input image."""

    x: int
    y: int


class RegionOfInterest(TypedDict):
    """A quadrangular region of interest in the input image."""

    bottomLeft: Coords
    bottomRight: Coords
    topLeft: Coords
    topRight: Coords


class Color(TypedDict):
    """An RGB color."""

    r: int
    g: int
    b: int


class PlateChar(TypedDict):
    """A single character in a plate."""

    bgColor: Color
    color: Color
    charROI: RegionOfInterest
    code: int
    confidence: int


class PlateResult(TypedDict, total=False):
    """Plate recognition result."""

    found: bool
    bgColor: Color
    color: Color
    category: PlateCategory
    confidence: int
    country: str
    plateChars: list[PlateChar]
    plateROI: RegionOfInterest
    plateType: int
    plateTypeConfidence: int
    positionConfidence: int
    proctime: int
    state: str | None
    unicodeText: str


class MMRResult(TypedDict, total=False):
    """Make and model recognition result."""

    found: bool
    category: MMRCategory
    categoryConfidence: int
    color: Color
    colorConfidence: int
    make: str
    makeConfidence: int
    model: str
    modelConfidence: int
    heading: str
    headingConfidence: int
    proctime: int


class APIResult(TypedDict, total=False):
    """The API result as received by the Vehicle Detector Agent."""

    mmr: MMRResult
    plate: PlateResult


@dataclass(frozen=True)
class Attachment:
    """A binary file attachment."""

    mime_type: str
    data: bytes


@dataclass(frozen=True)
class WebhookEvent:
    """A verified webhook event handed to route handlers."""

    detected_at: datetime
    attachments: tuple[Attachment, ...]
    event: APIResult


class _RawAttachment(BaseModel):
    model_config = ConfigDict(extra="ignore")

    mime_type: str = Field(alias="mimeType")
    data: str


class WebhookRequestBody(BaseModel):
    """Wire format of a webhook request body."""

    model_config = ConfigDict(extra="ignore")

    detection_timestamp: int = Field(alias="detectionTimestamp")
    attachments: list[_RawAttachment]
    event: dict[str, Any]


_NON_BASE64 = re.compile(r"[^A-Za-z0-9+/\-_]")


def decode_attachment_data(data: str) -> bytes:
    """Decode base64 attachment data.

    Accepts both the standard and the URL-safe alphabet, with or without
    padding. Characters outside both alphabets (whitespace, line breaks,
    padding) are ignored, and a dangling final character that cannot form a
    byte is dropped.

    Raises:
        MalformedBodyError: If what remains cannot be decoded.
    """
    cleaned = _NON_BASE64.sub("", data)
    if len(cleaned) % 4 == 1:
        cleaned = cleaned[:-1]
    cleaned += "=" * (-len(cleaned) % 4)
    try:
        return base64.b64decode(cleaned, altchars=b"-_", validate=True)
    except binascii.Error as e:
        raise MalformedBodyError(f"Attachment data is not valid base64: {e}") from e


def timestamp_to_datetime(milliseconds: int) -> datetime:
    """Convert a millisecond Unix timestamp to an aware UTC datetime, exactly."""
    try:
        return EPOCH + timedelta(milliseconds=milliseconds)
    except OverflowError as e:
        raise MalformedBodyError(
            f"Detection timestamp {milliseconds} is out of range"
        ) from e


def parse_event(raw_body: str | bytes) -> WebhookEvent:
    """Parse a verified webhook body.

    Args:
        raw_body: The request body as text or UTF-8 bytes.

    Returns:
        WebhookEvent with decoded attachments, in their original order.

    Raises:
        MalformedBodyError: If the body is not valid JSON, lacks a required
            field, or carries undecodable attachment data.
    """
    try:
        body = WebhookRequestBody.model_validate_json(raw_body)
    except ValidationError as e:
        raise MalformedBodyError(f"Invalid webhook body: {e}") from e

    attachments = tuple(
        Attachment(
            mime_type=attachment.mime_type,
            data=decode_attachment_data(attachment.data),
        )
        for attachment in body.attachments
    )

    return WebhookEvent(
        detected_at=timestamp_to_datetime(body.detection_timestamp),
        attachments=attachments,
        event=cast(APIResult, body.event),
    )
