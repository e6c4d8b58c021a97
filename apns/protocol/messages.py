from __future__ import annotations

import json
from datetime import timedelta
from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from . import validator
from .commands import Command, describe_status
from .constants import ENCODING, MAX_FIELD_SIZE

U32_MAX = 0xFFFFFFFF


class PushPacket(BaseModel):
    """Fields shared by both notification commands."""

    model_config = ConfigDict(frozen=True)

    token: bytes
    payload: bytes

    @field_validator("token", "payload")
    @classmethod
    def fit_length_prefix(cls, value: bytes) -> bytes:
        if len(value) > MAX_FIELD_SIZE:
            raise ValueError(f"field of {len(value)} bytes does not fit a u16 length prefix")
        return value


class LegacyPush(PushPacket):
    """Command 0 notification: no transaction id, no expiry."""

    kind: Literal["legacy"] = "legacy"

    @property
    def command(self) -> Command:
        return Command.LEGACY_PUSH


class ExtendedPush(PushPacket):
    """Command 1 notification carrying a transaction id and a relative expiry."""

    kind: Literal["extended"] = "extended"
    transaction_id: int = Field(ge=0, le=U32_MAX)
    expiration: timedelta = Field(default=timedelta(0), description="Added to the current UTC time")

    @property
    def command(self) -> Command:
        return Command.EXTENDED_PUSH


OutboundPacket = Annotated[Union[LegacyPush, ExtendedPush], Field(discriminator="kind")]


class ErrorResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    command: int
    status: int
    transaction_id: Optional[int] = None
    raw: bytes = b""

    @property
    def status_text(self) -> str:
        return describe_status(self.status)


class FeedbackRecord(BaseModel):
    """A device token the feedback service reports as unreachable."""

    model_config = ConfigDict(frozen=True)

    timestamp: int = Field(ge=0, le=U32_MAX, description="Unix timestamp (seconds)")
    device_token: str = Field(..., description="Lowercase hex of the raw token bytes")

    def as_pair(self) -> tuple[int, str]:
        return self.timestamp, self.device_token


class PushReceipt(BaseModel):
    """Returned when the gateway did not reject a notification within the read window."""

    transaction_id: int
    expires_at: int
    device_token: str


class NotificationPayload(BaseModel):
    model_config = ConfigDict(extra="forbid")

    alert: Optional[Union[str, Dict[str, Any]]] = None
    badge: Optional[int] = Field(default=None, ge=0)
    sound: Optional[str] = None
    content_available: bool = False
    category: Optional[str] = None
    custom: Dict[str, Any] = Field(default_factory=dict, description="Extra top-level keys next to aps")

    @model_validator(mode="after")
    def check_custom_keys(self) -> "NotificationPayload":
        if "aps" in self.custom:
            raise ValueError("custom keys may not override the aps dictionary")
        return self

    def to_dict(self) -> Dict[str, Any]:
        aps: Dict[str, Any] = {}
        if self.alert is not None:
            aps["alert"] = self.alert
        if self.badge is not None:
            aps["badge"] = self.badge
        if self.sound is not None:
            aps["sound"] = self.sound
        if self.content_available:
            aps["content-available"] = 1
        if self.category is not None:
            aps["category"] = self.category
        return {"aps": aps, **self.custom}

    def to_bytes(self) -> bytes:
        return encode_payload(self.to_dict())


def encode_payload(message: Dict[str, Any]) -> bytes:
    """Validate an APNs JSON dictionary and serialise it compactly."""
    validator.validate_payload(message)
    return json.dumps(message, ensure_ascii=False, separators=(",", ":")).encode(ENCODING)


__all__ = [
    "PushPacket",
    "LegacyPush",
    "ExtendedPush",
    "OutboundPacket",
    "ErrorResponse",
    "FeedbackRecord",
    "PushReceipt",
    "NotificationPayload",
    "encode_payload",
]
