"""Pydantic v2 schemas (DTOs) for the chat endpoint."""

import base64
import binascii

from pydantic import BaseModel, Field, field_validator


# ── Attachments ──


class ImageAttachment(BaseModel):
    """An image sent alongside the conversation (e.g. a cover to upload)."""

    base64: str = Field(..., min_length=1, description="Base64 payload, optionally a data: URL")
    name: str = Field(..., min_length=1, description="Original filename")
    type: str = Field(..., pattern=r"^image/[\w.+-]+$", description="MIME type, e.g. image/jpeg")

    @property
    def payload(self) -> str:
        """The raw base64 payload, without any ``data:...;base64,`` prefix."""
        if self.base64.startswith("data:") and "," in self.base64:
            return self.base64.split(",", 1)[1]
        return self.base64

    def decode(self) -> bytes:
        try:
            return base64.b64decode(self.payload, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValueError(f"Attachment '{self.name}' is not valid base64") from exc

    @property
    def approx_size_bytes(self) -> int:
        return len(self.payload) * 3 // 4


# ── Message schema ──


class ChatMessageSchema(BaseModel):
    """One message of the conversation as sent by the chat UI."""

    role: str = Field(..., pattern=r"^(system|user|assistant)$")
    content: str

    @field_validator("content", mode="before")
    @classmethod
    def _flatten_parts(cls, value):
        """Accept AI-SDK style ``[{type: "text", text: ...}]`` content."""
        if isinstance(value, list):
            return "".join(
                part.get("text", "") for part in value
                if isinstance(part, dict) and part.get("type") == "text"
            )
        return value


# ── Request / Response ──


class ChatRequest(BaseModel):
    """Request body of ``POST /api/chat``."""

    messages: list[ChatMessageSchema] = Field(
        ..., min_length=1, description="Conversation messages, most recent last"
    )
    image: ImageAttachment | None = Field(
        default=None, description="Optional image attached to the current turn"
    )


class ErrorResponse(BaseModel):
    """Body of every non-streamed error response."""

    error: str
    message: str
    details: str | None = None
