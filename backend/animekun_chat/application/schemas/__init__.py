from .chat import (
    ChatMessageSchema,
    ChatRequest,
    ErrorResponse,
    ImageAttachment,
)

__all__ = [
    "ChatMessageSchema",
    "ChatRequest",
    "ErrorResponse",
    "ImageAttachment",
]
