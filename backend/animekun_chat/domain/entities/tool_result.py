"""The uniform envelope returned by every tool execution."""

from dataclasses import dataclass
from typing import Any


@dataclass
class ToolResult:
    """Result of one tool execution.

    Serialized without ``None`` fields so the model only sees what was set.
    """

    success: bool
    data: Any = None
    error: str | None = None
    message: str | None = None

    @classmethod
    def ok(cls, data: Any = None, message: str | None = None) -> "ToolResult":
        return cls(success=True, data=data, message=message)

    @classmethod
    def fail(cls, error: str, data: Any = None, message: str | None = None) -> "ToolResult":
        return cls(success=False, data=data, error=error, message=message)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"success": self.success}
        if self.data is not None:
            result["data"] = self.data
        if self.error is not None:
            result["error"] = self.error
        if self.message is not None:
            result["message"] = self.message
        return result
