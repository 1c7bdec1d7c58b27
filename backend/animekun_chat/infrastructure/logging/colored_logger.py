"""Colored chat pipeline logger — ANSI-colored console logging for chat requests.

Provides a ChatPipelineLogger with color-coded output per stage of a chat
request, making it easy to follow one conversation turn in the terminal:
request intake, rate limiting, each model step, each tool call, and the
final completion check.

Color scheme:
    🟢 Green   — Request / Completion
    🟡 Yellow  — Rate limiting
    🟣 Magenta — Model steps
    🔵 Blue    — Tool calls
    🟠 Cyan    — Formatting check
    🔴 Red     — Errors
    ⚪ Gray    — Timing / Stats
"""

import logging
from typing import Any


# ── ANSI Color Codes ─────────────────────────────────────────────────

class _Colors:
    """ANSI escape codes for terminal colors."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    MAGENTA = "\033[95m"
    CYAN = "\033[96m"
    GRAY = "\033[90m"


# ── Chat Stage Definitions ───────────────────────────────────────────

class ChatStage:
    """Stages of a chat request with their colors and icons."""

    REQUEST = ("REQUEST", _Colors.GREEN, "💬")
    RATE_LIMIT = ("RATE_LIMIT", _Colors.YELLOW, "⏱️")
    MODEL = ("MODEL", _Colors.MAGENTA, "🤖")
    TOOL = ("TOOL", _Colors.BLUE, "🔧")
    FORMAT = ("FORMAT", _Colors.CYAN, "📝")
    ERROR = ("ERROR", _Colors.RED, "❌")
    COMPLETE = ("COMPLETE", _Colors.GREEN, "✅")


Stage = tuple[str, str, str]


def _details(kwargs: dict[str, Any], color: str) -> str:
    if not kwargs:
        return ""
    return f" {color}({' | '.join(f'{k}={v}' for k, v in kwargs.items())}){_Colors.RESET}"


# ── ChatPipelineLogger ───────────────────────────────────────────────

class ChatPipelineLogger:
    """Color-coded logger for the chat generation pipeline.

    Usage:
        log = ChatPipelineLogger("ChatOrchestrator")
        log.step_start(ChatStage.MODEL, "Step 1", model="google/gemini-2.5-flash")
        log.detail("3 tools called")
        log.step_complete(ChatStage.MODEL, "Step 1 finished", finish_reason="stop")
    """

    def __init__(self, component_name: str):
        self._logger = logging.getLogger(component_name)

    def step_start(self, stage: Stage, message: str, **kwargs: Any) -> None:
        label, color, icon = stage
        self._logger.info(
            "%s",
            f"{color}{_Colors.BOLD}{icon} [{label}]{_Colors.RESET} {color}{message}{_Colors.RESET}"
            + _details(kwargs, _Colors.GRAY),
        )

    def step_complete(self, stage: Stage, message: str, **kwargs: Any) -> None:
        label, color, icon = stage
        self._logger.info(
            "%s",
            f"{color}{icon} [{label}]{_Colors.RESET} {_Colors.GREEN}✓ {message}{_Colors.RESET}"
            + _details(kwargs, _Colors.GRAY),
        )

    def step_warning(self, stage: Stage, message: str, **kwargs: Any) -> None:
        """Log a degraded-but-not-failed step in yellow at WARNING level."""
        label, _, icon = stage
        self._logger.warning(
            "%s",
            f"{_Colors.YELLOW}{_Colors.BOLD}⚠️ [{label}]{_Colors.RESET} "
            f"{_Colors.YELLOW}{message}{_Colors.RESET}" + _details(kwargs, _Colors.DIM),
        )

    def step_error(self, stage: Stage, message: str, error: BaseException | None = None) -> None:
        """Log a step error in red, with the traceback when an exception is given."""
        label, _, _ = stage
        formatted = (
            f"{_Colors.RED}{_Colors.BOLD}❌ [{label}]{_Colors.RESET} "
            f"{_Colors.RED}{message}{_Colors.RESET}"
        )
        if error is not None:
            formatted += f" {_Colors.DIM}→ {type(error).__name__}: {error}{_Colors.RESET}"
        self._logger.error("%s", formatted, exc_info=error)

    def detail(self, message: str, **kwargs: Any) -> None:
        """Log additional detail (gray/dimmed)."""
        self._logger.info(
            "%s", f"   {_Colors.GRAY}├─ {message}{_Colors.RESET}" + _details(kwargs, _Colors.DIM)
        )

    def stats(self, **kwargs: Any) -> None:
        parts = " | ".join(f"{k}: {v}" for k, v in kwargs.items())
        self._logger.info("%s", f"   {_Colors.GRAY}📈 {parts}{_Colors.RESET}")
