# lead_orchestration/logging_context.py
"""
Conversation-id logging context.

Every turn runs inside its own asyncio task (one per request), so a
ContextVar is enough to tag all log records emitted while handling it.

The filter is attached to the root handlers by config.configure_logging,
so every module logger gets ``%(conv_id)s`` without extra setup.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar

_conv_id: ContextVar[str] = ContextVar("conv_id", default="-")


def set_conv_id(conv_id: str) -> None:
    """Set the conversation id for the current async context."""
    _conv_id.set(conv_id or "-")


def get_conv_id() -> str:
    return _conv_id.get()


class ConversationIdFilter(logging.Filter):
    """Injects ``conv_id`` into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.conv_id = _conv_id.get()  # type: ignore[attr-defined]
        return True

