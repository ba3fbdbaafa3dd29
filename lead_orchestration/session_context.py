# lead_orchestration/session_context.py
"""
Session

Accumulated, validated answers of one conversation plus a little
lifecycle metadata. Only the MemoryStore merges into ``answers``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Session:
    """
    conversation_id: opaque id chosen by the widget (or generated).
    answers: field key -> normalized value; every value passed validation.
    """
    conversation_id: str
    answers: Dict[str, str] = field(default_factory=dict)
    created_at: datetime = field(default_factory=_utcnow)
    last_seen_at: datetime = field(default_factory=_utcnow)
    turn_count: int = 0

    def touch(self, now: datetime) -> None:
        """Record activity for this conversation."""
        self.last_seen_at = now
        self.turn_count += 1
