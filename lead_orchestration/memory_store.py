# lead_orchestration/memory_store.py
"""
MemoryStore

In-memory Session store keyed by conversation id.

- Sessions are created lazily on the first turn and never evicted;
  a restart loses them.
- Writes are merge-only: keys are overwritten, never removed.
- Each conversation has an asyncio.Lock so two turns for the same
  conversation run one after the other instead of racing on answers.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Mapping

from .session_context import Session

logger = logging.getLogger(__name__)


class MemoryStore:
    """
    Dictionary-based session store for a single process.

    Create one at startup and hand it to AgentCore.
    """

    def __init__(self) -> None:
        self._sessions: Dict[str, Session] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, conversation_id: str) -> bool:
        return conversation_id in self._sessions

    def ensure(self, conversation_id: str) -> Session:
        """Get or create the session for ``conversation_id``."""
        session = self._sessions.get(conversation_id)
        if session is None:
            session = Session(conversation_id=conversation_id)
            self._sessions[conversation_id] = session
            logger.debug("Session created for %s", conversation_id)
        return session

    def lock(self, conversation_id: str) -> asyncio.Lock:
        """Per-conversation lock; turns for different ids never contend."""
        lock = self._locks.get(conversation_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[conversation_id] = lock
        return lock

    @staticmethod
    def merge(session: Session, updates: Mapping[str, str]) -> None:
        """Overwrite the keys present in ``updates``; leave the rest alone."""
        if updates:
            session.answers.update(updates)

    @staticmethod
    def snapshot(session: Session) -> Dict[str, str]:
        return dict(session.answers)
