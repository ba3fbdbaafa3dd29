"""Shared test fixtures and fakes."""

import asyncio
from typing import Any, Dict, List, Optional

import pytest

from lead_orchestration.agent_core import AgentCore, TurnInput
from lead_orchestration.memory_store import MemoryStore
from lead_orchestration.models import ChatMessage, Plan
from lead_orchestration.validator import FieldValidator


class FakePlanner:
    """Returns queued plans in order; repeats the last one when exhausted."""

    def __init__(self, *plans: Any, delay: float = 0.0) -> None:
        self.plans = [p if isinstance(p, Plan) else Plan.from_raw(p) for p in plans] or [Plan.fallback()]
        self.delay = delay
        self.calls: List[Dict[str, Any]] = []
        self.active = 0
        self.max_active = 0

    async def plan(self, history, known_answers, lang="en") -> Plan:
        self.calls.append({"history": history, "known_answers": dict(known_answers), "lang": lang})
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        finally:
            self.active -= 1
        index = min(len(self.calls) - 1, len(self.plans) - 1)
        return self.plans[index]


class FakeSheetsGateway:
    """Records every write; methods named in ``fail_on`` raise."""

    def __init__(self, fail_on: Optional[set] = None) -> None:
        self.fail_on = fail_on or set()
        self.chat_log: list = []
        self.presales: list = []
        self.lead_rows: list = []

    def _maybe_fail(self, name: str) -> None:
        if name in self.fail_on:
            raise RuntimeError(f"{name} unavailable")

    async def append_chat_log(self, entry) -> None:
        self._maybe_fail("append_chat_log")
        self.chat_log.append(entry)

    async def append_presales(self, phone="", field="", value="", extra="") -> None:
        self._maybe_fail("append_presales")
        self.presales.append((phone, field, value, extra))

    async def update_lead_fixed_row(self, conv_id, answers) -> None:
        self._maybe_fail("update_lead_fixed_row")
        self.lead_rows.append((conv_id, dict(answers)))


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def field_validator():
    return FieldValidator()


@pytest.fixture
def sheets():
    return FakeSheetsGateway()


def make_core(planner, memory_store=None, sheets=None) -> AgentCore:
    return AgentCore(
        memory_store=memory_store if memory_store is not None else MemoryStore(),
        planner=planner,
        validator=FieldValidator(),
        sheets_gateway=sheets if sheets is not None else FakeSheetsGateway(),
    )


def make_turn(
    text: str = "Hi",
    conversation_id: str = "conv-1",
    lang: Optional[str] = "en",
    history: Optional[List[tuple]] = None,
) -> TurnInput:
    """Turn whose history is ``history`` (role, content) pairs plus ``text`` from the user."""
    messages = [ChatMessage(role=role, content=content) for role, content in (history or [])]
    messages.append(ChatMessage(role="user", content=text))
    return TurnInput(
        conversation_id=conversation_id,
        messages=messages,
        lang=lang,
        page="/landing",
        user_agent="pytest",
    )


def run(coro):
    return asyncio.run(coro)
