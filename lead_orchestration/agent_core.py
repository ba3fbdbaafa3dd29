# lead_orchestration/agent_core.py
"""
AgentCore

The turn pipeline of the lead-capture assistant.

Responsibilities:
- Resolve the Session for the conversation (MemoryStore).
- Ask the planner for a Plan (LLMPlanner).
- Run every proposed update through the FieldValidator; nothing the
  model says reaches the session unvalidated.
- Merge the accepted updates in one step.
- Pick the reply: a corrective prompt beats the planner's text.
- Log the transcript, mirror the phone to presales and overwrite the
  fixed lead row (SheetsGateway), best-effort.

This module does NOT:
- Deal with HTTP / FastAPI or SSE framing (app.py).
- Talk to OpenAI or Google directly.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional

from .field_schema import FIELDS, FieldDescriptor, field_keys
from .llm_planner import LLMPlanner
from .logging_context import set_conv_id
from .memory_store import MemoryStore
from .models import FALLBACK_TEXT, ChatMessage, Plan
from .session_context import Session
from .sheets_gateway import SheetsGateway, TranscriptEntry
from .utils import only_digits
from .validator import FieldValidator, resolve_lang

logger = logging.getLogger(__name__)


@dataclass
class TurnInput:
    """One inbound turn, transport already stripped."""
    conversation_id: str
    messages: List[ChatMessage] = field(default_factory=list)
    lang: Optional[str] = None
    page: str = ""
    user_agent: str = ""


@dataclass
class TurnResult:
    reply: str
    conversation_id: str
    answers: Dict[str, str]
    done: bool = False
    rejected_fields: List[str] = field(default_factory=list)


@dataclass
class ValidatedUpdates:
    accepted: Dict[str, str] = field(default_factory=dict)
    rejected: List[str] = field(default_factory=list)
    # Last rejection wins; no ranking between several bad fields.
    corrective_prompt: str = ""


class AgentCore:
    """
    The core orchestrator engine.

    Create once at startup; the same instance serves /chat and
    /chat_stream so both delivery paths share this pipeline.
    """

    def __init__(
        self,
        memory_store: MemoryStore,
        planner: LLMPlanner,
        validator: FieldValidator,
        sheets_gateway: SheetsGateway,
        fields: List[FieldDescriptor] = FIELDS,
    ) -> None:
        self.memory_store = memory_store
        self.planner = planner
        self.validator = validator
        self.sheets_gateway = sheets_gateway
        self.fields = fields
        self._known_keys = set(field_keys(fields))

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------
    async def handle_turn(self, turn: TurnInput) -> TurnResult:
        """
        Run one turn end to end.

        Turns for the same conversation are serialized on the store's
        per-conversation lock.
        """
        set_conv_id(turn.conversation_id)
        async with self.memory_store.lock(turn.conversation_id):
            return await self._run_turn(turn)

    # -------------------------------------------------------------------------
    # Pipeline
    # -------------------------------------------------------------------------
    async def _run_turn(self, turn: TurnInput) -> TurnResult:
        started = time.monotonic()
        lang = resolve_lang(turn.lang)

        # 1) Resolve / create session
        session = self.memory_store.ensure(turn.conversation_id)
        session.touch(datetime.now(timezone.utc))

        # 2) Last user message, for the transcript only
        last_user = self._last_user_message(turn.messages)

        # 3) Plan
        history = [{"role": m.role, "content": m.content} for m in turn.messages]
        plan = await self._plan_turn(history, self.memory_store.snapshot(session), lang)

        # 4) Validate, 5) merge once
        checked = self.validate_plan(plan, lang)
        self.memory_store.merge(session, checked.accepted)

        # 6) Clean phone from the (possibly updated) answers
        phone = self.clean_phone(session.answers)

        # 7) Reply
        reply = self.compose_reply(plan, checked)

        latency_ms = int((time.monotonic() - started) * 1000)
        logger.info(
            "Turn %d: accepted=%s rejected=%s next=%s latency=%dms",
            session.turn_count,
            sorted(checked.accepted),
            checked.rejected,
            plan.next_field or "-",
            latency_ms,
        )

        # 8) Persistence (never fails the turn)
        await self._persist_turn(
            session=session,
            turn=turn,
            lang=lang,
            user_message=last_user,
            reply=reply,
            phone=phone,
            latency_ms=latency_ms,
        )

        # 9) Result
        return TurnResult(
            reply=reply,
            conversation_id=turn.conversation_id,
            answers=self.memory_store.snapshot(session),
            done=plan.done,
            rejected_fields=checked.rejected,
        )

    async def _plan_turn(
        self, history: List[Dict[str, str]], answers: Dict[str, str], lang: str
    ) -> Plan:
        """
        Ask the planner for a Plan. Any planner failure becomes the fallback
        plan, and a raw (non-Plan) result is normalized here.
        """
        try:
            result = await self.planner.plan(history=history, known_answers=answers, lang=lang)
        except Exception:
            logger.exception("Planner failed; using fallback plan")
            return Plan.fallback()
        if isinstance(result, Plan):
            return result
        return Plan.from_raw(result)

    def validate_plan(self, plan: Plan, lang: str) -> ValidatedUpdates:
        """Run every proposed update through the validator."""
        checked = ValidatedUpdates()
        for key, raw_value in plan.updates.items():
            if key not in self._known_keys:
                logger.warning("Planner proposed unknown field %r; ignored", key)
                continue
            result = self.validator.validate(key, raw_value, lang)
            if result.accepted:
                checked.accepted[key] = result.value or ""
            else:
                logger.debug("Rejected %s=%r", key, raw_value)
                checked.rejected.append(key)
                checked.corrective_prompt = result.prompt or ""
        return checked

    @staticmethod
    def compose_reply(plan: Plan, checked: ValidatedUpdates) -> str:
        if checked.corrective_prompt:
            return checked.corrective_prompt
        return plan.assistant_text or FALLBACK_TEXT

    @staticmethod
    def clean_phone(answers: Dict[str, str]) -> str:
        digits = only_digits(answers.get("phone", ""))
        return digits if len(digits) == 10 else ""

    @staticmethod
    def _last_user_message(messages: List[ChatMessage]) -> str:
        for message in reversed(messages):
            if message.role == "user":
                return message.content
        return ""

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------
    async def _persist_turn(
        self,
        *,
        session: Session,
        turn: TurnInput,
        lang: str,
        user_message: str,
        reply: str,
        phone: str,
        latency_ms: int,
    ) -> None:
        """
        Transcript lines, presales mirror and the fixed lead row.

        Each write is attempted on its own; a failure is logged and the
        remaining writes still run. Nothing here is raised to the caller.
        """
        conv_id = session.conversation_id
        common = dict(
            conversation_id=conv_id,
            phone=phone,
            page=turn.page,
            user_agent=turn.user_agent,
            lang=lang,
        )
        writes = [
            ("chat_log:user", self.sheets_gateway.append_chat_log(
                TranscriptEntry(role="user", message=user_message, **common)
            )),
            ("chat_log:assistant", self.sheets_gateway.append_chat_log(
                TranscriptEntry(role="assistant", message=reply, latency_ms=latency_ms, **common)
            )),
        ]
        if phone:
            writes.append(("presales", self.sheets_gateway.append_presales(
                phone=phone, field="phone", value=phone, extra="chat"
            )))
        writes.append(("leads", self.sheets_gateway.update_lead_fixed_row(
            conv_id, self.memory_store.snapshot(session)
        )))

        for name, write in writes:
            try:
                await write
            except Exception:
                logger.exception("Sheets write %s failed", name)
