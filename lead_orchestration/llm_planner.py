# lead_orchestration/llm_planner.py
"""
LLM Planner

Wraps the OpenAI chat-completions call that decides the next question.
Given the widget's history and the answers we already trust, the model
returns JSON with:
- updates        (field key -> raw value it heard in the conversation)
- assistant_text (what to say next)
- next_field     (which field it is asking about)
- done           (whether it thinks the lead is complete)

The planner is untrusted and may be slow or down. ``plan`` always returns
a Plan: on timeout, API error or malformed output it takes the fallback
branch instead of raising.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, List, Mapping, Optional

from openai import AsyncOpenAI, OpenAIError

from .config import settings
from .field_schema import FIELDS, FieldDescriptor, missing_fields, schema_payload
from .models import Plan

logger = logging.getLogger(__name__)

LANG_NAMES = {"en": "English", "hi": "Hindi", "te": "Telugu"}

SYSTEM_PROMPT = """
You are "Saras", iiTuitions' assistant. Use ONLY {lang_name}. Be warm and concise (1–3 sentences).
Ask EXACTLY ONE question per turn. Do not repeat already filled fields.

When the user replies with keywords like "NEET", "JEE", "SAT", "IB", "CBSE", "ICSE", "IIT-Foundation":
- Treat them strictly as SUBJECTS (not area or schedule).

If it's the first turn, show one line then a question:
"We provide 1-on-1 tuitions: Online (Zoom) or Offline Home Tuition. We cover IIT-JEE/NEET (Gr 11–12), SAT (Gr 9–12), IIT-Foundation (from Gr 6), NTSE/Olympiads and school subjects."

Always respond as a JSON object with keys:
- updates        (object; field key -> value the user just gave, only for fields listed in FIELDS)
- assistant_text (string; your reply to the user)
- next_field     (string; key of the field you are asking about, or "")
- done           (boolean; true once every field is filled)
""".strip()


def normalize_plan(raw: Any) -> Plan:
    """Apply the Plan defaults to an already-parsed model response."""
    return Plan.from_raw(raw)


def parse_plan(content: Optional[str]) -> Optional[Plan]:
    """
    Parse the model's JSON text.

    Returns None when the text is not JSON at all; any JSON value is
    normalized into a Plan.
    """
    if not content:
        return None
    try:
        data = json.loads(content)
    except ValueError:
        logger.warning("Planner returned non-JSON content (%d chars)", len(content))
        return None
    return normalize_plan(data)


class LLMPlanner:
    """
    Planner capability backed by OpenAI.

    ``client`` can be injected (tests pass a fake with the same
    ``chat.completions.create`` coroutine).
    """

    def __init__(
        self,
        client: Optional[Any] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        timeout_seconds: Optional[float] = None,
        fields: List[FieldDescriptor] = FIELDS,
    ) -> None:
        if client is None and settings.OPENAI_API_KEY:
            client = AsyncOpenAI(api_key=settings.OPENAI_API_KEY)
        self.client = client
        self.model = model or settings.LLM_PLANNER_MODEL
        self.temperature = settings.LLM_TEMPERATURE if temperature is None else temperature
        self.timeout_seconds = timeout_seconds or settings.LLM_TIMEOUT_SECONDS
        self.fields = fields

    def build_messages(
        self,
        history: List[Dict[str, str]],
        known_answers: Mapping[str, str],
        lang: str,
    ) -> List[Dict[str, str]]:
        lang_name = LANG_NAMES.get(lang, "English")
        state = json.dumps(
            {
                "fields": schema_payload(self.fields),
                "knownAnswers": dict(known_answers),
                "missingFields": [f.key for f in missing_fields(known_answers, self.fields)],
                "lang": lang,
            },
            ensure_ascii=False,
        )
        return [
            {"role": "system", "content": SYSTEM_PROMPT.format(lang_name=lang_name)},
            {"role": "user", "content": f"FIELDS+STATE:\n{state}"},
            *history,
        ]

    async def _complete(self, messages: List[Dict[str, str]]) -> Optional[str]:
        """
        One bounded model call. Returns the message text, or None when the
        call failed or timed out.
        """
        if self.client is None:
            logger.warning("Planner has no OpenAI client configured")
            return None

        try:
            resp = await asyncio.wait_for(
                self.client.chat.completions.create(
                    model=self.model,
                    temperature=self.temperature,
                    response_format={"type": "json_object"},
                    messages=messages,
                ),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning("Planner timed out after %.1fs", self.timeout_seconds)
            return None
        except OpenAIError as exc:
            logger.warning("Planner call failed: %s", exc)
            return None

        # The SDK shape is stable, but a proxy or a fake may hand back less.
        choices = getattr(resp, "choices", None) or []
        if not choices:
            return None
        message = getattr(choices[0], "message", None)
        return getattr(message, "content", None)

    async def plan(
        self,
        history: List[Dict[str, str]],
        known_answers: Mapping[str, str],
        lang: str = "en",
    ) -> Plan:
        """Ask the model for this turn's plan; never raises for model failures."""
        content = await self._complete(self.build_messages(history, known_answers, lang))
        plan = parse_plan(content)
        if plan is None:
            logger.info("Using fallback plan")
            return Plan.fallback()
        return plan
