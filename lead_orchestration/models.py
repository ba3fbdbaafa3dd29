# lead_orchestration/models.py
"""
Pydantic models for the HTTP payloads and the planner's Plan.

Field aliases keep the camelCase names the chat widget already sends
(``convId``, ``userAgent``...).
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Role = Literal["user", "assistant"]

FALLBACK_TEXT = "Okay."


def _cell(value: Any) -> str:
    # JSON booleans are stored the way they were sent.
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class ChatMessage(BaseModel):
    """One entry of the conversation history kept by the widget."""
    role: Role
    content: str = ""


class ChatRequest(BaseModel):
    """
    Incoming turn from the chat widget (both /chat and /chat_stream).
    """
    model_config = ConfigDict(populate_by_name=True)

    conv_id: Optional[str] = Field(None, alias="convId", description="Conversation id; generated if absent")
    messages: List[ChatMessage] = Field(default_factory=list, description="Full history, oldest first")
    lang: Optional[str] = Field(None, description="Language tag: en, hi or te")
    page: str = Field("", description="Page the widget is embedded in")
    user_agent: str = Field("", alias="userAgent")


class ChatResponse(BaseModel):
    """Outgoing payload of the synchronous /chat variant."""
    model_config = ConfigDict(populate_by_name=True)

    reply: str
    conv_id: str = Field(..., alias="convId")
    answers: Dict[str, str] = Field(default_factory=dict)
    done: bool = False


class LogMessageRequest(BaseModel):
    """Transcript line reported directly by the widget (/tool/log_message)."""
    model_config = ConfigDict(populate_by_name=True)

    conversation_id: str = Field("", alias="conversationId")
    role: str = ""
    text: str = ""
    phone: str = ""
    latency_ms: Optional[float] = Field(None, alias="latencyMs")
    page: str = ""
    user_agent: str = Field("", alias="userAgent")
    lang: str = ""


class Plan(BaseModel):
    """
    The planner's proposal for one turn. Untrusted: ``updates`` still has
    to pass the FieldValidator.
    """
    updates: Dict[str, str] = Field(default_factory=dict)
    assistant_text: str = FALLBACK_TEXT
    next_field: str = ""
    done: bool = False

    @classmethod
    def fallback(cls) -> "Plan":
        return cls()

    @classmethod
    def from_raw(cls, raw: Any) -> "Plan":
        """
        Defensively coerce whatever the model returned into a Plan.

        Wrong-shaped properties fall back individually; a non-object
        response falls back entirely.
        """
        if not isinstance(raw, dict):
            return cls.fallback()

        updates = raw.get("updates")
        if not isinstance(updates, dict):
            updates = {}
        # Scalars only; null and nested values are dropped.
        clean_updates = {
            str(key): _cell(value)
            for key, value in updates.items()
            if isinstance(value, (str, int, float))
        }

        assistant_text = raw.get("assistant_text")
        if not isinstance(assistant_text, str):
            assistant_text = FALLBACK_TEXT

        next_field = raw.get("next_field")
        if not isinstance(next_field, str):
            next_field = ""

        done = raw.get("done")
        if not isinstance(done, bool):
            done = False

        return cls(
            updates=clean_updates,
            assistant_text=assistant_text,
            next_field=next_field,
            done=done,
        )
