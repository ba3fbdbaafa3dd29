# lead_orchestration/validator.py
"""
Field Validator

Hard server-side guard over the planner's proposed updates. The model's
own claims are never trusted: every value goes through the rule for its
field key before it can reach a session.

- phone    : 10 digits, or 12 digits starting with country code 91.
- grade    : first integer in the text, 1..12.
- mode     : "home" or "online" (zoom counts as online).
- area     : a locality, never an exam/board name leaking from subjects.
- schedule : a weekday or a time, never a bare "online"/"home".
- anything else is accepted as trimmed text.

Rejections carry a corrective prompt in the turn's language.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from .utils import only_digits

DEFAULT_LANG = "en"
SUPPORTED_LANGS = ("en", "hi", "te")

CORRECTIVE_PROMPTS: Dict[str, Dict[str, str]] = {
    "phone": {
        "en": "Please share a valid 10-digit mobile number (digits only).",
        "hi": "कृपया 10 अंकों का सही मोबाइल नंबर भेजें (केवल अंक)।",
        "te": "దయచేసి సరైన 10 అంకెల మొబైల్ నంబర్ పంపండి (అంకెలు మాత్రమే).",
    },
    "grade": {
        "en": "Which class is the student in? (1–12)",
        "hi": "विद्यार्थी किस कक्षा में है? (1–12)",
        "te": "విద్యార్థి ఏ తరగతిలో ఉన్నాడు/ఉంది? (1–12)",
    },
    "mode": {
        "en": "Do you prefer **online** (Zoom 1-on-1) or **home** (offline home tuition)?",
        "hi": "आप **online** (Zoom 1-on-1) या **home** (ऑफलाइन होम ट्यूशन) चाहते हैं?",
        "te": "మీకు **online** (Zoom 1-on-1) లేదా **home** (వద్దకు వచ్చి) కావాలా?",
    },
    "area": {
        "en": "Please share your area/locality (e.g., Madhapur, Kondapur).",
        "hi": "कृपया अपना क्षेत्र/लोकैलिटी बताएं (जैसे: माधापुर, कोंडापुर)।",
        "te": "దయచేసి మీ ఏరియా/లోకాలిటీ చెప్పండి (ఉదా: మాధాపూర్, కొండాపూర్).",
    },
    "schedule": {
        "en": "What days and time work? (e.g., Mon–Fri 6–7pm)",
        "hi": "कौन से दिन और समय ठीक रहेंगे? (जैसे: Mon–Fri 6–7pm)",
        "te": "ఏ రోజులలో, ఏ సమయం బావుంటుంది? (ఉదా: Mon–Fri 6–7pm)",
    },
}

# Letters on either side break a match (Gachibowli); digits do not (NEET2025).
SUBJECT_RX = re.compile(
    r"(?<![a-z])(iit[- ]?jee|jee|neet|sat|iit[- ]?foundation|foundation|ntse|olympiads?|cbse|icse|ibdp|ib|school)(?![a-z])",
    re.IGNORECASE,
)
# Latin, Devanagari and Telugu letters.
LOCALITY_RX = re.compile(r"[A-Za-z\u0900-\u097F\u0C00-\u0C7F]{3,}")
DAY_RX = re.compile(r"\b(mon|tue|wed|thu|fri|sat|sun)", re.IGNORECASE)
TIME_RX = re.compile(r"\b(\d{1,2})(:\d{2})?\s*(am|pm)?\b", re.IGNORECASE)
FIRST_INT_RX = re.compile(r"\d+", re.ASCII)


def resolve_lang(tag: Optional[str]) -> str:
    """Map any language tag onto a supported one, defaulting to English."""
    tag = (tag or "").strip().lower()
    return tag if tag in SUPPORTED_LANGS else DEFAULT_LANG


def prompt_for(key: str, lang: str) -> str:
    table = CORRECTIVE_PROMPTS[key]
    return table.get(lang) or table[DEFAULT_LANG]


@dataclass(frozen=True)
class ValidationResult:
    """Either an accepted normalized value or a corrective prompt."""
    accepted: bool
    value: Optional[str] = None
    prompt: Optional[str] = None

    @classmethod
    def ok(cls, value: str) -> "ValidationResult":
        return cls(accepted=True, value=value)

    @classmethod
    def reject(cls, prompt: str) -> "ValidationResult":
        return cls(accepted=False, prompt=prompt)


Rule = Callable[[str, str], ValidationResult]


# ---------------------------------------------------------------------------
# Per-field rules
# ---------------------------------------------------------------------------

def validate_phone(value: str, lang: str) -> ValidationResult:
    digits = only_digits(value)
    if len(digits) == 10:
        return ValidationResult.ok(digits)
    if len(digits) == 12 and digits.startswith("91"):
        return ValidationResult.ok(digits[2:])
    return ValidationResult.reject(prompt_for("phone", lang))


def validate_grade(value: str, lang: str) -> ValidationResult:
    match = FIRST_INT_RX.search(value)
    if match:
        digits = match.group(0).lstrip("0") or "0"
        if len(digits) <= 2 and 1 <= int(digits) <= 12:
            return ValidationResult.ok(digits)
    return ValidationResult.reject(prompt_for("grade", lang))


def validate_mode(value: str, lang: str) -> ValidationResult:
    lowered = value.lower()
    if "home" in lowered:
        return ValidationResult.ok("home")
    if "online" in lowered or "zoom" in lowered:
        return ValidationResult.ok("online")
    return ValidationResult.reject(prompt_for("mode", lang))


def validate_area(value: str, lang: str) -> ValidationResult:
    text = value.strip()
    # "NEET", "IB", "CBSE"... are subjects the model misfiled as an area
    if SUBJECT_RX.search(text):
        return ValidationResult.reject(prompt_for("area", lang))
    if LOCALITY_RX.search(text):
        return ValidationResult.ok(text)
    return ValidationResult.reject(prompt_for("area", lang))


def validate_schedule(value: str, lang: str) -> ValidationResult:
    text = value.strip()
    if text.lower() in ("online", "home"):
        return ValidationResult.reject(prompt_for("schedule", lang))
    if DAY_RX.search(text) or TIME_RX.search(text):
        return ValidationResult.ok(text)
    return ValidationResult.reject(prompt_for("schedule", lang))


def accept_text(value: str, lang: str) -> ValidationResult:
    return ValidationResult.ok(value.strip())


DEFAULT_RULES: Dict[str, Rule] = {
    "phone": validate_phone,
    "grade": validate_grade,
    "mode": validate_mode,
    "area": validate_area,
    "schedule": validate_schedule,
}


class FieldValidator:
    """
    Dispatches a proposed (key, value) to its rule.

    Keys without a registered rule fall through to ``accept_text``.
    """

    def __init__(self, rules: Optional[Dict[str, Rule]] = None) -> None:
        self.rules: Dict[str, Rule] = dict(DEFAULT_RULES if rules is None else rules)

    def register(self, key: str, rule: Rule) -> None:
        self.rules[key] = rule

    def validate(self, key: str, value: Any, lang: str = DEFAULT_LANG) -> ValidationResult:
        rule = self.rules.get(key, accept_text)
        return rule("" if value is None else str(value), resolve_lang(lang))


_default_validator = FieldValidator()


def validate_update(key: str, value: Any, lang: str = DEFAULT_LANG) -> ValidationResult:
    """Validate one proposed update with the default rule set."""
    return _default_validator.validate(key, value, lang)
