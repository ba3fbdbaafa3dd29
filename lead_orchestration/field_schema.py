# lead_orchestration/field_schema.py
"""
Field schema for the lead record.

The planner decides which unfilled field to ask about next from this list;
validation and the fixed lead row are keyed by the same ``key`` values.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Mapping


@dataclass(frozen=True)
class FieldDescriptor:
    """One slot of the lead record. Lower priority is asked first."""
    key: str
    description: str
    priority: int


FIELDS: List[FieldDescriptor] = [
    FieldDescriptor("parent_name", "Parent/guardian full name", 1),
    FieldDescriptor("phone", "10-digit contact number for follow-up", 1),
    FieldDescriptor("student_name", "Student's full name", 2),
    FieldDescriptor("grade", "Class/grade of the student (1–12)", 2),
    FieldDescriptor("subjects", "Subjects that need tutoring (e.g., NEET, JEE, SAT, Math)", 2),
    FieldDescriptor("mode", "Preferred mode: home (home tutor) or online", 3),
    FieldDescriptor("area", "Area/locality for home tuitions (skip if online)", 3),
    FieldDescriptor("schedule", "Preferred days and time slots", 3),
    FieldDescriptor("budget", "Monthly budget expectation", 4),
    FieldDescriptor("demo_consent", "Consent to arrange a free demo (yes/no)", 4),
]


def ordered_fields(fields: List[FieldDescriptor] = FIELDS) -> List[FieldDescriptor]:
    """Fields by priority; ``sorted`` is stable so ties keep declaration order."""
    return sorted(fields, key=lambda f: f.priority)


def field_keys(fields: List[FieldDescriptor] = FIELDS) -> List[str]:
    return [f.key for f in fields]


def missing_fields(
    answers: Mapping[str, str],
    fields: List[FieldDescriptor] = FIELDS,
) -> List[FieldDescriptor]:
    """Unfilled fields in the order the planner should ask them."""
    return [f for f in ordered_fields(fields) if not answers.get(f.key)]


def schema_payload(fields: List[FieldDescriptor] = FIELDS) -> List[Dict[str, Any]]:
    """
    JSON-ready view of the schema for the planner prompt.

    Uses the ``desc`` name the prompt has always used.
    """
    payload = []
    for f in ordered_fields(fields):
        item = asdict(f)
        item["desc"] = item.pop("description")
        payload.append(item)
    return payload
