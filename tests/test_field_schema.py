"""Tests for the lead field schema."""

from lead_orchestration.field_schema import (
    FIELDS,
    FieldDescriptor,
    field_keys,
    missing_fields,
    ordered_fields,
    schema_payload,
)


class TestSchema:
    def test_reference_fields(self):
        assert field_keys() == [
            "parent_name", "phone", "student_name", "grade", "subjects",
            "mode", "area", "schedule", "budget", "demo_consent",
        ]

    def test_keys_unique(self):
        keys = field_keys()
        assert len(keys) == len(set(keys))

    def test_ordered_by_priority_ties_keep_declaration_order(self):
        fields = [
            FieldDescriptor("c", "", 2),
            FieldDescriptor("a", "", 1),
            FieldDescriptor("b", "", 2),
            FieldDescriptor("d", "", 1),
        ]
        assert [f.key for f in ordered_fields(fields)] == ["a", "d", "c", "b"]

    def test_priorities_non_decreasing(self):
        priorities = [f.priority for f in ordered_fields()]
        assert priorities == sorted(priorities)


class TestMissingFields:
    def test_all_missing_initially(self):
        assert len(missing_fields({})) == len(FIELDS)

    def test_skips_filled_and_empty_counts_as_missing(self):
        missing = [f.key for f in missing_fields({"parent_name": "Ravi", "phone": ""})]
        assert missing[0] == "phone"
        assert "parent_name" not in missing


class TestPayload:
    def test_payload_uses_desc(self):
        payload = schema_payload()
        assert payload[0] == {
            "key": "parent_name",
            "desc": "Parent/guardian full name",
            "priority": 1,
        }
        assert all("description" not in item for item in payload)
