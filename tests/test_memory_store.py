"""Tests for the in-memory session store."""

from lead_orchestration.session_context import Session


class TestEnsure:
    def test_creates_lazily(self, memory_store):
        assert "conv-1" not in memory_store
        session = memory_store.ensure("conv-1")
        assert isinstance(session, Session)
        assert session.answers == {}
        assert "conv-1" in memory_store

    def test_idempotent(self, memory_store):
        first = memory_store.ensure("conv-1")
        first.answers["grade"] = "7"
        second = memory_store.ensure("conv-1")
        assert second is first
        assert second.answers == {"grade": "7"}
        assert len(memory_store) == 1

    def test_conversations_are_isolated(self, memory_store):
        memory_store.merge(memory_store.ensure("a"), {"phone": "9876543210"})
        assert memory_store.ensure("b").answers == {}


class TestMerge:
    def test_overwrites_present_keys_only(self, memory_store):
        session = memory_store.ensure("conv-1")
        memory_store.merge(session, {"grade": "7", "mode": "home"})
        memory_store.merge(session, {"mode": "online"})
        assert session.answers == {"grade": "7", "mode": "online"}

    def test_merge_is_idempotent(self, memory_store):
        once = memory_store.ensure("once")
        twice = memory_store.ensure("twice")
        update = {"phone": "9876543210"}
        memory_store.merge(once, update)
        memory_store.merge(twice, update)
        memory_store.merge(twice, update)
        assert once.answers == twice.answers

    def test_empty_update_is_noop(self, memory_store):
        session = memory_store.ensure("conv-1")
        memory_store.merge(session, {})
        assert session.answers == {}


class TestSnapshotAndLocks:
    def test_snapshot_is_a_copy(self, memory_store):
        session = memory_store.ensure("conv-1")
        memory_store.merge(session, {"grade": "7"})
        snap = memory_store.snapshot(session)
        snap["grade"] = "8"
        assert session.answers["grade"] == "7"

    def test_same_lock_per_conversation(self, memory_store):
        assert memory_store.lock("a") is memory_store.lock("a")

    def test_distinct_locks_across_conversations(self, memory_store):
        assert memory_store.lock("a") is not memory_store.lock("b")


class TestSession:
    def test_touch_counts_turns(self):
        session = Session(conversation_id="c")
        before = session.last_seen_at
        session.touch(before)
        session.touch(before)
        assert session.turn_count == 2
        assert session.last_seen_at == before
