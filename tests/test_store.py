"""Tests for the observable error store."""

import logging

import pytest

from formvalidator.store import ErrorStore, FieldErrorView


@pytest.fixture
def store():
    return ErrorStore()


class Recorder:
    """Collects (field, message) notifications."""

    def __init__(self):
        self.calls = []

    def __call__(self, field, message):
        self.calls.append((field, message))


# =============================================================================
# Read / Write Tests
# =============================================================================


class TestErrorStore:
    def test_starts_empty(self, store):
        assert len(store) == 0
        assert store.get("email") == ""
        assert "email" not in store

    def test_initial_errors(self):
        store = ErrorStore({"email": "bad", "name": ""})
        assert store.snapshot() == {"email": "bad"}

    def test_set_and_get(self, store):
        store.set("email", "email is required")
        assert store.get("email") == "email is required"
        assert "email" in store

    def test_empty_message_clears(self, store):
        store.set("email", "bad")
        store.set("email", "")
        assert "email" not in store
        store.set("email", "bad")
        store.set("email", None)
        assert "email" not in store

    def test_clear_missing_is_noop(self, store):
        store.clear("email")
        assert store.snapshot() == {}

    def test_clear_all(self, store):
        store.update({"a": "x", "b": "y"})
        store.clear_all()
        assert len(store) == 0

    def test_snapshot_is_copy(self, store):
        store.set("a", "x")
        snap = store.snapshot()
        snap["a"] = "changed"
        assert store.get("a") == "x"

    def test_iteration_tolerates_clearing(self, store):
        store.update({"a": "x", "b": "y"})
        for key in store:
            store.clear(key)
        assert len(store) == 0


# =============================================================================
# Notification Tests
# =============================================================================


class TestSubscriptions:
    def test_field_subscriber_only_sees_its_field(self, store):
        rec = Recorder()
        store.subscribe("email", rec)
        store.set("name", "name is required")
        store.set("email", "bad")
        store.clear("email")
        assert rec.calls == [("email", "bad"), ("email", "")]

    def test_unchanged_message_not_notified(self, store):
        rec = Recorder()
        store.subscribe("email", rec)
        store.set("email", "bad")
        store.set("email", "bad")
        store.clear("email")
        store.clear("email")
        assert len(rec.calls) == 2

    def test_subscribe_all(self, store):
        rec = Recorder()
        store.subscribe_all(rec)
        store.set("a", "x")
        store.set("b", "y")
        store.clear_all()
        assert rec.calls == [("a", "x"), ("b", "y"), ("a", ""), ("b", "")]

    def test_unsubscribe_is_idempotent(self, store):
        rec = Recorder()
        sub = store.subscribe("a", rec)
        sub.unsubscribe()
        sub.unsubscribe()
        store.set("a", "x")
        assert rec.calls == []
        assert sub.active is False

    def test_failing_subscriber_does_not_block_others(self, store, caplog):
        def broken(field, message):
            raise RuntimeError("boom")

        rec = Recorder()
        store.subscribe("a", broken)
        store.subscribe("a", rec)
        with caplog.at_level(logging.ERROR, logger="formvalidator.store"):
            store.set("a", "x")
        assert rec.calls == [("a", "x")]
        assert "boom" in caplog.text


# =============================================================================
# Field View Tests
# =============================================================================


class TestFieldErrorView:
    def test_view_is_live(self, store):
        view = store.view("email")
        assert isinstance(view, FieldErrorView)
        assert not view
        store.set("email", "bad")
        assert view.value == "bad"
        assert str(view) == "bad"
        assert view
        store.clear("email")
        assert view.value == ""

    def test_view_subscribe(self, store):
        rec = Recorder()
        store.view("email").subscribe(rec)
        store.set("email", "bad")
        assert rec.calls == [("email", "bad")]
