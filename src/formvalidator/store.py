"""Observable error store.

The single source of truth for displayed validation messages. Every key is
observable on its own: a subscriber to "email" is notified only when the
"email" entry changes, never on writes to other fields.

Example:
    store = ErrorStore()
    sub = store.subscribe("email", lambda field, message: print(field, message))
    store.set("email", "email is required")   # prints: email email is required
    store.set("name", "name is required")     # no output
    sub.unsubscribe()
"""

import logging
from collections.abc import Callable, Iterator, Mapping

logger = logging.getLogger(__name__)

# Subscriber signature: (field, new message or "" when cleared) -> None
Callback = Callable[[str, str], None]


class Subscription:
    """Handle returned by ErrorStore.subscribe; call unsubscribe() to stop."""

    def __init__(self, store: "ErrorStore", field: str | None, callback: Callback):
        self._store = store
        self._field = field
        self._callback = callback
        self.active = True

    def unsubscribe(self) -> None:
        """Stop receiving notifications. Idempotent."""
        if not self.active:
            return
        self.active = False
        self._store._remove_subscriber(self._field, self._callback)


class ErrorStore:
    """Mapping of field name -> current error message.

    An empty message means "no error": setting one removes the entry, so
    `field in store` is True only while the field has an error.
    """

    def __init__(self, initial: Mapping[str, str] | None = None):
        self._errors: dict[str, str] = {}
        # None collects subscribers of every key
        self._subscribers: dict[str | None, list[Callback]] = {}
        if initial:
            self.update(initial)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get(self, field: str) -> str:
        """Return the message for field, or an empty string."""
        return self._errors.get(field, "")

    def snapshot(self) -> dict[str, str]:
        """Return a copy of the current errors."""
        return dict(self._errors)

    def __contains__(self, field: object) -> bool:
        return field in self._errors

    def __len__(self) -> int:
        return len(self._errors)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._errors))

    def __repr__(self) -> str:
        return f"ErrorStore({self._errors!r})"

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def set(self, field: str, message: str | None) -> None:
        """Store message for field; empty or None clears it."""
        if not message:
            self.clear(field)
            return
        if self._errors.get(field) == message:
            return
        self._errors[field] = message
        self._notify(field, message)

    def update(self, errors: Mapping[str, str]) -> None:
        for field, message in errors.items():
            self.set(field, message)

    def clear(self, field: str) -> None:
        """Remove the entry for field. No-op when it has no error."""
        if field not in self._errors:
            return
        del self._errors[field]
        self._notify(field, "")

    def clear_all(self) -> None:
        cleared = list(self._errors)
        self._errors.clear()
        for field in cleared:
            self._notify(field, "")

    # -------------------------------------------------------------------------
    # Observation
    # -------------------------------------------------------------------------

    def subscribe(self, field: str, callback: Callback) -> Subscription:
        """Call callback(field, message) whenever field's entry changes."""
        self._subscribers.setdefault(field, []).append(callback)
        return Subscription(self, field, callback)

    def subscribe_all(self, callback: Callback) -> Subscription:
        """Call callback(field, message) whenever any entry changes."""
        self._subscribers.setdefault(None, []).append(callback)
        return Subscription(self, None, callback)

    def view(self, field: str) -> "FieldErrorView":
        return FieldErrorView(self, field)

    def _remove_subscriber(self, field: str | None, callback: Callback) -> None:
        callbacks = self._subscribers.get(field)
        if not callbacks:
            return
        try:
            callbacks.remove(callback)
        except ValueError:
            return
        if not callbacks:
            del self._subscribers[field]

    def _notify(self, field: str, message: str) -> None:
        callbacks = list(self._subscribers.get(field, ())) + list(
            self._subscribers.get(None, ())
        )
        for callback in callbacks:
            try:
                callback(field, message)
            except Exception as e:
                # A failing subscriber does not stop the remaining ones
                logger.error("Error subscriber for '%s' failed: %s", field, e)


class FieldErrorView:
    """Live, read-only view of one field's entry in an ErrorStore.

    Never caches: every read goes to the store, so the view cannot diverge
    from the form-wide state.
    """

    def __init__(self, store: ErrorStore, field: str):
        self._store = store
        self.field = field

    @property
    def value(self) -> str:
        return self._store.get(self.field)

    def subscribe(self, callback: Callback) -> Subscription:
        return self._store.subscribe(self.field, callback)

    def __bool__(self) -> bool:
        return bool(self.value)

    def __str__(self) -> str:
        return self.value

    def __repr__(self) -> str:
        return f"FieldErrorView({self.field!r}, {self.value!r})"
