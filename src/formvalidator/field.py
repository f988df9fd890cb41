"""Per-field bridge between a mounted field component and its form.

FieldContext is what a form item owns: its name, its live error and the
delegates the form can call in bulk. FieldBinding is what a widget uses:
blur/change handlers that route into the field's validation.
"""

from __future__ import annotations

import logging
from typing import Any

from formvalidator.form import FormContext
from formvalidator.schema import normalize_rules
from formvalidator.selector import select_rules
from formvalidator.store import FieldErrorView
from formvalidator.types import Rule, Trigger, TriggerType, ValidateFieldsError

logger = logging.getLogger(__name__)


class FieldContext:
    """One mounted field of a form.

    The form handle is passed in explicitly; the field keeps it as a lookup
    reference and never owns form state. Its error is a live view of the
    form's ErrorStore, not a copy.

    Example:
        with FieldContext(form, "email", required=True, label="Email") as item:
            await item.validate_field("blur")
            print(item.error.value)
    """

    def __init__(
        self,
        form: FormContext,
        prop: str | None = None,
        rules: Any = None,
        required: bool = False,
        label: str | None = None,
        show_message: bool = True,
    ):
        self.form = form
        self.prop = prop
        self.label = label or prop or ""
        self.show_message = show_message
        self.mounted = False

        item_rules = normalize_rules(rules)
        if required and prop:
            declared = select_rules(form.rules, prop) + item_rules
            if not any(rule.required for rule in declared):
                item_rules.append(Rule(required=True, message=f"{self.label} is required"))
        self.rules: tuple[Rule, ...] = tuple(item_rules)

        self.error: FieldErrorView = form.store.view(prop or "")

    @property
    def value(self) -> Any:
        if not self.prop:
            return None
        return self.form.model.get(self.prop)

    @property
    def display_error(self) -> str:
        """The error to render, honouring show_message."""
        if not self.show_message:
            return ""
        return self.error.value

    @property
    def is_required(self) -> bool:
        if not self.prop:
            return False
        rules = select_rules(self.form.rules, self.prop) + list(self.rules)
        return any(rule.required for rule in rules)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def mount(self) -> FieldContext:
        self.form.register_field(self)
        self.mounted = True
        return self

    def unmount(self) -> None:
        self.form.unregister_field(self)
        self.mounted = False

    def __enter__(self) -> FieldContext:
        return self.mount()

    def __exit__(self, *exc_info: Any) -> None:
        self.unmount()

    # -------------------------------------------------------------------------
    # Delegates
    # -------------------------------------------------------------------------

    async def validate_field(self, trigger: TriggerType | None = None) -> None:
        """Validate this field through the form.

        Raises:
            ValidateFieldsError: If the field failed
        """
        if not self.prop:
            return
        await self.form.validate_field(self.prop, trigger)

    def clear_validate(self) -> None:
        if self.prop:
            self.form.clear_validate(self.prop)

    def reset_field(self) -> None:
        if self.prop:
            self.form.reset_fields(self.prop)

    def __repr__(self) -> str:
        return f"FieldContext({self.prop!r}, mounted={self.mounted})"


class FieldBinding:
    """Event glue for a widget inside a field.

    Handlers return True when the field is valid (or nothing ran) and False
    when validation failed; the message itself is read from the field's
    error view.
    """

    def __init__(self, field: FieldContext | None, validate_event: bool = True):
        self.field = field
        self.validate_event = validate_event
        self._last_value = field.value if field else None

    @property
    def form(self) -> FormContext | None:
        return self.field.form if self.field else None

    @property
    def is_disabled(self) -> bool:
        return bool(self.form and self.form.disabled)

    async def handle_blur(self) -> bool:
        if not self.validate_event or self.field is None:
            return True
        if not self.field.form.validate_on_blur:
            return True
        return await self._run(Trigger.BLUR)

    async def handle_change(self) -> bool:
        if not self.validate_event or self.field is None:
            return True
        if not self.field.form.validate_on_change:
            return True
        return await self._run(Trigger.CHANGE)

    async def set_value(self, value: Any) -> bool:
        """Write value into the model and run change validation if it changed."""
        if self.field is None or not self.field.prop:
            return True
        self.field.form.model[self.field.prop] = value
        if value == self._last_value:
            return True
        self._last_value = value
        return await self.handle_change()

    async def _run(self, trigger: Trigger) -> bool:
        try:
            await self.field.validate_field(trigger)
        except ValidateFieldsError as e:
            logger.debug("'%s' failed %s validation: %s", self.field.prop, trigger.value, e)
            return False
        return True
