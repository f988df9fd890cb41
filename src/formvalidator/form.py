"""Form-level context: model, rules and the registry of mounted fields.

A FormContext is created when a form mounts. Fields receive it explicitly
in their constructor, register on mount and deregister on unmount. Bulk
operations (validate all, reset all, clear all) go through the form.
"""

from __future__ import annotations

import asyncio
import copy
import logging
from collections.abc import Awaitable, Iterable, MutableMapping
from typing import TYPE_CHECKING, Any

from formvalidator.engine import FieldNames, ValidationEngine
from formvalidator.schema import normalize_rules
from formvalidator.store import ErrorStore
from formvalidator.types import Rule, RuleSet, TriggerType, ValidateFieldsError

if TYPE_CHECKING:
    from formvalidator.field import FieldContext

logger = logging.getLogger(__name__)


async def gather_field_results(calls: Iterable[Awaitable[Any]]) -> None:
    """Await field validations concurrently and merge their failures.

    Raises:
        ValidateFieldsError: With the errors of every failed call
        Exception: The first error of any other kind, unchanged
    """
    results = await asyncio.gather(*calls, return_exceptions=True)
    errors = []
    for result in results:
        if isinstance(result, ValidateFieldsError):
            errors.extend(result.errors)
        elif isinstance(result, BaseException):
            raise result
    if errors:
        raise ValidateFieldsError(errors)


class FormContext:
    """State for one form instance.

    Attributes:
        model: Caller-owned values, read by validation and written by reset
        rules: Form-level rule set (field name -> rule(s))
        initial_model: Deep copy of the model taken at creation, used by reset
        engine: The ValidationEngine holding this form's ErrorStore
        disabled: Whether bound widgets should be disabled
        validate_on_blur: Whether blur events trigger validation
        validate_on_change: Whether change events trigger validation
    """

    def __init__(
        self,
        model: MutableMapping[str, Any],
        rules: RuleSet | None = None,
        engine: ValidationEngine | None = None,
        disabled: bool = False,
        validate_on_blur: bool = True,
        validate_on_change: bool = True,
    ):
        self.model = model
        self.rules = rules if rules is not None else {}
        self.engine = engine or ValidationEngine()
        self.disabled = disabled
        self.validate_on_blur = validate_on_blur
        self.validate_on_change = validate_on_change
        self.initial_model = copy.deepcopy(dict(model))
        self._fields: list[FieldContext] = []
        self.closed = False

    @property
    def store(self) -> ErrorStore:
        return self.engine.store

    @property
    def errors(self) -> dict[str, str]:
        return self.store.snapshot()

    # -------------------------------------------------------------------------
    # Field registry
    # -------------------------------------------------------------------------

    @property
    def fields(self) -> tuple[FieldContext, ...]:
        """Currently mounted fields, in mount order."""
        return tuple(self._fields)

    def register_field(self, field: FieldContext) -> None:
        """Add a mounted field. Registering the same field twice is a no-op."""
        if field in self._fields:
            return
        if field.prop and field.prop not in self.model:
            logger.debug("Field '%s' is not a model key; it has no value to validate", field.prop)
        self._fields.append(field)

    def unregister_field(self, field: FieldContext) -> None:
        """Remove a field. Unknown fields are ignored."""
        try:
            self._fields.remove(field)
        except ValueError:
            return

    def get_field(self, prop: str) -> FieldContext | None:
        for field in self._fields:
            if field.prop == prop:
                return field
        return None

    def effective_rules(self) -> dict[str, list[Rule]]:
        """Form rules merged with the item-level rules of mounted fields.

        Form rules come first for each field, item rules follow in mount order.
        """
        merged = {name: normalize_rules(value) for name, value in self.rules.items()}
        for field in self._fields:
            if field.prop and field.rules:
                merged[field.prop] = merged.get(field.prop, []) + list(field.rules)
        return merged

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    async def validate(self, fields: FieldNames | None = None) -> MutableMapping[str, Any]:
        """Validate the whole model, or only the given fields.

        Returns:
            The model itself

        Raises:
            ValidateFieldsError: If any field failed
        """
        return await self.engine.validate(self.model, self.effective_rules(), fields)

    async def validate_field(
        self,
        props: FieldNames,
        trigger: TriggerType | None = None,
    ) -> None:
        """Validate one field, or several concurrently, optionally by trigger.

        Raises:
            ValidateFieldsError: If any of the fields failed
        """
        rules = self.effective_rules()
        if isinstance(props, str):
            await self.engine.validate_field(self.model, rules, props, trigger)
            return
        await gather_field_results(
            self.engine.validate_field(self.model, rules, prop, trigger)
            for prop in props
        )

    async def validate_mounted(self, trigger: TriggerType | None = None) -> None:
        """Run every mounted field's own validation concurrently.

        Raises:
            ValidateFieldsError: With the errors of every failed field
        """
        await gather_field_results(
            field.validate_field(trigger) for field in self.fields if field.prop
        )

    def reset_fields(self, props: FieldNames | None = None) -> None:
        """Restore initial values and clear errors for props, or every model key."""
        self.engine.reset_fields(self.model, self.initial_model, props)

    def clear_validate(self, props: FieldNames | None = None) -> None:
        """Clear errors for props, or every error."""
        self.engine.clear_validate(props)

    def close(self) -> None:
        """Unmount every field and clear the error store."""
        for field in self.fields:
            field.unmount()
        self.engine.clear_validate()
        self.closed = True

    def __enter__(self) -> FormContext:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
