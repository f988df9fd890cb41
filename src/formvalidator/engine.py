"""Validation engine.

Orchestrates rule selection, schema validation and error-store updates for
a form model:
1. validate_field: one field, optionally filtered by trigger
2. validate: the whole model, or a subset of fields
3. clear_validate / reset_fields: synchronous error and value resets

Every validate-family call waits for the complete schema result before it
touches the ErrorStore, then re-raises failures so callers can tell
"ran and failed" (ValidateFieldsError) from "could not run" (anything else).
"""

import copy
import logging
from collections.abc import Iterable, Mapping, MutableMapping
from typing import Any

from formvalidator.config import EngineConfig
from formvalidator.schema import Schema
from formvalidator.selector import select_rules
from formvalidator.store import ErrorStore
from formvalidator.types import RuleSet, TriggerType, ValidateFieldsError

logger = logging.getLogger(__name__)

FieldNames = str | Iterable[str]


def _as_list(fields: FieldNames) -> list[str]:
    if isinstance(fields, str):
        return [fields]
    return list(fields)


def project_message(error: ValidateFieldsError, field: str) -> str:
    """Return the message a field displays for a failure.

    The field's own first message, or else the first message reported for
    one of its nested members ("field.member").
    """
    message = error.first_message(field)
    if message:
        return message
    prefix = f"{field}."
    for item in error.errors:
        if item.field.startswith(prefix) and item.message:
            return item.message
    return ""


class ValidationEngine:
    """Runs validation for a model and keeps an ErrorStore in sync.

    Concurrent calls for different fields never interfere: each builds its
    own Schema scoped to its fields and only writes those keys. For the same
    field, a per-field sequence number decides which result is stored: a
    result is dropped when a newer call for that field started after it.
    Set ``EngineConfig.guard_stale_results = False`` for plain
    last-write-wins.
    """

    select_rules = staticmethod(select_rules)

    def __init__(
        self,
        store: ErrorStore | None = None,
        config: EngineConfig | None = None,
        messages: Mapping[str, str] | None = None,
    ):
        self.store = store if store is not None else ErrorStore()
        self.config = config or EngineConfig()
        self.messages = dict(messages) if messages else None
        self._sequence: dict[str, int] = {}

    @property
    def errors(self) -> ErrorStore:
        return self.store

    # -------------------------------------------------------------------------
    # Sequence guard
    # -------------------------------------------------------------------------

    def _begin(self, field: str) -> int:
        token = self._sequence.get(field, 0) + 1
        self._sequence[field] = token
        return token

    def _is_current(self, field: str, token: int) -> bool:
        if not self.config.guard_stale_results:
            return True
        return self._sequence.get(field) == token

    def _writable(self, key: str, tokens: Mapping[str, int]) -> bool:
        """Check whether a result for key (or a nested member key) may be stored."""
        if key in tokens:
            return self._is_current(key, tokens[key])
        parent = key.split(".", 1)[0]
        if parent in tokens:
            return self._is_current(parent, tokens[parent])
        return True

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    async def validate_field(
        self,
        model: Mapping[str, Any] | None,
        rule_set: RuleSet | None,
        field_name: str,
        trigger: TriggerType | None = None,
    ) -> None:
        """Validate one field of model.

        A field with no rules for the trigger is valid: its error is cleared.

        Raises:
            ValidateFieldsError: If the field failed (after the store was updated)
        """
        token = self._begin(field_name)
        rules = select_rules(rule_set, field_name, trigger)

        if not rules:
            logger.debug("No rules for '%s' (trigger=%s)", field_name, trigger)
            if self._is_current(field_name, token):
                self.store.clear(field_name)
            return

        value = model.get(field_name) if model is not None else None
        schema = Schema({field_name: rules}, self.messages)

        try:
            await schema.validate(
                {field_name: value}, first_fields=self.config.first_fields
            )
        except ValidateFieldsError as e:
            if self._is_current(field_name, token):
                self._clear_members(field_name, keep=e.fields)
                for key in e.fields:
                    if key != field_name:
                        self.store.set(key, e.first_message(key))
                self.store.set(field_name, project_message(e, field_name))
            else:
                logger.debug("Dropping stale failure for '%s'", field_name)
            raise

        if self._is_current(field_name, token):
            self.store.clear(field_name)
            self._clear_members(field_name)
        else:
            logger.debug("Dropping stale success for '%s'", field_name)

    async def validate(
        self,
        model: Mapping[str, Any],
        rule_set: RuleSet | None,
        fields: FieldNames | None = None,
    ) -> Mapping[str, Any]:
        """Validate the whole model, or only the given fields.

        Requested fields without rules are dropped silently; if none remain
        the call succeeds without evaluating anything.

        Returns:
            The model itself (not a copy)

        Raises:
            ValidateFieldsError: With every failing field (after the store was updated)
        """
        rule_set = rule_set or {}
        requested = _as_list(fields) if fields else None

        if requested is not None:
            rules_to_validate = {f: rule_set[f] for f in requested if f in rule_set}
            scope = requested
        else:
            rules_to_validate = dict(rule_set)
            scope = list(rule_set)

        tokens = {f: self._begin(f) for f in scope}
        logger.debug(
            "Validating %d field(s) of %d in scope", len(rules_to_validate), len(scope)
        )

        try:
            await Schema(rules_to_validate, self.messages).validate(
                model, first_fields=self.config.first_fields
            )
        except ValidateFieldsError as e:
            for key in e.fields:
                if self._writable(key, tokens):
                    self.store.set(key, e.first_message(key))
            for field in scope:
                if not self._is_current(field, tokens[field]):
                    continue
                self._clear_members(field, keep=e.fields)
                if field not in e.fields:
                    self.store.set(field, project_message(e, field))
            raise

        if requested is None:
            for key in self.store:
                if self._writable(key, tokens):
                    self.store.clear(key)
        else:
            for field in scope:
                if self._is_current(field, tokens[field]):
                    self.store.clear(field)
                    self._clear_members(field)

        return model

    # -------------------------------------------------------------------------
    # Clear / reset
    # -------------------------------------------------------------------------

    def clear_validate(self, fields: FieldNames | None = None) -> None:
        """Clear errors for the given field(s), or every error when None.

        Nested member entries ("field.member") are cleared with their field.
        """
        if fields is None:
            self.store.clear_all()
            return

        for field in _as_list(fields):
            self.store.clear(field)
            self._clear_members(field)

    def reset_fields(
        self,
        model: MutableMapping[str, Any],
        initial_model: Mapping[str, Any] | None,
        fields: FieldNames | None = None,
    ) -> None:
        """Restore field values from initial_model and clear their errors.

        Fields missing from initial_model are set to None. Validations of
        these fields still in flight will not write their results.
        """
        initial_model = initial_model or {}
        targets = list(model.keys()) if fields is None else _as_list(fields)

        for field in targets:
            model[field] = copy.deepcopy(initial_model.get(field))
            self._begin(field)

        if fields is None:
            self.store.clear_all()
        else:
            self.clear_validate(targets)

    def _clear_members(self, field: str, keep: Iterable[str] = ()) -> None:
        """Clear nested member entries ("field.member") not listed in keep."""
        prefix = f"{field}."
        keep = set(keep)
        for key in self.store:
            if key.startswith(prefix) and key not in keep:
                self.store.clear(key)
