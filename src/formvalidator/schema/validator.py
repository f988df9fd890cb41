"""Descriptor-based asynchronous schema validation.

A Schema maps field names to one or more rules and validates a source
mapping against them. Fields are validated concurrently; the rules of one
field run in declared order so "first failure" is well defined.
"""

import asyncio
import inspect
import logging
from collections.abc import Mapping, Sequence
from typing import Any

from formvalidator.schema.messages import format_message, merge_messages
from formvalidator.schema.registry import TypeRegistry
from formvalidator.schema.rules import check_rule
from formvalidator.types import (
    Rule,
    RuleDeclarationError,
    RuleSet,
    ValidateFieldsError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def normalize_rules(value: Any) -> list[Rule]:
    """Turn one rule, one declaration mapping, or a sequence of either into a list."""
    if value is None:
        return []
    if isinstance(value, (Rule, Mapping)):
        return [Rule.coerce(value)]
    if isinstance(value, Sequence) and not isinstance(value, str):
        return [Rule.coerce(item) for item in value]
    raise RuleDeclarationError(
        f"Rules must be a rule, a mapping or a sequence, got {type(value).__name__}"
    )


def _lookup(source: Any, key: str | int) -> Any:
    if isinstance(source, Mapping):
        return source.get(key)
    if isinstance(source, Sequence) and isinstance(key, int):
        return source[key] if 0 <= key < len(source) else None
    return None


class Schema:
    """A set of field rules that can validate a source mapping.

    Example:
        schema = Schema({
            "name": {"type": "string", "required": True},
            "age": [{"type": "integer"}, {"min": 18, "message": "Adults only"}],
        })
        await schema.validate({"name": "Ada", "age": 36})

    Raises:
        RuleDeclarationError: If a rule is malformed or names an unknown type
    """

    def __init__(
        self,
        descriptor: RuleSet | None = None,
        messages: Mapping[str, str] | None = None,
    ):
        self.messages = merge_messages(messages)
        self.rules: dict[Any, list[Rule]] = {}
        for name, value in (descriptor or {}).items():
            rules = normalize_rules(value)
            for rule in rules:
                if rule.type is not None:
                    TypeRegistry.get(rule.type)
            self.rules[name] = rules

    async def validate(
        self,
        source: Mapping[str, Any],
        first_fields: bool = True,
    ) -> Mapping[str, Any]:
        """Validate source against every field rule.

        Args:
            source: Values keyed by field name
            first_fields: Stop at the first failing rule of each field

        Returns:
            The source itself when every field passes

        Raises:
            ValidateFieldsError: If at least one field failed
        """
        errors = await self._collect(source, first_fields, prefix="")
        if errors:
            raise ValidateFieldsError(errors)
        return source

    async def _collect(
        self,
        source: Any,
        first_fields: bool,
        prefix: str,
    ) -> list[ValidationError]:
        if not self.rules:
            return []
        tasks = [
            asyncio.ensure_future(
                self._validate_field(name, rules, source, first_fields, prefix)
            )
            for name, rules in self.rules.items()
        ]
        try:
            results = await asyncio.gather(*tasks)
        except BaseException:
            # A field that could not run aborts the whole schema
            for task in tasks:
                task.cancel()
            raise
        return [error for field_errors in results for error in field_errors]

    async def _validate_field(
        self,
        name: Any,
        rules: list[Rule],
        source: Any,
        first_fields: bool,
        prefix: str,
    ) -> list[ValidationError]:
        field_path = f"{prefix}{name}"
        value = _lookup(source, name)
        errors: list[ValidationError] = []

        for rule in rules:
            rule_value = rule.transform(value) if rule.transform else value
            rule_errors = await self._apply_rule(rule, rule_value, field_path, source)
            if not rule_errors:
                rule_errors = await self._validate_nested(
                    rule, rule_value, field_path, first_fields
                )
            errors.extend(rule_errors)
            if rule_errors and first_fields:
                break

        return errors

    async def _apply_rule(
        self,
        rule: Rule,
        value: Any,
        field_path: str,
        source: Any,
    ) -> list[ValidationError]:
        if rule.validator is not None:
            messages = await self._run_custom(rule, value, field_path, source)
        else:
            messages = check_rule(rule, value, field_path, self.messages)

        # A declared message replaces everything the rule reported
        if messages and rule.message is not None:
            messages = [rule.resolve_message() or ""]

        return [
            ValidationError(message=m, field=field_path, value=value, rule_type=rule.type)
            for m in messages
        ]

    async def _run_custom(
        self,
        rule: Rule,
        value: Any,
        field_path: str,
        source: Any,
    ) -> list[str]:
        """Run a custom validator and normalize what it returned."""
        fails = format_message(self.messages, "default", field=field_path)
        try:
            result = rule.validator(rule, value, source)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            logger.warning("Custom validator for '%s' raised: %s", field_path, e)
            return [str(e) or fails]

        if result is None or result is True:
            return []
        if result is False:
            return [fails]
        if isinstance(result, str):
            return [result] if result else []
        if isinstance(result, BaseException):
            return [str(result) or fails]
        if isinstance(result, (list, tuple)):
            return [str(item) or fails for item in result]

        raise RuleDeclarationError(
            f"Custom validator for '{field_path}' returned unsupported "
            f"{type(result).__name__}"
        )

    async def _validate_nested(
        self,
        rule: Rule,
        value: Any,
        field_path: str,
        first_fields: bool,
    ) -> list[ValidationError]:
        """Validate members of an object or array value against nested rules."""
        if rule.fields is None and rule.default_field is None:
            return []
        if rule.type == "object" and isinstance(value, Mapping):
            keys = list(value.keys())
        elif rule.type == "array" and isinstance(value, (list, tuple)):
            keys = list(range(len(value)))
        else:
            return []

        descriptor: dict[Any, Any] = {}
        if rule.default_field is not None:
            for key in keys:
                descriptor[key] = rule.default_field
        if rule.fields:
            descriptor.update(rule.fields)

        nested = Schema(descriptor, self.messages)
        return await nested._collect(value, first_fields, prefix=f"{field_path}.")
