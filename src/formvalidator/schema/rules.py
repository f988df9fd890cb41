"""Built-in constraint checks for a single rule.

A rule without a custom validator is evaluated in this order:
- Required check (stops here when the value is empty)
- Type check against the TypeRegistry (stops here on mismatch)
- Range: len / min / max (length for strings and sequences, value for numbers)
- Enum membership
- Pattern (search semantics)
- Whitespace-only strings
"""

from collections.abc import Mapping
from typing import Any

from formvalidator.schema.messages import format_message
from formvalidator.schema.registry import TypeRegistry, is_number
from formvalidator.types import Rule

# Types whose empty string counts as "no value"
NATIVE_STRING_TYPES = frozenset({"string", "url", "hex", "email", "date", "pattern"})


def is_empty_value(value: Any, type_name: str | None = None) -> bool:
    """Check if a value counts as absent for the given type.

    With no type, the kind is taken from the value itself.
    """
    if value is None:
        return True
    if type_name is None:
        if isinstance(value, (list, tuple)):
            type_name = "array"
        elif isinstance(value, str):
            type_name = "string"
    if type_name == "array" and isinstance(value, (list, tuple)) and len(value) == 0:
        return True
    if type_name in NATIVE_STRING_TYPES and isinstance(value, str) and value == "":
        return True
    return False


def check_rule(
    rule: Rule,
    value: Any,
    field: str,
    messages: Mapping[str, str],
) -> list[str]:
    """Run the built-in checks of rule against value.

    Returns:
        Failure messages in check order. Empty list means valid.
    """
    if is_empty_value(value, rule.type):
        if rule.required:
            return [format_message(messages, "required", field=field)]
        return []

    if rule.type is not None:
        check = TypeRegistry.get(rule.type)
        if not check(value):
            return [format_message(messages, "type", field=field, type=rule.type)]

    errors = _check_range(rule, value, field, messages)

    if rule.enum is not None and value not in rule.enum:
        errors.append(format_message(messages, "enum", field=field, enum=rule.enum))

    if rule.pattern is not None and isinstance(value, str):
        if not rule.pattern.search(value):
            errors.append(format_message(
                messages,
                "pattern",
                field=field,
                value=value,
                pattern=rule.pattern.pattern,
            ))

    if rule.whitespace and isinstance(value, str) and value.strip() == "":
        errors.append(format_message(messages, "whitespace", field=field))

    return errors


def _check_range(
    rule: Rule, value: Any, field: str, messages: Mapping[str, str]
) -> list[str]:
    """Validate len/min/max against the measurable size of value."""
    if rule.len is None and rule.min is None and rule.max is None:
        return []

    if is_number(value):
        kind, measure = "number", value
    elif isinstance(value, str):
        kind, measure = "string", len(value)
    elif isinstance(value, (list, tuple)):
        kind, measure = "array", len(value)
    else:
        return []

    params = {"field": field, "min": rule.min, "max": rule.max, "len": rule.len}

    if rule.len is not None:
        if measure != rule.len:
            return [format_message(messages, f"{kind}.len", **params)]
    elif rule.min is not None and rule.max is not None:
        if measure < rule.min or measure > rule.max:
            return [format_message(messages, f"{kind}.range", **params)]
    elif rule.min is not None:
        if measure < rule.min:
            return [format_message(messages, f"{kind}.min", **params)]
    elif rule.max is not None:
        if measure > rule.max:
            return [format_message(messages, f"{kind}.max", **params)]

    return []
