"""Constraint evaluation for declarative field rules.

Usage:
    from formvalidator.schema import Schema, TypeRegistry

    TypeRegistry.register("postcode", lambda v: isinstance(v, str) and len(v) == 5)
    await Schema({"zip": {"type": "postcode", "required": True}}).validate(data)
"""

from formvalidator.schema.messages import DEFAULT_MESSAGES, format_message, merge_messages
from formvalidator.schema.registry import (
    BUILTIN_TYPES,
    TypeCheck,
    TypeRegistry,
    ValidatorRegistry,
    custom_validator,
    register_builtin_types,
)
from formvalidator.schema.rules import check_rule, is_empty_value
from formvalidator.schema.validator import Schema, normalize_rules

__all__ = [
    "BUILTIN_TYPES",
    "DEFAULT_MESSAGES",
    "Schema",
    "TypeCheck",
    "TypeRegistry",
    "ValidatorRegistry",
    "check_rule",
    "custom_validator",
    "format_message",
    "is_empty_value",
    "merge_messages",
    "normalize_rules",
    "register_builtin_types",
]
