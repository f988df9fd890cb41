"""Type and custom validator registries for rule evaluation.

Provides registration and lookup for:
- Value types a rule's ``type`` attribute refers to (built-ins registered on import)
- Named custom validators that rule files reference by name
"""

import math
import re
from collections.abc import Callable, Mapping
from datetime import date
from typing import Any

from formvalidator.types import CustomValidator, RuleDeclarationError

# Type check signature: value -> True when the value is of the type
TypeCheck = Callable[[Any], bool]


# =============================================================================
# Format Patterns
# =============================================================================

EMAIL_PATTERN = re.compile(
    r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"
)

URL_PATTERN = re.compile(
    r"^(?:(?:https?|ftp)://|//)[^\s/$.?#][^\s]*$",
    re.IGNORECASE
)

HEX_PATTERN = re.compile(r"^#?([a-f0-9]{6}|[a-f0-9]{3})$", re.IGNORECASE)


# =============================================================================
# Built-in Type Checks
# =============================================================================


def is_number(value: Any) -> bool:
    """True for int/float values, excluding bool and NaN."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return not (isinstance(value, float) and math.isnan(value))


def is_integer(value: Any) -> bool:
    if not is_number(value):
        return False
    return isinstance(value, int) or float(value).is_integer()


def is_float(value: Any) -> bool:
    return is_number(value) and not is_integer(value)


def is_regexp(value: Any) -> bool:
    if isinstance(value, re.Pattern):
        return True
    if not isinstance(value, str):
        return False
    try:
        re.compile(value)
    except re.error:
        return False
    return True


def _matches(pattern: re.Pattern) -> TypeCheck:
    def check(value: Any) -> bool:
        return isinstance(value, str) and pattern.match(value) is not None

    return check


BUILTIN_TYPES: dict[str, TypeCheck] = {
    "string": lambda v: isinstance(v, str),
    "number": is_number,
    "boolean": lambda v: isinstance(v, bool),
    "method": callable,
    "regexp": is_regexp,
    "integer": is_integer,
    "float": is_float,
    "array": lambda v: isinstance(v, (list, tuple)),
    "object": lambda v: isinstance(v, Mapping),
    "enum": lambda v: True,  # membership is checked by the enum constraint
    "date": lambda v: isinstance(v, date),
    "url": _matches(URL_PATTERN),
    "hex": _matches(HEX_PATTERN),
    "email": _matches(EMAIL_PATTERN),
    "any": lambda v: True,
}


# =============================================================================
# Registry
# =============================================================================


class TypeRegistry:
    """Registry for value types.

    Built-in types are registered when this module is imported. Custom
    types must be explicitly registered before a rule can reference them.

    Example:
        # Register a custom type
        TypeRegistry.register("postcode", lambda v: isinstance(v, str) and len(v) == 5)

        # Later, from a rule declaration
        Rule(type="postcode", message="Invalid postcode")
    """

    _types: dict[str, TypeCheck] = {}

    @classmethod
    def register(cls, name: str, check: TypeCheck) -> None:
        """Register a type check by name.

        Idempotent - re-registering the same name is a no-op.

        Args:
            name: Type name used in rule declarations
            check: Predicate returning True when a value is of this type
        """
        if name in cls._types:
            return
        cls._types[name] = check

    @classmethod
    def get(cls, name: str) -> TypeCheck:
        """Get a registered type check by name.

        Raises:
            RuleDeclarationError: If the type is not registered
        """
        if name not in cls._types:
            raise RuleDeclarationError(
                f"Rule type '{name}' is not registered. "
                "Available types: " + ", ".join(cls.list_registered())
            )
        return cls._types[name]

    @classmethod
    def is_registered(cls, name: str) -> bool:
        """Check if a type is registered."""
        return name in cls._types

    @classmethod
    def list_registered(cls) -> list[str]:
        """List all registered type names."""
        return sorted(cls._types.keys())

    @classmethod
    def clear(cls) -> None:
        """Clear all registrations. Primarily for testing."""
        cls._types.clear()

    @classmethod
    def reset(cls) -> None:
        """Drop custom types and restore the built-ins."""
        cls._types.clear()
        register_builtin_types()


def register_builtin_types() -> None:
    """Register the built-in value types. Safe to call repeatedly."""
    for name, check in BUILTIN_TYPES.items():
        TypeRegistry.register(name, check)


register_builtin_types()


# =============================================================================
# Custom Validator Registry
# =============================================================================


class ValidatorRegistry:
    """Registry for named custom validators.

    Rule files cannot hold callables, so a declaration refers to a custom
    validator by name (``validator: uniqueEmail``) and the loader resolves
    it here.

    Example:
        @custom_validator("uniqueEmail")
        async def unique_email(rule, value, source):
            if await users.exists(email=value):
                return "Email already registered"
    """

    _validators: dict[str, CustomValidator] = {}

    @classmethod
    def register(cls, name: str, fn: CustomValidator) -> None:
        """Register a custom validator by name.

        Idempotent - re-registering the same name is a no-op.
        """
        if name in cls._validators:
            return
        cls._validators[name] = fn

    @classmethod
    def get(cls, name: str) -> CustomValidator:
        """Get a registered custom validator by name.

        Raises:
            RuleDeclarationError: If the validator is not registered
        """
        if name not in cls._validators:
            raise RuleDeclarationError(
                f"Validator '{name}' is not registered. "
                "Custom validators must be explicitly registered at application startup."
            )
        return cls._validators[name]

    @classmethod
    def is_registered(cls, name: str) -> bool:
        return name in cls._validators

    @classmethod
    def list_registered(cls) -> list[str]:
        return sorted(cls._validators.keys())

    @classmethod
    def clear(cls) -> None:
        """Clear all registrations. Primarily for testing."""
        cls._validators.clear()


def custom_validator(name: str) -> Callable[[CustomValidator], CustomValidator]:
    """Decorator to register a custom validator.

    Usage:
        @custom_validator("uniqueEmail")
        async def unique_email(rule, value, source):
            ...
    """

    def decorator(fn: CustomValidator) -> CustomValidator:
        ValidatorRegistry.register(name, fn)
        return fn

    return decorator
