"""Core types for the formvalidator engine.

This module defines the foundational types shared by every layer:
- Trigger: the UI event class a rule reacts to (blur, change)
- Rule: an immutable declarative constraint attached to one field
- ValidationError: a single failure descriptor
- ValidateFieldsError: the structured failure raised by schema validation
"""

import re
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, fields as dataclass_fields
from enum import Enum
from typing import Any


class Trigger(Enum):
    """UI event class that causes a rule to be evaluated."""

    BLUR = "blur"
    CHANGE = "change"


# One trigger, its string value, or several of either
TriggerType = Trigger | str | Iterable[Trigger | str]

# Custom validator signature: (rule, value, source) -> result or awaitable result
CustomValidator = Callable[..., Any]


class RuleDeclarationError(ValueError):
    """Raised when a rule declaration cannot be understood.

    Unknown keys, unknown value types, or invalid triggers. This signals that
    validation could not run, as opposed to ValidateFieldsError which signals
    that validation ran and failed.
    """


def coerce_triggers(value: TriggerType | None) -> frozenset[Trigger] | None:
    """Normalize one-or-many trigger values into a frozenset.

    Returns None when no trigger is given.

    Raises:
        RuleDeclarationError: If a value is not a known trigger
    """
    if value is None:
        return None
    if isinstance(value, (Trigger, str)):
        value = [value]
    result = set()
    for item in value:
        try:
            result.add(item if isinstance(item, Trigger) else Trigger(item))
        except ValueError:
            raise RuleDeclarationError(
                f"Unknown trigger '{item}'. Expected one of: "
                + ", ".join(t.value for t in Trigger)
            ) from None
    return frozenset(result)


@dataclass(frozen=True)
class Rule:
    """A single declarative constraint attached to a field.

    Attributes:
        type: Value type name resolved through the TypeRegistry (None: no type check)
        required: Value must be present and non-empty
        message: Message (or zero-argument callable) replacing every built-in message
        trigger: Triggers this rule reacts to (None: always active)
        pattern: Regex the string value must contain (search semantics)
        min: Lower bound (length for strings/sequences, value for numbers)
        max: Upper bound (length for strings/sequences, value for numbers)
        len: Exact length or value
        enum: Allowed values
        whitespace: Reject strings made only of whitespace
        validator: Custom (optionally async) callable (rule, value, source)
        fields: Nested descriptors keyed by member name or index
        default_field: Descriptor applied to every member of an object or array
        transform: Callable applied to the value before any check
    """

    type: str | None = None
    required: bool = False
    message: str | Callable[[], str] | None = None
    trigger: frozenset[Trigger] | None = None
    pattern: str | re.Pattern | None = None
    min: float | None = None
    max: float | None = None
    len: int | None = None
    enum: tuple[Any, ...] | None = None
    whitespace: bool = False
    validator: CustomValidator | None = None
    fields: Mapping[str | int, Any] | None = None
    default_field: Any = None
    transform: Callable[[Any], Any] | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "trigger", coerce_triggers(self.trigger))
        if self.enum is not None and not isinstance(self.enum, tuple):
            object.__setattr__(self, "enum", tuple(self.enum))
        if isinstance(self.pattern, str):
            try:
                object.__setattr__(self, "pattern", re.compile(self.pattern))
            except re.error as e:
                raise RuleDeclarationError(
                    f"Invalid pattern '{self.pattern}': {e}"
                ) from None

    # Declaration keys accepted in addition to the attribute names
    _ALIASES = {
        "defaultField": "default_field",
        "asyncValidator": "validator",
        "async_validator": "validator",
    }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Rule":
        """Create a Rule from a declaration mapping (Python, YAML or JSON)."""
        known = {f.name for f in dataclass_fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            name = cls._ALIASES.get(key, key)
            if name not in known:
                raise RuleDeclarationError(f"Unknown rule attribute '{key}'")
            kwargs[name] = value
        return cls(**kwargs)

    @classmethod
    def coerce(cls, value: "Rule | Mapping[str, Any]") -> "Rule":
        """Return value as a Rule, converting declaration mappings."""
        if isinstance(value, Rule):
            return value
        if isinstance(value, Mapping):
            return cls.from_dict(value)
        raise RuleDeclarationError(
            f"Rule must be a Rule or a mapping, got {type(value).__name__}"
        )

    def resolve_message(self) -> str | None:
        """Return the declared message, calling it if it is a computation."""
        if callable(self.message):
            return self.message()
        return self.message


# Field name -> one rule or an ordered sequence of rules
RuleSet = Mapping[str, Rule | Mapping[str, Any] | Sequence[Rule | Mapping[str, Any]]]


@dataclass(frozen=True)
class ValidationError:
    """A single validation failure.

    Attributes:
        message: Human-readable, display-ready message
        field: Field name, or dotted path for nested values (e.g. "address.city")
        value: The value that failed
        rule_type: Type name of the failing rule, if it declared one
    """

    message: str
    field: str
    value: Any = None
    rule_type: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "field": self.field,
            "ruleType": self.rule_type,
        }


class ValidateFieldsError(Exception):
    """Validation ran and at least one field failed.

    Attributes:
        errors: Every failure, ordered by field declaration then rule order
        fields: The same failures grouped by field
    """

    def __init__(
        self,
        errors: list[ValidationError],
        fields: dict[str, list[ValidationError]] | None = None,
    ):
        self.errors = errors
        if fields is None:
            fields = {}
            for error in errors:
                fields.setdefault(error.field, []).append(error)
        self.fields = fields
        super().__init__(self._summary())

    def _summary(self) -> str:
        if not self.errors:
            return "Validation failed"
        first = self.errors[0]
        more = len(self.errors) - 1
        suffix = f" (and {more} more)" if more else ""
        return f"{first.field}: {first.message}{suffix}"

    def first_message(self, field: str) -> str:
        """Return the first message reported for field, or an empty string."""
        field_errors = self.fields.get(field)
        if not field_errors:
            return ""
        return field_errors[0].message or ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "errors": [e.to_dict() for e in self.errors],
            "fields": {
                name: [e.to_dict() for e in errs] for name, errs in self.fields.items()
            },
        }
