"""Default message templates for built-in rule checks.

Templates use ``str.format`` placeholders. Available keys depend on the check:
{field}, {type}, {min}, {max}, {len}, {pattern}, {enum}, {value}.
Unknown placeholders are left in place rather than raising.
"""

from collections.abc import Mapping
from typing import Any

DEFAULT_MESSAGES: dict[str, str] = {
    "default": "Validation error on field {field}",
    "required": "{field} is required",
    "enum": "{field} must be one of {enum}",
    "whitespace": "{field} cannot be empty",
    "type": "{field} is not a valid {type}",
    "pattern": "{field} value {value} does not match pattern {pattern}",
    "string.len": "{field} must be exactly {len} characters",
    "string.min": "{field} must be at least {min} characters",
    "string.max": "{field} cannot be longer than {max} characters",
    "string.range": "{field} must be between {min} and {max} characters",
    "number.len": "{field} must equal {len}",
    "number.min": "{field} cannot be less than {min}",
    "number.max": "{field} cannot be greater than {max}",
    "number.range": "{field} must be between {min} and {max}",
    "array.len": "{field} must be exactly {len} in length",
    "array.min": "{field} cannot be less than {min} in length",
    "array.max": "{field} cannot be greater than {max} in length",
    "array.range": "{field} must be between {min} and {max} in length",
}


class _KeepMissing(dict):
    def __missing__(self, key: str) -> str:
        return "{" + key + "}"


def merge_messages(overrides: Mapping[str, str] | None = None) -> dict[str, str]:
    """Return the default templates with overrides applied."""
    messages = dict(DEFAULT_MESSAGES)
    if overrides:
        messages.update(overrides)
    return messages


def format_message(
    messages: Mapping[str, str],
    key: str,
    **params: Any,
) -> str:
    """Format the template stored under key.

    Falls back to the "default" template when key has no template.
    """
    template = messages.get(key) or messages.get("default") or DEFAULT_MESSAGES["default"]
    return template.format_map(_KeepMissing({k: _display(v) for k, v in params.items()}))


def _display(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    if value is None:
        return ""
    return str(value)
