"""formvalidator: declarative field and form validation.

This package provides the validation engine behind form components:
- Rule selection by field and trigger (blur, change)
- Asynchronous validation of one field or the whole model
- An observable error store, one message per field
- A form context with a registry of mounted fields

Usage:
    from formvalidator import FieldContext, FormContext

    model = {"email": "", "age": None}
    form = FormContext(model, rules={
        "email": {"type": "email", "required": True, "trigger": "blur"},
        "age": {"type": "integer", "min": 18, "message": "Adults only"},
    })

    with FieldContext(form, "email") as email:
        await email.validate_field("blur")   # raises ValidateFieldsError
        print(email.error.value)             # "email is required"
"""

from formvalidator.config import EngineConfig
from formvalidator.engine import ValidationEngine
from formvalidator.field import FieldBinding, FieldContext
from formvalidator.form import FormContext
from formvalidator.loader import LoadedRuleSet, check_rule_file, load_rule_set
from formvalidator.schema import Schema, TypeRegistry, ValidatorRegistry, custom_validator
from formvalidator.selector import select_rules
from formvalidator.store import ErrorStore, FieldErrorView, Subscription
from formvalidator.types import (
    Rule,
    RuleDeclarationError,
    RuleSet,
    Trigger,
    ValidateFieldsError,
    ValidationError,
)

__all__ = [
    # Types
    "Rule",
    "RuleDeclarationError",
    "RuleSet",
    "Trigger",
    "ValidateFieldsError",
    "ValidationError",
    # Schema
    "Schema",
    "TypeRegistry",
    "ValidatorRegistry",
    "custom_validator",
    # Engine
    "EngineConfig",
    "ErrorStore",
    "FieldErrorView",
    "Subscription",
    "ValidationEngine",
    "select_rules",
    # Form
    "FieldBinding",
    "FieldContext",
    "FormContext",
    # Loading
    "LoadedRuleSet",
    "check_rule_file",
    "load_rule_set",
]
