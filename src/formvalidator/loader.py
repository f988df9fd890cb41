"""
Load rule sets from YAML or JSON files.

A rule file holds a top-level ``rules`` mapping (field name -> rule or list of
rules) and an optional ``messages`` mapping overriding default templates::

    rules:
      email:
        - {type: email, required: true, message: "Email is required", trigger: blur}
      age:
        type: integer
        min: 18
        trigger: [blur, change]
    messages:
      required: "{field} must be filled in"

Files are checked in two passes: structure against
``schemas/ruleset.schema.json`` (JSON Schema), then semantics (known rule
types, registered custom validators, compilable patterns).

Usage:
    from formvalidator.loader import check_rule_file, load_rule_set

    for issue in check_rule_file(Path("rules/signup.yaml")):
        print(issue)

    loaded = load_rule_set(Path("rules/signup.yaml"))
    engine = loaded.create_engine()
"""
from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from jsonschema import Draft202012Validator
from jsonschema.exceptions import ValidationError as SchemaError

from formvalidator.config import EngineConfig
from formvalidator.engine import ValidationEngine
from formvalidator.schema import TypeRegistry, ValidatorRegistry
from formvalidator.store import ErrorStore
from formvalidator.types import Rule, RuleDeclarationError

logger = logging.getLogger(__name__)

_SCHEMA_PATH = Path(__file__).parent / "schemas" / "ruleset.schema.json"


# ---------------------------------------------------------------------------
# Public data types
# ---------------------------------------------------------------------------


@dataclass
class RuleSetIssue:
    """A single finding for a rule file."""

    file: Path | None
    message: str
    path: str = ""          # location within the document, e.g. "rules/email[0]"
    severity: str = "error" # "error" | "warning"

    def __str__(self) -> str:
        loc = f" at {self.path}" if self.path else ""
        source = self.file if self.file is not None else "<data>"
        return f"[{self.severity.upper()}] {source}{loc}: {self.message}"


@dataclass
class LoadedRuleSet:
    """Rules and message overrides read from a rule file."""

    rules: dict[str, list[Rule]]
    messages: dict[str, str] = field(default_factory=dict)
    source: Path | None = None

    def create_engine(
        self,
        store: ErrorStore | None = None,
        config: EngineConfig | None = None,
    ) -> ValidationEngine:
        """Create a ValidationEngine using this file's message overrides."""
        return ValidationEngine(store=store, config=config, messages=self.messages)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_schema() -> dict[str, Any]:
    with _SCHEMA_PATH.open() as fh:
        return json.load(fh)


def _json_path(error: SchemaError) -> str:
    """Convert a jsonschema error path to a readable string."""
    parts = []
    for p in error.absolute_path:
        if isinstance(p, int):
            parts.append(f"[{p}]")
        else:
            parts.append(str(p))
    return "/".join(parts).replace("/[", "[")


def _preprocess_on_key(obj: Any) -> Any:
    """Rename the boolean key ``True`` back to ``"on"`` throughout a parsed document.

    PyYAML (YAML 1.1) reads a bare ``on:`` key as ``True``.
    """
    if isinstance(obj, dict):
        return {("on" if k is True else k): _preprocess_on_key(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_preprocess_on_key(item) for item in obj]
    return obj


def _read(path: Path) -> tuple[Any, list[RuleSetIssue]]:
    try:
        with path.open() as fh:
            return _preprocess_on_key(yaml.safe_load(fh)), []
    except yaml.YAMLError as exc:
        return None, [RuleSetIssue(file=path, message=f"YAML parse error: {exc}")]


def _build_rule(declaration: Mapping[str, Any]) -> Rule:
    data = dict(declaration)

    name = data.get("validator")
    if isinstance(name, str):
        data["validator"] = ValidatorRegistry.get(name)

    if data.get("fields"):
        data["fields"] = {key: build_rules(value) for key, value in data["fields"].items()}
    for key in ("defaultField", "default_field"):
        if data.get(key) is not None:
            data[key] = build_rules(data[key])

    rule = Rule.from_dict(data)
    if rule.type is not None:
        TypeRegistry.get(rule.type)
    return rule


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def build_rules(value: Any) -> list[Rule]:
    """Convert one declaration or a list of declarations into Rules.

    Named custom validators are resolved through the ValidatorRegistry and
    nested ``fields``/``defaultField`` declarations are converted too.

    Raises:
        RuleDeclarationError: If a declaration is invalid
    """
    if isinstance(value, Rule):
        return [value]
    if isinstance(value, Mapping):
        return [_build_rule(value)]
    if isinstance(value, list):
        return [item if isinstance(item, Rule) else _build_rule(item) for item in value]
    raise RuleDeclarationError(
        f"Rules must be a mapping or a list of mappings, got {type(value).__name__}"
    )


def check_rule_data(data: Any, file: Path | None = None) -> list[RuleSetIssue]:
    """
    Check parsed rule-file content.

    Returns:
        A list of :class:`RuleSetIssue` objects (empty on success).
    """
    if data is None:
        return [RuleSetIssue(file=file, message="File is empty or contains only whitespace")]

    validator = Draft202012Validator(_load_schema())
    issues = [
        RuleSetIssue(file=file, message=error.message, path=_json_path(error))
        for error in sorted(
            validator.iter_errors(data),
            key=lambda e: [str(p) for p in e.absolute_path],
        )
    ]
    if issues:
        return issues

    for name, value in data["rules"].items():
        try:
            build_rules(value)
        except RuleDeclarationError as exc:
            issues.append(RuleSetIssue(file=file, message=str(exc), path=f"rules/{name}"))

    if not data["rules"]:
        issues.append(RuleSetIssue(
            file=file, message="Rule set declares no fields", severity="warning"
        ))

    return issues


def check_rule_file(path: Path) -> list[RuleSetIssue]:
    """
    Check a single YAML or JSON rule file.

    Returns:
        A list of :class:`RuleSetIssue` objects (empty on success).
    """
    raw, issues = _read(path)
    if issues:
        return issues
    return check_rule_data(raw, path)


def load_rule_set(path: Path) -> LoadedRuleSet:
    """
    Load a rule file.

    Warnings are logged; errors abort loading.

    Raises:
        RuleDeclarationError: If the file has any error-severity issue
    """
    raw, issues = _read(path)
    if not issues:
        issues = check_rule_data(raw, path)

    errors = [i for i in issues if i.severity == "error"]
    for issue in issues:
        if issue.severity == "warning":
            logger.warning("Rule file warning: %s", issue)
    if errors:
        raise RuleDeclarationError("; ".join(str(i) for i in errors))

    rules = {name: build_rules(value) for name, value in raw["rules"].items()}
    logger.debug("Loaded %d field rule(s) from %s", len(rules), path)
    return LoadedRuleSet(rules=rules, messages=dict(raw.get("messages") or {}), source=path)
