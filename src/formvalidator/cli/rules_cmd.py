"""Rule file CLI commands: check and run."""

import asyncio
import json
from pathlib import Path
from typing import Any

import click
import yaml

from formvalidator.config import EngineConfig
from formvalidator.engine import ValidationEngine
from formvalidator.form import gather_field_results
from formvalidator.loader import _preprocess_on_key, check_rule_file, load_rule_set
from formvalidator.types import Rule, RuleDeclarationError, ValidateFieldsError


def _load_data(path: Path) -> dict[str, Any]:
    """Read a YAML or JSON data file holding one mapping of field values."""
    try:
        with path.open() as fh:
            data = _preprocess_on_key(yaml.safe_load(fh))
    except yaml.YAMLError as exc:
        click.echo(click.style(f"Error: cannot parse {path}: {exc}", fg="red"), err=True)
        raise SystemExit(1)
    if data is None:
        return {}
    if not isinstance(data, dict):
        click.echo(
            click.style(f"Error: {path} must contain a mapping of field values", fg="red"),
            err=True,
        )
        raise SystemExit(1)
    return data


async def _run_engine(
    engine: ValidationEngine,
    rules: dict[str, list[Rule]],
    data: dict[str, Any],
    fields: tuple[str, ...],
    trigger: str | None,
) -> None:
    if trigger is None:
        await engine.validate(data, rules, list(fields) or None)
        return
    targets = list(fields) or list(rules)
    await gather_field_results(
        engine.validate_field(data, rules, name, trigger) for name in targets
    )


@click.group()
def rules():
    """Rule file commands."""
    pass


@rules.command()
@click.argument(
    "path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--strict",
    is_flag=True,
    default=False,
    help="Treat warnings as errors.",
)
def check(path: Path, strict: bool):
    """Check a rule file against the rule-set schema."""
    issues = check_rule_file(path)

    errors = [i for i in issues if i.severity == "error" or strict]
    warnings = [i for i in issues if i.severity == "warning"]

    for issue in issues:
        colour = "red" if issue.severity == "error" else "yellow"
        click.echo(click.style(str(issue), fg=colour))

    if errors:
        click.echo(
            click.style(
                f"\n{len(errors)} error(s) found"
                + (f", {len(warnings)} warning(s)" if warnings and not strict else ""),
                fg="red",
                bold=True,
            )
        )
        raise SystemExit(1)

    if warnings:
        click.echo(click.style(f"{len(warnings)} warning(s) found.", fg="yellow"))

    loaded = load_rule_set(path)
    click.echo(f"\nLoaded {len(loaded.rules)} field(s):")
    for name in sorted(loaded.rules):
        count = len(loaded.rules[name])
        click.echo(f"  ✓ {name} ({count} rule{'s' if count != 1 else ''})")

    click.echo(click.style("\nRule file is valid.", fg="green", bold=True))


@rules.command()
@click.argument(
    "rules_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.argument(
    "data_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--field",
    "fields",
    multiple=True,
    help="Validate only this field (repeatable).",
)
@click.option(
    "--trigger",
    type=click.Choice(["blur", "change"]),
    default=None,
    help="Only run rules declared for this trigger (and rules without one).",
)
@click.option(
    "--json",
    "as_json",
    is_flag=True,
    default=False,
    help="Print the result as JSON.",
)
def run(
    rules_path: Path,
    data_path: Path,
    fields: tuple[str, ...],
    trigger: str | None,
    as_json: bool,
):
    """Validate a data file against a rule file."""
    try:
        loaded = load_rule_set(rules_path)
    except RuleDeclarationError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        raise SystemExit(1)

    data = _load_data(data_path)
    engine = loaded.create_engine(config=EngineConfig.from_env())

    failure: ValidateFieldsError | None = None
    try:
        asyncio.run(_run_engine(engine, loaded.rules, data, fields, trigger))
    except ValidateFieldsError as e:
        failure = e

    errors = engine.store.snapshot()

    if as_json:
        payload: dict[str, Any] = {"valid": failure is None, "errors": errors}
        if failure is not None:
            payload["details"] = failure.to_dict()["errors"]
        click.echo(json.dumps(payload, indent=2, default=str))
    elif failure is None:
        click.echo(click.style("Valid.", fg="green", bold=True))
    else:
        for name, message in errors.items():
            click.echo(click.style(f"  ✗ {name}: {message}", fg="red"))
        click.echo(click.style(f"\n{len(errors)} field(s) invalid", fg="red", bold=True))

    if failure is not None:
        raise SystemExit(1)
