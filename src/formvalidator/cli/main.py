"""formvalidator CLI entry point."""

import logging

import click

from formvalidator.config import EngineConfig

_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(_LEVELS, case_sensitive=False),
    default=None,
    help="Logging level (default: FORMVALIDATOR_LOG_LEVEL or WARNING).",
)
def cli(log_level: str | None):
    """Declarative form validation CLI."""
    try:
        config = EngineConfig.from_env()
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="environment")
    if log_level:
        config.log_level = log_level.upper()
    try:
        level = config.log_level_number
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="FORMVALIDATOR_LOG_LEVEL")
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
    )


# Register subcommand groups
from formvalidator.cli.rules_cmd import rules  # noqa: E402

cli.add_command(rules)
