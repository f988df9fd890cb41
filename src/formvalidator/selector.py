"""Rule selection by field and trigger."""

import logging

from formvalidator.schema.validator import normalize_rules
from formvalidator.types import Rule, RuleSet, Trigger, TriggerType

logger = logging.getLogger(__name__)

_TRIGGER_VALUES = {t.value: t for t in Trigger}


def _requested_triggers(trigger: TriggerType) -> frozenset[Trigger]:
    """Read requested triggers, ignoring values that name no known trigger."""
    if isinstance(trigger, (Trigger, str)):
        trigger = [trigger]
    requested = set()
    for item in trigger:
        if isinstance(item, Trigger):
            requested.add(item)
        elif item in _TRIGGER_VALUES:
            requested.add(_TRIGGER_VALUES[item])
        else:
            logger.debug("Ignoring unknown trigger %r", item)
    return frozenset(requested)


def select_rules(
    rule_set: RuleSet | None,
    field_name: str,
    trigger: TriggerType | None = None,
) -> list[Rule]:
    """Return the rules of field_name that apply to trigger, in declared order.

    A rule with no trigger always applies. A rule with triggers applies when
    they intersect the requested ones. With no requested trigger every rule of
    the field is returned. Unknown requested triggers match nothing, so only
    rules without a trigger survive them. The rule set is never modified.

    Args:
        rule_set: Field name -> rule(s); None is treated as empty
        field_name: The field to select rules for
        trigger: One trigger or several

    Returns:
        A new list (empty when the field has no rules)
    """
    if not rule_set or field_name not in rule_set:
        return []

    rules = normalize_rules(rule_set[field_name])
    if trigger is None:
        return rules

    requested = _requested_triggers(trigger)
    return [
        rule for rule in rules
        if rule.trigger is None or rule.trigger & requested
    ]
