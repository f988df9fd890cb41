"""Tests for rule selection by field and trigger."""

import pytest

from formvalidator.selector import select_rules
from formvalidator.types import Rule, Trigger


@pytest.fixture
def rule_set():
    return {
        "email": [
            Rule(type="email", trigger="blur", message="Invalid email"),
            Rule(required=True, trigger=["blur", "change"]),
            Rule(min=3),
        ],
        "name": {"required": True, "trigger": "change"},
    }


class TestSelectRules:
    def test_missing_field_returns_empty(self, rule_set):
        assert select_rules(rule_set, "age") == []

    def test_none_rule_set_returns_empty(self):
        assert select_rules(None, "email") == []
        assert select_rules({}, "email", "blur") == []

    def test_no_trigger_returns_all_rules_in_order(self, rule_set):
        rules = select_rules(rule_set, "email")
        assert rules == list(rule_set["email"])

    def test_blur_keeps_blur_and_untriggered_rules(self, rule_set):
        rules = select_rules(rule_set, "email", "blur")
        assert len(rules) == 3

    def test_change_excludes_blur_only_rules(self, rule_set):
        rules = select_rules(rule_set, "email", Trigger.CHANGE)
        assert [r.type for r in rules] == [None, None]
        assert rules[0].required is True
        assert rules[1].min == 3

    def test_several_requested_triggers_intersect(self, rule_set):
        rules = select_rules(rule_set, "name", ["blur", "change"])
        assert len(rules) == 1
        assert rules[0].required is True

    def test_single_mapping_is_normalized(self, rule_set):
        rules = select_rules(rule_set, "name", "blur")
        assert rules == []

    def test_result_is_new_list(self, rule_set):
        rules = select_rules(rule_set, "email")
        rules.clear()
        assert len(rule_set["email"]) == 3

    def test_unknown_trigger_keeps_untriggered_rules(self, rule_set):
        rules = select_rules(rule_set, "email", "submit")
        assert [r.min for r in rules] == [3]

    def test_unknown_trigger_among_known(self, rule_set):
        rules = select_rules(rule_set, "email", ["submit", "blur"])
        assert len(rules) == 3

    def test_empty_trigger_set_filters(self, rule_set):
        rules = select_rules(rule_set, "email", [])
        assert [r.min for r in rules] == [3]
        assert select_rules(rule_set, "name", []) == []
