"""Tests for condition evaluation."""

import math
from datetime import date

import pytest

from admissions.attributes import AttributeRule, Condition
from admissions.rules import (
    apply_operator,
    evaluate_condition,
    evaluate_conditions,
    evaluate_visibility,
    loose_equals,
    to_number,
)


def cond(attribute_id=1, operator="equals", value1=None) -> Condition:
    return Condition(evaluated_attribute_id=attribute_id, operator=operator, value1=value1)


class TestLooseEquality:
    def test_number_equals_its_text(self):
        # Scenario: equals "5" against a numeric 5
        assert evaluate_condition(cond(value1="5"), {1: 5}) is True

    def test_float_text(self):
        assert loose_equals(3.5, "3.5")
        assert loose_equals("2", 2.0)

    def test_strings_are_exact(self):
        assert loose_equals("master", "master")
        assert not loose_equals("Master", "master")

    def test_boolean_as_number(self):
        assert loose_equals(True, "1")
        assert loose_equals(False, 0)

    def test_single_item_list(self):
        assert loose_equals(["a"], "a")

    def test_date_against_text(self):
        assert loose_equals(date(2024, 1, 31), "2024-01-31")

    def test_not_equals(self):
        assert evaluate_condition(cond(operator="not_equals", value1="5"), {1: 6})
        assert not evaluate_condition(cond(operator="not_equals", value1="5"), {1: "5"})


class TestContains:
    def test_sequence_membership(self):
        assert evaluate_condition(cond(operator="contains", value1="b"), {1: ["a", "b"]})

    def test_substring(self):
        assert evaluate_condition(cond(operator="contains", value1="an"), {1: "banana"})

    def test_multiselect_mapping_tests_key_presence(self):
        values = {1: {"french": True, "german": False}}
        assert evaluate_condition(cond(operator="contains", value1="french"), values)
        # checked and then unchecked still has its key
        assert evaluate_condition(cond(operator="contains", value1="german"), values)
        assert not evaluate_condition(cond(operator="contains", value1="english"), values)
        assert evaluate_condition(cond(operator="not_contains", value1="english"), values)

    def test_unhashable_value_not_in_mapping(self):
        assert not apply_operator("contains", {"a": True}, ["a"])

    def test_not_contains(self):
        assert evaluate_condition(cond(operator="not_contains", value1="z"), {1: ["a"]})
        assert not evaluate_condition(cond(operator="not_contains", value1="a"), {1: "cat"})

    def test_number_has_no_members(self):
        assert not apply_operator("contains", 5, "5")


class TestOrdering:
    @pytest.mark.parametrize(
        "operator,value,expected",
        [
            ("greater_than", 4, True),
            ("greater_than", 3, False),
            ("less_than", 2, True),
            ("greater_than_or_equal", 3, True),
            ("less_than_or_equal", 3, True),
            ("less_than_or_equal", 3.01, False),
        ],
    )
    def test_numeric_comparison(self, operator, value, expected):
        assert evaluate_condition(cond(operator=operator, value1="3"), {1: value}) is expected

    def test_text_numbers_coerced(self):
        assert apply_operator("greater_than", "10", "9")

    def test_dates_compare_in_order(self):
        assert apply_operator("less_than", "2023-05-01", "2024-01-01")
        assert apply_operator("greater_than", date(2024, 2, 1), "2024-01-31")

    def test_non_numeric_compares_false(self):
        assert not apply_operator("greater_than", "abc", "1")
        assert not apply_operator("less_than", "abc", "1")

    def test_to_number(self):
        assert to_number("") == 0
        assert to_number(None) == 0
        assert to_number(" 7 ") == 7
        assert to_number(True) == 1
        assert math.isnan(to_number("seven"))


class TestMissingAndUnknown:
    def test_missing_value_is_false(self):
        assert evaluate_condition(cond(operator="not_equals", value1="x"), {}) is False

    def test_none_value_is_false(self):
        assert evaluate_condition(cond(operator="not_contains", value1="x"), {1: None}) is False

    def test_unknown_operator_is_true(self):
        assert evaluate_condition(cond(operator="starts_with", value1="x"), {1: "y"}) is True

    def test_unknown_operator_still_needs_value(self):
        assert evaluate_condition(cond(operator="starts_with", value1="x"), {}) is False


class TestCombination:
    def test_and(self):
        conditions = [cond(1, value1="a"), cond(2, value1="b")]
        assert evaluate_conditions(conditions, "AND", {1: "a", 2: "b"})
        assert not evaluate_conditions(conditions, "AND", {1: "a", 2: "c"})

    def test_or(self):
        conditions = [cond(1, value1="a"), cond(2, value1="b")]
        assert evaluate_conditions(conditions, "OR", {1: "x", 2: "b"})
        assert not evaluate_conditions(conditions, "OR", {1: "x", 2: "y"})


class TestVisibility:
    def test_no_rule_is_visible(self):
        assert evaluate_visibility(None, {})

    def test_no_conditions_is_visible(self):
        assert evaluate_visibility(AttributeRule(action="HIDE"), {})

    def test_show(self):
        rule = AttributeRule(action="SHOW", conditions=[cond(value1="yes")])
        assert evaluate_visibility(rule, {1: "yes"})
        assert not evaluate_visibility(rule, {1: "no"})

    def test_hide(self):
        rule = AttributeRule(action="HIDE", conditions=[cond(value1="yes")])
        assert not evaluate_visibility(rule, {1: "yes"})
        assert evaluate_visibility(rule, {1: "no"})

    def test_unknown_action_hides(self):
        rule = AttributeRule(action="BLINK", conditions=[cond(value1="yes")])
        assert not evaluate_visibility(rule, {1: "yes"})
        assert not evaluate_visibility(rule, {1: "no"})

    def test_hide_with_missing_value_is_visible(self):
        rule = AttributeRule(action="HIDE", conditions=[cond(value1="yes")])
        assert evaluate_visibility(rule, {})
