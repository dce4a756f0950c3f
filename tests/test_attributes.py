"""Tests for attribute records, operator tables and attribute selection."""

import pytest
from pydantic import ValidationError

from admissions.attributes import (
    Attribute,
    AttributeDependencyError,
    AttributeOption,
    AttributeRule,
    AttributeType,
    Condition,
    allowed_operators,
    find_dependents,
    import_attribute,
    is_operator_allowed,
    remove_attribute,
)


class TestAttributeModel:
    def test_wire_names(self):
        attribute = Attribute.model_validate(
            {
                "attributeId": 4,
                "name": "dob",
                "displayName": "Date of Birth",
                "type": "date",
            }
        )
        assert attribute.attribute_id == 4
        assert attribute.type == AttributeType.DATE
        assert attribute.to_wire()["displayName"] == "Date of Birth"

    def test_choice_requires_options(self):
        with pytest.raises(ValidationError, match="requires options"):
            Attribute(attribute_id=1, name="d", display_name="D", type="dropdown")

    def test_options_only_on_choice(self):
        with pytest.raises(ValidationError):
            Attribute(
                attribute_id=1,
                name="n",
                display_name="N",
                type="number",
                options=[AttributeOption(label="a", value="a")],
            )

    def test_validation_bounds(self):
        with pytest.raises(ValidationError):
            Attribute(
                attribute_id=1,
                name="n",
                display_name="N",
                type="number",
                validation_rule={"min": 5, "max": 1},
            )

    def test_single_visibility_rule(self):
        rule = AttributeRule(conditions=[Condition(evaluated_attribute_id=2, value1="x")])
        with pytest.raises(ValidationError):
            Attribute(attribute_id=1, name="n", display_name="N", type="number", rules=[rule, rule])

    def test_self_reference_rejected(self):
        rule = AttributeRule(conditions=[Condition(evaluated_attribute_id=9, value1="1")])
        with pytest.raises(ValidationError, match="references itself"):
            Attribute(attribute_id=9, name="loop", display_name="Loop", type="number", rules=[rule])

    def test_blank_evaluated_attribute(self):
        assert Condition(evaluated_attribute_id="").evaluated_attribute_id is None

    def test_referenced_ids(self, thesis, gpa):
        assert thesis.referenced_attribute_ids() == {2}
        assert gpa.referenced_attribute_ids() == set()
        assert thesis.visibility_rule.action == "SHOW"


class TestOperatorTables:
    def test_number_ordering(self):
        assert "greater_than" in allowed_operators("number")
        assert "contains" not in allowed_operators("number")

    def test_text_membership(self):
        assert allowed_operators(AttributeType.SINGLE_LINE_TEXT) == (
            "equals",
            "not_equals",
            "contains",
            "not_contains",
        )

    def test_visibility_table_is_stricter(self):
        assert is_operator_allowed("multiselect", "equals")
        assert not is_operator_allowed("multiselect", "equals", visibility=True)
        assert allowed_operators("multiLineText", visibility=True) == ("contains", "not_contains")

    def test_unknown_type_falls_back_to_equality(self):
        assert allowed_operators("color") == ("equals", "not_equals")
        assert allowed_operators(None) == ("equals", "not_equals")


class TestAttributeSelection:
    def test_import_adds_dependencies(self, gpa, degree, thesis):
        result = import_attribute([], thesis, [gpa, degree, thesis])
        assert [a.attribute_id for a in result] == [3, 2]
        assert result[0].depends_on == [2]

    def test_import_skips_duplicates(self, gpa, degree, thesis):
        result = import_attribute([degree, thesis], thesis, [gpa, degree, thesis])
        assert [a.attribute_id for a in result] == [2, 3]

    def test_import_with_unknown_reference(self, thesis):
        result = import_attribute([], thesis, [thesis])
        assert [a.attribute_id for a in result] == [3]
        assert result[0].depends_on == []

    def test_find_dependents(self, attributes):
        assert [a.name for a in find_dependents(attributes, 2)] == ["thesis"]
        assert find_dependents(attributes, 1) == []

    def test_remove_refused_with_dependents(self, attributes):
        with pytest.raises(AttributeDependencyError) as exc_info:
            remove_attribute(attributes, 2)
        assert exc_info.value.dependents[0].name == "thesis"
        assert "first remove the attributes that depend on it: Thesis Title" in str(exc_info.value)

    def test_remove_free_attribute(self, attributes):
        assert [a.attribute_id for a in remove_attribute(attributes, 3)] == [1, 2]

    def test_remove_missing_attribute(self, attributes):
        result = remove_attribute(attributes, 42)
        assert result == attributes
        assert result is not attributes
