"""Tests for the ruleset editing session."""

import pytest

from admissions.core.config import Settings
from admissions.rules import Combinator, Operation, Ruleset, RulesetEditor, find_node, node_ids


@pytest.fixture
def changes() -> list[Ruleset]:
    return []


@pytest.fixture
def editor(sample_ruleset, changes) -> RulesetEditor:
    return RulesetEditor(sample_ruleset, on_change=changes.append, settings=Settings())


class TestGroupCommands:
    def test_add_group(self, editor, changes):
        group = editor.add_group("g1")
        assert group.combinator == Combinator.AND
        assert group.children == ()
        assert find_node(editor.root, group.id) == group
        assert len(changes) == 1

    def test_add_group_to_missing_parent(self, editor, changes):
        assert editor.add_group("missing") is None
        assert changes == []

    def test_update_group(self, editor):
        assert editor.update_group("g2", combinator="OR")
        assert find_node(editor.root, "g2").combinator == Combinator.OR

    def test_update_group_with_enum_and_unknown_value(self, editor):
        assert editor.update_group("g2", combinator=Combinator.OR)
        assert not editor.update_group("g2", combinator="XOR")
        assert find_node(editor.root, "g2").combinator == Combinator.OR

    def test_remove_root_refused(self, editor, changes):
        assert not editor.remove_group("root")
        assert editor.last_error == "The root group cannot be removed"
        assert changes == []

    def test_remove_group(self, editor):
        assert editor.remove_group("g1")
        assert node_ids(editor.root) == ["root", "r1", "r4"]

    def test_clone_group_goes_to_root(self, editor):
        assert editor.clone_group("g2")
        assert len(editor.root.children) == 4
        assert len(find_node(editor.root, "g1").children) == 2

    def test_clone_beside_original(self, sample_ruleset):
        editor = RulesetEditor(sample_ruleset, settings=Settings(clone_beside_original=True))
        assert editor.clone_group("g2")
        assert len(editor.root.children) == 3
        assert len(find_node(editor.root, "g1").children) == 3

    def test_clone_leaf_as_group_ignored(self, editor):
        assert not editor.clone_group("r1")


class TestRuleCommands:
    def test_add_rule_defaults(self, editor):
        rule = editor.add_rule("g2")
        assert rule.attribute_id == 1
        assert rule.condition == "equals"
        assert rule.value == ""
        assert rule.operation == Operation.ADD
        assert rule.points == 0
        assert find_node(editor.root, "g2").children[-1] == rule

    def test_add_rule_without_attributes(self):
        editor = RulesetEditor(Ruleset(), settings=Settings())
        rule = editor.add_rule("root")
        assert rule.attribute_id is None

    def test_update_rule(self, editor):
        assert editor.update_rule("r1", points=25)
        assert find_node(editor.root, "r1").points == 25
        assert editor.last_error is None

    def test_divide_by_zero_edit_blocked(self, editor, changes):
        # Scenario: a divide with zero points is rejected and the prior points are kept
        assert not editor.update_rule("r1", operation="divide", points=0)
        assert editor.last_error == "Cannot divide by zero. Please enter a non-zero value."
        rule = find_node(editor.root, "r1")
        assert rule.points == 10
        assert rule.operation == Operation.ADD
        assert changes == []

    def test_malformed_value_blocked(self, editor, changes):
        before = editor.root
        assert editor.update_rule("r1", points="ten") is False
        assert editor.root is before
        assert "points" in editor.last_error
        assert find_node(editor.root, "r1").points == 10
        assert changes == []

    def test_disallowed_operator_blocked(self, editor):
        assert not editor.update_rule("r4", condition="less_than")
        assert "not available" in editor.last_error
        assert find_node(editor.root, "r4").condition == "equals"

    def test_remove_rule(self, editor):
        assert editor.remove_rule("r3")
        assert find_node(editor.root, "g2").children == ()

    def test_clone_rule(self, editor):
        before = set(node_ids(editor.root))
        assert editor.clone_rule("r3")
        clone = editor.root.children[-1]
        assert clone.id not in before
        assert clone.points == 1

    def test_missing_rule_commands_are_noops(self, editor, changes):
        assert not editor.update_rule("missing", points=1)
        assert not editor.remove_rule("missing")
        assert not editor.clone_rule("missing")
        assert changes == []


class TestDetailsAndAttributes:
    def test_update_details(self, editor):
        editor.update_details(name="Renamed", base_weight="12.5")
        assert editor.ruleset.name == "Renamed"
        assert editor.ruleset.base_weight == 12.5
        assert editor.ruleset.description == ""

    def test_import_attribute_with_dependency(self, gpa, degree, thesis):
        editor = RulesetEditor(Ruleset(attributes=[gpa]), settings=Settings())
        editor.import_attribute(thesis, [gpa, degree, thesis])
        assert [a.attribute_id for a in editor.ruleset.attributes] == [1, 3, 2]
        assert editor.ruleset.form_order == [0, 1, 2]
        assert editor.ruleset.get_attribute(3).depends_on == [2]

    def test_remove_referenced_attribute_refused(self, editor):
        assert not editor.remove_attribute(2)
        assert "Thesis Title" in editor.last_error
        assert len(editor.ruleset.attributes) == 3

    def test_remove_attribute_resets_order(self, editor):
        assert editor.set_form_order([2, 1, 0])
        assert editor.remove_attribute(3)
        assert editor.ruleset.form_order == [0, 1]

    def test_set_form_order_validates(self, editor):
        assert not editor.set_form_order([0, 1])
        assert editor.ruleset.form_order == [0, 1, 2]


class TestDragIntegration:
    def test_drag_commits_through_editor(self, editor, changes):
        editor.drag.pointer_down("r4", 0, 0)
        editor.drag.pointer_move(0, 20, "r1")
        assert editor.drag.release().committed
        assert [c.id for c in editor.root.children] == ["r4", "r1", "g1"]
        assert len(changes) == 1

    def test_activation_distance_from_settings(self, sample_ruleset):
        editor = RulesetEditor(sample_ruleset, settings=Settings(drag_activation_distance=50))
        editor.drag.pointer_down("r4", 0, 0)
        editor.drag.pointer_move(0, 20, "r1")
        assert not editor.drag.release().committed

