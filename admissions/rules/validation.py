"""Consistency report for a ruleset's rule tree."""

from __future__ import annotations

from pydantic import BaseModel

from admissions.attributes.models import Attribute, AttributeRule
from admissions.attributes.operators import is_operator_allowed
from admissions.rules.tree import Operation, Ruleset, is_group, iter_nodes


class RulesetIssue(BaseModel):
    """One problem found in a ruleset."""

    node: str
    category: str
    details: str


def _check_visibility_rule(
    node: str, rule: AttributeRule | None, attributes: dict[int, Attribute]
) -> list[RulesetIssue]:
    """Visibility conditions must use the stricter visibility operator table."""
    issues = []
    for condition in rule.conditions if rule else []:
        attribute = attributes.get(condition.evaluated_attribute_id)
        if attribute is None:
            continue
        if not is_operator_allowed(attribute.type, condition.operator, visibility=True):
            issues.append(
                RulesetIssue(
                    node=node,
                    category="visibility_operator_not_allowed",
                    details=f"'{condition.operator}' is not available in visibility rules for "
                            f"{attribute.type.value} attribute '{attribute.display_name}'",
                )
            )
    return issues


def validate_ruleset(ruleset: Ruleset) -> list[RulesetIssue]:
    """List problems in the rule tree and visibility rules without raising."""
    attributes = {a.attribute_id: a for a in ruleset.attributes}
    issues: list[RulesetIssue] = []

    for attribute in ruleset.attributes:
        prefix = f"attribute:{attribute.attribute_id}"
        issues.extend(_check_visibility_rule(prefix, attribute.visibility_rule, attributes))
        for option in attribute.options or []:
            issues.extend(
                _check_visibility_rule(f"{prefix}:{option.value}", option.rule, attributes)
            )

    for node in iter_nodes(ruleset.root_group):
        if is_group(node):
            if not node.children:
                issues.append(
                    RulesetIssue(node=node.id, category="empty_group", details="Group has no rules")
                )
            continue

        if node.attribute_id is None:
            issues.append(
                RulesetIssue(node=node.id, category="missing_attribute",
                             details="Rule does not reference an attribute")
            )
        elif node.attribute_id not in attributes:
            issues.append(
                RulesetIssue(
                    node=node.id,
                    category="unknown_attribute",
                    details=f"Attribute {node.attribute_id} is not imported into the ruleset",
                )
            )
        elif not is_operator_allowed(attributes[node.attribute_id].type, node.condition):
            attribute = attributes[node.attribute_id]
            issues.append(
                RulesetIssue(
                    node=node.id,
                    category="operator_not_allowed",
                    details=f"'{node.condition}' is not available for "
                            f"{attribute.type.value} attribute '{attribute.display_name}'",
                )
            )

        if node.operation == Operation.DIVIDE and node.points == 0:
            issues.append(
                RulesetIssue(node=node.id, category="divide_by_zero",
                             details="Rule divides the score by zero")
            )

    return issues
