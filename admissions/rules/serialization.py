"""Flattened rule rows exchanged with the backend, and their tree form.

A ruleset is persisted as a flat list of rows linked by ``parentRuleId``:

- a group is a row with ``logicOperator`` set, no ``action`` and no
  conditions;
- a leaf rule is a row with no ``logicOperator``, an ``action`` holding its
  operation and points, and exactly one condition.

``ruleId`` values are assigned in pre-order starting at 1. Each row also
carries ``key``, the node's tree id, so that a flattened tree comes back
with the same ids.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Iterable

from pydantic import Field, field_validator

from admissions.attributes.models import Attribute, Condition, ConditionOperator
from admissions.core.models import WireModel
from admissions.rules.tree import (
    ROOT_ID,
    Combinator,
    Group,
    LeafRule,
    Operation,
    Ruleset,
    is_group,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Wire Models
# =============================================================================


class RuleAction(WireModel):
    """Score effect of a leaf row."""

    operation: Operation | None = None
    points: float | None = 0


class RuleRow(WireModel):
    """One persisted rule row."""

    rule_id: int
    parent_rule_id: int | None = None
    logic_operator: str | None = None
    action: RuleAction | None = None
    conditions: list[Condition] = Field(default_factory=list)
    key: str | None = Field(None, description="Tree node id")

    @property
    def is_group(self) -> bool:
        """A row without conditions or an operation is a logic container."""
        has_operation = self.action is not None and self.action.operation is not None
        return not self.conditions and not has_operation

    @property
    def node_id(self) -> str:
        return self.key or str(self.rule_id)


class RulesetDocument(WireModel):
    """A ruleset as stored: the record plus its flat rule rows."""

    id: str | None = None
    name: str = ""
    base_weight: float = 0.0
    description: str = ""
    attributes: list[Attribute] = Field(default_factory=list)
    form_order: list[int] = Field(default_factory=list)
    rules: list[RuleRow] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_text(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


# =============================================================================
# Flatten
# =============================================================================


def flatten_tree(root: Group) -> list[RuleRow]:
    """Flatten a tree into rows, root first, in pre-order."""
    rows: list[RuleRow] = []

    def emit(node: Group | LeafRule, parent_id: int | None) -> None:
        rule_id = len(rows) + 1
        if is_group(node):
            rows.append(
                RuleRow(
                    rule_id=rule_id,
                    parent_rule_id=parent_id,
                    logic_operator=node.combinator.value,
                    key=node.id,
                )
            )
            for child in node.children:
                emit(child, rule_id)
            return

        rows.append(
            RuleRow(
                rule_id=rule_id,
                parent_rule_id=parent_id,
                action=RuleAction(operation=node.operation, points=node.points),
                conditions=[
                    Condition(
                        evaluated_attribute_id=node.attribute_id,
                        operator=node.condition,
                        value1=node.value,
                        value2=None,
                    )
                ],
                key=node.id,
            )
        )

    emit(root, None)
    return rows


# =============================================================================
# Rehydrate
# =============================================================================


def _row_to_leaf(row: RuleRow) -> LeafRule:
    first = row.conditions[0] if row.conditions else None
    if len(row.conditions) > 1:
        logger.warning("Rule %s has %d conditions; only the first is kept",
                       row.rule_id, len(row.conditions))
    action = row.action or RuleAction()
    return LeafRule(
        id=row.node_id,
        attribute_id=first.evaluated_attribute_id if first else None,
        condition=(first.operator if first and first.operator else ConditionOperator.EQUALS.value),
        value=first.value1 if first and first.value1 is not None else "",
        operation=action.operation or Operation.ADD,
        points=action.points or 0,
    )


def rehydrate_tree(rows: Iterable[RuleRow | dict[str, Any]]) -> Group:
    """Rebuild the nested tree from parent-pointer rows.

    A single top-level group row becomes the root; any other top level is
    wrapped in a synthetic AND root. Rows whose parent is missing are
    dropped.
    """
    parsed = [r if isinstance(r, RuleRow) else RuleRow.model_validate(r) for r in rows]
    by_id: dict[int, RuleRow] = {}
    for row in parsed:
        if row.rule_id in by_id:
            logger.warning("Duplicate ruleId %s, keeping the last row", row.rule_id)
        by_id[row.rule_id] = row

    children: dict[int | None, list[RuleRow]] = defaultdict(list)
    for row in by_id.values():
        parent = row.parent_rule_id
        if parent is not None and parent not in by_id:
            logger.warning("Rule %s has unknown parent %s, dropped", row.rule_id, parent)
            continue
        children[parent].append(row)

    def build(row: RuleRow) -> Group | LeafRule:
        kids = children.get(row.rule_id, [])
        if not row.is_group and not kids:
            return _row_to_leaf(row)
        if not row.is_group:
            logger.warning("Rule %s has both a condition and children; treated as a group",
                           row.rule_id)
        return Group(
            id=row.node_id,
            combinator=row.logic_operator or Combinator.AND,
            children=tuple(build(k) for k in kids),
        )

    top = children.get(None, [])
    if len(top) == 1 and top[0].is_group:
        return build(top[0])
    return Group(id=ROOT_ID, combinator=Combinator.AND, children=tuple(build(r) for r in top))


# =============================================================================
# Ruleset Documents
# =============================================================================


def ruleset_to_document(ruleset: Ruleset) -> RulesetDocument:
    return RulesetDocument(
        id=ruleset.id,
        name=ruleset.name,
        base_weight=ruleset.base_weight,
        description=ruleset.description,
        attributes=ruleset.attributes,
        form_order=ruleset.form_order,
        rules=flatten_tree(ruleset.root_group),
    )


def document_to_ruleset(document: RulesetDocument) -> Ruleset:
    return Ruleset(
        id=document.id,
        name=document.name,
        base_weight=document.base_weight,
        description=document.description,
        root_group=rehydrate_tree(document.rules),
        attributes=document.attributes,
        form_order=document.form_order,
    )
