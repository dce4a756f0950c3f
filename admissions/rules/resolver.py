"""Visibility and scoring resolution for a ruleset and its form values."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, Field

from admissions.attributes.models import Attribute, AttributeOption
from admissions.rules.conditions import combine, evaluate_condition, evaluate_visibility
from admissions.rules.tree import Group, LeafRule, Operation, Ruleset, is_group

logger = logging.getLogger(__name__)


# =============================================================================
# Result Types
# =============================================================================


class TraceStep(BaseModel):
    """A single step in the scoring trace."""

    node: str
    kind: Literal["group", "rule"]
    condition: str
    result: bool
    value_checked: Any = None
    score_before: float | None = None
    score_after: float | None = None
    note: str | None = None


class ScoreResult(BaseModel):
    """Score produced by walking a rule tree."""

    base_weight: float
    score: float
    trace: list[TraceStep] = Field(default_factory=list)

    @property
    def applied_rules(self) -> list[str]:
        """Ids of leaf rules whose operation changed the score."""
        return [
            s.node
            for s in self.trace
            if s.kind == "rule" and s.result and s.score_after is not None and s.note is None
        ]


class EvaluationResult(BaseModel):
    """Complete result of evaluating a ruleset against form values."""

    ruleset_id: str | None = None
    visible_attribute_ids: list[int] = Field(default_factory=list)
    score: float
    base_weight: float
    trace: list[TraceStep] = Field(default_factory=list)


# =============================================================================
# Form Values
# =============================================================================


def normalize_values(values: Mapping[Any, Any]) -> dict[int, Any]:
    """Key form values by integer attribute id.

    JSON objects arrive with string keys; keys that are not integers are
    dropped.
    """
    result: dict[int, Any] = {}
    for key, value in values.items():
        if isinstance(key, bool):
            continue
        if isinstance(key, int):
            result[key] = value
            continue
        try:
            result[int(str(key).strip())] = value
        except ValueError:
            logger.debug("Ignoring form value with non-integer key %r", key)
    return result


# =============================================================================
# Visibility
# =============================================================================


def is_attribute_visible(attribute: Attribute, values: Mapping[int, Any]) -> bool:
    """Resolve an attribute's own visibility rule."""
    return evaluate_visibility(attribute.visibility_rule, values)


def visible_options(attribute: Attribute, values: Mapping[int, Any]) -> list[AttributeOption]:
    """Options of a choice attribute whose option-level rule is satisfied."""
    return [o for o in attribute.options or [] if evaluate_visibility(o.rule, values)]


def visible_attributes(
    attributes: list[Attribute], form_order: list[int], values: Mapping[int, Any]
) -> list[Attribute]:
    """Attributes to render, in form order, skipping hidden ones."""
    result = []
    for index in form_order:
        if not 0 <= index < len(attributes):
            logger.warning("formOrder index %s out of range, skipped", index)
            continue
        attribute = attributes[index]
        if is_attribute_visible(attribute, values):
            result.append(attribute)
    return result


# =============================================================================
# Scoring
# =============================================================================


def leaf_truth(rule: LeafRule, values: Mapping[int, Any]) -> bool:
    return evaluate_condition(rule.as_condition(), values)


def _truth_map(node: Group | LeafRule, values: Mapping[int, Any], out: dict[str, bool]) -> bool:
    if is_group(node):
        results = [_truth_map(child, values, out) for child in node.children]
        truth = combine(results, node.combinator.value)
    else:
        truth = leaf_truth(node, values)
    out[node.id] = truth
    return truth


def node_truth(node: Group | LeafRule, values: Mapping[int, Any]) -> bool:
    """Truth of a node: a leaf's condition, or a group's combined children."""
    return _truth_map(node, values, {})


def apply_operation(score: float, operation: Operation, points: float) -> float | None:
    """Apply one score operation; None when it would divide by zero."""
    if operation == Operation.ADD:
        return score + points
    if operation == Operation.SUBTRACT:
        return score - points
    if operation == Operation.MULTIPLY:
        return score * points
    if points == 0:
        return None
    return score / points


def score_tree(root: Group, base_weight: float, values: Mapping[int, Any]) -> ScoreResult:
    """Walk the tree in pre-order applying the operations of true leaves.

    A group whose combined truth is false contributes nothing: its whole
    subtree is skipped.
    """
    truths: dict[str, bool] = {}
    _truth_map(root, values, truths)
    trace: list[TraceStep] = []

    def walk(group: Group, score: float) -> float:
        truth = truths[group.id]
        trace.append(
            TraceStep(
                node=group.id,
                kind="group",
                condition=f"{group.combinator.value} of {len(group.children)} children",
                result=truth,
                score_before=score,
                score_after=score,
            )
        )
        if not truth:
            return score

        for child in group.children:
            if is_group(child):
                score = walk(child, score)
                continue

            truth = truths[child.id]
            step = TraceStep(
                node=child.id,
                kind="rule",
                condition=child.describe(),
                result=truth,
                value_checked=values.get(child.attribute_id),
                score_before=score,
                score_after=score,
            )
            if truth:
                updated = apply_operation(score, child.operation, child.points)
                if updated is None:
                    logger.warning("Rule %s divides by zero points, skipped", child.id)
                    step.note = "divide by zero skipped"
                else:
                    score = updated
                    step.score_after = score
            trace.append(step)
        return score

    score = walk(root, float(base_weight))
    return ScoreResult(base_weight=base_weight, score=score, trace=trace)


# =============================================================================
# Ruleset Evaluator
# =============================================================================


class RulesetEvaluator:
    """Evaluates rulesets against form values."""

    @staticmethod
    def _restrict(values: dict[int, Any], visible: list[Attribute]) -> dict[int, Any]:
        return {a.attribute_id: values[a.attribute_id] for a in visible if a.attribute_id in values}

    def visible_values(self, ruleset: Ruleset, values: Mapping[Any, Any]) -> dict[int, Any]:
        """Form values restricted to the attributes currently visible."""
        normalized = normalize_values(values)
        visible = visible_attributes(ruleset.attributes, ruleset.form_order, normalized)
        return self._restrict(normalized, visible)

    def evaluate(self, ruleset: Ruleset, values: Mapping[Any, Any]) -> EvaluationResult:
        """Resolve visibility, then score the tree using only visible values."""
        normalized = normalize_values(values)
        visible = visible_attributes(ruleset.attributes, ruleset.form_order, normalized)
        result = score_tree(
            ruleset.root_group, ruleset.base_weight, self._restrict(normalized, visible)
        )

        return EvaluationResult(
            ruleset_id=ruleset.id,
            visible_attribute_ids=[a.attribute_id for a in visible],
            score=result.score,
            base_weight=ruleset.base_weight,
            trace=result.trace,
        )
