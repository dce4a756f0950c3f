"""Pure mutations over an immutable rule tree.

Every function takes the current root group and returns a new root; the
input is never modified. A target id or path that does not exist in the
tree is not an error: the root comes back unchanged (the same object), so
callers can compare with ``is`` or ``==`` to detect a no-op.

Two addressing styles share one contract:

- id-based edits used by the editor (``update_group``, ``add_rule``,
  ``remove_group`` ...), which rewrite the tree from the root down;
- path-based splicing used by drag and drop (``find_item_by_id``,
  ``remove_item``, ``insert_item``, ``move_item``). A path is a tuple of
  child indices starting from the root group's children; the root itself
  has the empty path.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping

from pydantic import ValidationError

from admissions.attributes.models import Attribute
from admissions.attributes.operators import is_operator_allowed
from admissions.core.config import get_settings
from admissions.core.ids import generate_node_id
from admissions.rules.tree import (
    Combinator,
    DuplicateNodeIdError,
    Group,
    LeafRule,
    Operation,
    is_group,
    iter_nodes,
    node_ids,
)

logger = logging.getLogger(__name__)

Path = tuple[int, ...]
TreeNode = Group | LeafRule


# =============================================================================
# Edit Errors
# =============================================================================


class RuleEditError(ValueError):
    """A rule edit rejected at the input boundary."""


class DivideByZeroError(RuleEditError):
    def __init__(self, rule_id: str):
        self.rule_id = rule_id
        super().__init__("Cannot divide by zero. Please enter a non-zero value.")


class InvalidRuleValueError(RuleEditError):
    def __init__(self, rule_id: str, error: ValidationError):
        self.rule_id = rule_id
        self.errors = error.errors()
        fields = ", ".join(str(e["loc"][0]) for e in self.errors if e.get("loc"))
        super().__init__(f"Invalid value for {fields or 'rule'}. Please check your input.")


class OperatorNotAllowedError(RuleEditError):
    def __init__(self, operator: str, attribute: Attribute):
        self.operator = operator
        self.attribute = attribute
        super().__init__(
            f"Operator '{operator}' is not available for "
            f"{attribute.type.value} attribute '{attribute.display_name}'"
        )


# =============================================================================
# Helpers
# =============================================================================


def _report_miss(operation: str, target: Any) -> None:
    message = "%s: target %r not found, tree unchanged"
    if get_settings().dev_warn_on_noop:
        logger.warning(message, operation, target)
    else:
        logger.debug(message, operation, target)


def _with_children(group: Group, children: tuple[TreeNode, ...]) -> Group:
    """Copy of ``group`` with new children, or ``group`` itself if nothing changed."""
    if len(children) == len(group.children) and all(
        a is b for a, b in zip(children, group.children)
    ):
        return group
    return group.model_copy(update={"children": children})


def _rewrite(group: Group, visit: Callable[[Group], Group]) -> Group:
    """Apply ``visit`` to every group bottom-up, sharing unchanged subtrees."""
    children = tuple(_rewrite(c, visit) if is_group(c) else c for c in group.children)
    return visit(_with_children(group, children))


def _assert_fresh(root: Group, node: TreeNode) -> None:
    clashes = set(node_ids(root)) & set(node_ids(node))
    if clashes:
        raise DuplicateNodeIdError(clashes)


def _normalize_patch(model: type, patch: Mapping[str, Any]) -> dict[str, Any]:
    """Map camelCase or snake_case patch keys onto model field names."""
    by_alias = {f.alias: name for name, f in model.model_fields.items() if f.alias}
    result: dict[str, Any] = {}
    for key, value in patch.items():
        name = key if key in model.model_fields else by_alias.get(key)
        if name is None or name in ("id", "kind", "children"):
            logger.warning("Ignoring unsupported %s field %r", model.__name__, key)
            continue
        result[name] = value
    return result


def contains_id(root: Group, node_id: str) -> bool:
    return any(n.id == node_id for n in iter_nodes(root))


def find_node(root: Group, node_id: str) -> TreeNode | None:
    """First node with ``node_id`` in pre-order, including the root."""
    for node in iter_nodes(root):
        if node.id == node_id:
            return node
    return None


def find_parent(root: Group, node_id: str) -> Group | None:
    """Group directly containing ``node_id``; None for the root or a miss."""
    for node in iter_nodes(root):
        if is_group(node) and any(c.id == node_id for c in node.children):
            return node
    return None


# =============================================================================
# Id-based Mutations
# =============================================================================


def _as_combinator(value: Any) -> Combinator | None:
    if isinstance(value, Combinator):
        return value
    try:
        return Combinator(str(value).upper())
    except ValueError:
        logger.debug("Unknown combinator %r", value)
        return None


def update_group(root: Group, group_id: str, patch: Mapping[str, Any]) -> Group:
    """Replace fields of the matching group (currently its combinator)."""
    changes = _normalize_patch(Group, patch)
    if "combinator" in changes:
        combinator = _as_combinator(changes["combinator"])
        if combinator is None:
            _report_miss("update_group", changes["combinator"])
            return root
        changes["combinator"] = combinator
    if not changes or find_node(root, group_id) is None:
        _report_miss("update_group", group_id)
        return root

    def visit(group: Group) -> Group:
        if group.id != group_id:
            return group
        updated = group.model_copy(update=changes)
        return group if updated == group else updated

    return _rewrite(root, visit)


def _append_to_group(root: Group, group_id: str, node: TreeNode, operation: str) -> Group:
    target = find_node(root, group_id)
    if target is None or not is_group(target):
        _report_miss(operation, group_id)
        return root
    _assert_fresh(root, node)

    def visit(group: Group) -> Group:
        if group.id != group_id:
            return group
        return _with_children(group, group.children + (node,))

    return _rewrite(root, visit)


def add_rule(root: Group, group_id: str, rule: LeafRule) -> Group:
    """Append a leaf rule to the matching group's children."""
    return _append_to_group(root, group_id, rule, "add_rule")


def add_group(root: Group, group_id: str, new_group: Group) -> Group:
    """Append a group to the matching group's children."""
    return _append_to_group(root, group_id, new_group, "add_group")


def remove_group(root: Group, group_id: str) -> Group:
    """Delete a group and its subtree wherever it appears.

    The root group itself is never removed.
    """
    if group_id == root.id:
        logger.warning("The root group cannot be removed")
        return root
    target = find_node(root, group_id)
    if target is None or not is_group(target):
        _report_miss("remove_group", group_id)
        return root

    def visit(group: Group) -> Group:
        kept = tuple(c for c in group.children if not (is_group(c) and c.id == group_id))
        return _with_children(group, kept)

    return _rewrite(root, visit)


def remove_rule(root: Group, rule_id: str) -> Group:
    """Delete a leaf rule wherever it appears; emptied groups stay."""
    target = find_node(root, rule_id)
    if target is None or is_group(target):
        _report_miss("remove_rule", rule_id)
        return root

    def visit(group: Group) -> Group:
        kept = tuple(c for c in group.children if is_group(c) or c.id != rule_id)
        return _with_children(group, kept)

    return _rewrite(root, visit)


def check_rule_edit(
    rule: LeafRule,
    patch: Mapping[str, Any],
    attributes: Mapping[int, Attribute] | None = None,
) -> LeafRule:
    """Validate an edit to a leaf rule and return the edited rule.

    Raises:
        DivideByZeroError: if the result would divide by zero points
        OperatorNotAllowedError: if the patch sets an operator or attribute
            so that the attribute's type does not offer the operator
        InvalidRuleValueError: if a patched value has the wrong type
    """
    changes = _normalize_patch(LeafRule, patch)
    data = rule.model_dump()
    data.update(changes)
    try:
        edited = LeafRule.model_validate(data)
    except ValidationError as e:
        raise InvalidRuleValueError(rule.id, e) from e

    touches_score = "operation" in changes or "points" in changes
    if touches_score and edited.operation == Operation.DIVIDE and edited.points == 0:
        raise DivideByZeroError(rule.id)

    touches_operator = "condition" in changes or "attribute_id" in changes
    if attributes is not None and touches_operator and edited.attribute_id is not None:
        attribute = attributes.get(edited.attribute_id)
        if attribute is not None and not is_operator_allowed(attribute.type, edited.condition):
            raise OperatorNotAllowedError(edited.condition, attribute)

    return edited


def update_rule(
    root: Group,
    rule_id: str,
    patch: Mapping[str, Any],
    attributes: Mapping[int, Attribute] | None = None,
) -> Group:
    """Replace fields of the matching leaf rule.

    The edit is checked with ``check_rule_edit`` first; a rejected edit
    raises before anything changes.
    """
    target = find_node(root, rule_id)
    if target is None or is_group(target):
        _report_miss("update_rule", rule_id)
        return root

    edited = check_rule_edit(target, patch, attributes)
    if edited == target:
        return root

    def visit(group: Group) -> Group:
        children = tuple(
            edited if (not is_group(c) and c.id == rule_id) else c for c in group.children
        )
        return _with_children(group, children)

    return _rewrite(root, visit)


def clone_subtree(node: TreeNode) -> TreeNode:
    """Deep copy of ``node`` with a fresh id on every node."""
    if is_group(node):
        return node.model_copy(
            update={
                "id": generate_node_id(),
                "children": tuple(clone_subtree(c) for c in node.children),
            }
        )
    return node.model_copy(update={"id": generate_node_id()})


def clone_group(root: Group, group: Group, parent_id: str | None = None) -> Group:
    """Append a fresh-id copy of ``group``.

    The copy goes into the root group unless ``parent_id`` names another
    group.
    """
    return add_group(root, parent_id or root.id, clone_subtree(group))


def clone_rule(root: Group, rule: LeafRule, parent_id: str | None = None) -> Group:
    """Append a fresh-id copy of ``rule`` to the root group (or ``parent_id``)."""
    return add_rule(root, parent_id or root.id, clone_subtree(rule))


# =============================================================================
# Path-based Mutations
# =============================================================================


def find_item_by_id(root: Group, item_id: str) -> tuple[TreeNode, Path] | None:
    """Pre-order search returning the first match and its index path."""
    if root.id == item_id:
        return root, ()

    def search(group: Group, prefix: Path) -> tuple[TreeNode, Path] | None:
        for index, child in enumerate(group.children):
            path = prefix + (index,)
            if child.id == item_id:
                return child, path
            if is_group(child):
                found = search(child, path)
                if found:
                    return found
        return None

    return search(root, ())


def get_item(root: Group, path: Path) -> TreeNode | None:
    node: TreeNode = root
    for index in path:
        if not is_group(node) or not 0 <= index < len(node.children):
            return None
        node = node.children[index]
    return node


def _splice(
    group: Group,
    parent_path: Path,
    edit: Callable[[tuple[TreeNode, ...]], tuple[TreeNode, ...] | None],
) -> Group | None:
    """Apply ``edit`` to the children list at ``parent_path``; None if the path is invalid."""
    if not parent_path:
        children = edit(group.children)
        return None if children is None else _with_children(group, children)

    index = parent_path[0]
    if not 0 <= index < len(group.children) or not is_group(group.children[index]):
        return None
    child = _splice(group.children[index], parent_path[1:], edit)
    if child is None:
        return None
    children = group.children[:index] + (child,) + group.children[index + 1:]
    return _with_children(group, children)


def remove_item(root: Group, path: Path) -> Group:
    """Remove the node at ``path``."""
    if not path:
        logger.warning("remove_item: the root group cannot be removed")
        return root
    index = path[-1]

    def edit(children: tuple[TreeNode, ...]) -> tuple[TreeNode, ...] | None:
        if not 0 <= index < len(children):
            return None
        return children[:index] + children[index + 1:]

    result = _splice(root, path[:-1], edit)
    if result is None:
        _report_miss("remove_item", path)
        return root
    return result


def insert_item(root: Group, item: TreeNode, path: Path) -> Group:
    """Insert ``item`` so that it ends up at ``path``.

    The last index is clamped to the target list, so an index past the end
    appends.
    """
    if not path:
        _report_miss("insert_item", path)
        return root
    _assert_fresh(root, item)

    def edit(children: tuple[TreeNode, ...]) -> tuple[TreeNode, ...]:
        index = min(max(path[-1], 0), len(children))
        return children[:index] + (item,) + children[index:]

    result = _splice(root, path[:-1], edit)
    if result is None:
        _report_miss("insert_item", path)
        return root
    return result


def move_item(root: Group, item_id: str, target_id: str, *, into: bool = False) -> Group:
    """Move a node onto another node's position, or into a group.

    Dropping onto a node places the moved node where the target was: after
    it when moving forward within the same list, before it otherwise.
    With ``into`` (or when the target is the root) the node is appended to
    the target group's children. A target inside the moved subtree leaves
    the tree unchanged.
    """
    if item_id == target_id:
        return root
    source = find_item_by_id(root, item_id)
    target = find_item_by_id(root, target_id)
    if source is None or target is None or not source[1]:
        _report_miss("move_item", item_id if source is None else target_id)
        return root

    item, source_path = source
    _, target_path = target

    pruned = remove_item(root, source_path)
    relocated = find_item_by_id(pruned, target_id)
    if relocated is None:
        logger.debug("move_item: %r is inside the moved subtree %r", target_id, item_id)
        return root
    target_node, new_target_path = relocated

    if is_group(target_node) and (into or not new_target_path):
        destination = new_target_path + (len(target_node.children),)
    else:
        moving_forward = (
            source_path[:-1] == target_path[:-1] and source_path[-1] < target_path[-1]
        )
        offset = 1 if moving_forward else 0
        destination = new_target_path[:-1] + (new_target_path[-1] + offset,)

    return insert_item(pruned, item, destination)
