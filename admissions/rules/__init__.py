"""Rules domain - rule trees, mutation, evaluation and drag and drop."""

from .tree import (
    ROOT_ID,
    Combinator,
    Operation,
    DuplicateNodeIdError,
    LeafRule,
    Group,
    Node,
    Ruleset,
    default_root,
    is_group,
    iter_nodes,
    node_ids,
    assert_unique_ids,
)
from .mutations import (
    Path,
    RuleEditError,
    DivideByZeroError,
    InvalidRuleValueError,
    OperatorNotAllowedError,
    find_node,
    find_parent,
    update_group,
    add_rule,
    add_group,
    remove_group,
    remove_rule,
    check_rule_edit,
    update_rule,
    clone_subtree,
    clone_group,
    clone_rule,
    find_item_by_id,
    get_item,
    remove_item,
    insert_item,
    move_item,
)
from .conditions import (
    loose_equals,
    to_number,
    apply_operator,
    evaluate_condition,
    evaluate_conditions,
    evaluate_visibility,
)
from .resolver import (
    TraceStep,
    ScoreResult,
    EvaluationResult,
    RulesetEvaluator,
    normalize_values,
    is_attribute_visible,
    visible_options,
    visible_attributes,
    node_truth,
    apply_operation,
    score_tree,
)
from .dnd import (
    DragState,
    DropStatus,
    DropOutcome,
    DragCoordinator,
    can_drop_item,
)
from .serialization import (
    RuleAction,
    RuleRow,
    RulesetDocument,
    flatten_tree,
    rehydrate_tree,
    ruleset_to_document,
    document_to_ruleset,
)
from .editor import RulesetEditor
from .loader import RulesetLoader
from .validation import RulesetIssue, validate_ruleset

__all__ = [
    # Tree model
    "ROOT_ID",
    "Combinator",
    "Operation",
    "DuplicateNodeIdError",
    "LeafRule",
    "Group",
    "Node",
    "Ruleset",
    "default_root",
    "is_group",
    "iter_nodes",
    "node_ids",
    "assert_unique_ids",
    # Mutations
    "Path",
    "RuleEditError",
    "DivideByZeroError",
    "InvalidRuleValueError",
    "OperatorNotAllowedError",
    "find_node",
    "find_parent",
    "update_group",
    "add_rule",
    "add_group",
    "remove_group",
    "remove_rule",
    "check_rule_edit",
    "update_rule",
    "clone_subtree",
    "clone_group",
    "clone_rule",
    "find_item_by_id",
    "get_item",
    "remove_item",
    "insert_item",
    "move_item",
    # Conditions
    "loose_equals",
    "to_number",
    "apply_operator",
    "evaluate_condition",
    "evaluate_conditions",
    "evaluate_visibility",
    # Resolver
    "TraceStep",
    "ScoreResult",
    "EvaluationResult",
    "RulesetEvaluator",
    "normalize_values",
    "is_attribute_visible",
    "visible_options",
    "visible_attributes",
    "node_truth",
    "apply_operation",
    "score_tree",
    # Drag and drop
    "DragState",
    "DropStatus",
    "DropOutcome",
    "DragCoordinator",
    "can_drop_item",
    # Serialization
    "RuleAction",
    "RuleRow",
    "RulesetDocument",
    "flatten_tree",
    "rehydrate_tree",
    "ruleset_to_document",
    "document_to_ruleset",
    # Editing and storage
    "RulesetEditor",
    "RulesetLoader",
    "RulesetIssue",
    "validate_ruleset",
]
