"""Editing session for one ruleset.

``RulesetEditor`` owns the ruleset being edited and routes every change
through the pure mutation functions, replacing the ruleset only when the
tree actually changed. Rejected edits leave the ruleset untouched and put
a user-facing message in ``last_error``.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from admissions.attributes.models import Attribute
from admissions.attributes.service import (
    AttributeDependencyError,
    identity_order,
    import_attribute,
    remove_attribute,
)
from admissions.core.config import Settings, get_settings
from admissions.core.ids import generate_node_id
from admissions.rules import mutations
from admissions.rules.dnd import DragCoordinator
from admissions.rules.mutations import RuleEditError
from admissions.rules.tree import Combinator, Group, LeafRule, Operation, Ruleset, is_group

logger = logging.getLogger(__name__)


class RulesetEditor:
    """Holds a ruleset and applies editor commands to it."""

    def __init__(
        self,
        ruleset: Ruleset | None = None,
        on_change: Callable[[Ruleset], None] | None = None,
        settings: Settings | None = None,
    ):
        self.settings = settings or get_settings()
        self._ruleset = ruleset or Ruleset()
        self._on_change = on_change
        self.last_error: str | None = None
        self.drag = DragCoordinator(
            get_root=lambda: self._ruleset.root_group,
            commit=self._replace_root,
            activation_distance=self.settings.drag_activation_distance,
        )

    @property
    def ruleset(self) -> Ruleset:
        return self._ruleset

    @property
    def root(self) -> Group:
        return self._ruleset.root_group

    def _attributes_by_id(self) -> dict[int, Attribute]:
        return {a.attribute_id: a for a in self._ruleset.attributes}

    def _replace(self, ruleset: Ruleset) -> None:
        self._ruleset = ruleset
        if self._on_change:
            self._on_change(ruleset)

    def _replace_root(self, root: Group) -> bool:
        if root == self._ruleset.root_group:
            return False
        self._replace(self._ruleset.model_copy(update={"root_group": root}))
        return True

    # -------------------------------------------------------------------------
    # Groups
    # -------------------------------------------------------------------------

    def add_group(self, parent_group_id: str) -> Group | None:
        """Append a new empty AND group; returns it, or None if the parent is missing."""
        group = Group(id=generate_node_id(), combinator=Combinator.AND)
        if self._replace_root(mutations.add_group(self.root, parent_group_id, group)):
            return group
        return None

    def update_group(self, group_id: str, **changes: Any) -> bool:
        return self._replace_root(mutations.update_group(self.root, group_id, changes))

    def remove_group(self, group_id: str) -> bool:
        if group_id == self.root.id:
            self.last_error = "The root group cannot be removed"
            return False
        return self._replace_root(mutations.remove_group(self.root, group_id))

    def clone_group(self, group_id: str) -> bool:
        group = mutations.find_node(self.root, group_id)
        if group is None or not is_group(group):
            return False
        return self._replace_root(
            mutations.clone_group(self.root, group, self._clone_parent(group_id))
        )

    # -------------------------------------------------------------------------
    # Rules
    # -------------------------------------------------------------------------

    def add_rule(self, group_id: str) -> LeafRule | None:
        """Append a default rule targeting the first imported attribute."""
        attributes = self._ruleset.attributes
        rule = LeafRule(
            id=generate_node_id(),
            attribute_id=attributes[0].attribute_id if attributes else None,
            operation=Operation.ADD,
            points=0,
        )
        if self._replace_root(mutations.add_rule(self.root, group_id, rule)):
            return rule
        return None

    def update_rule(self, rule_id: str, **changes: Any) -> bool:
        """Edit a leaf rule; a rejected edit keeps the prior values."""
        try:
            new_root = mutations.update_rule(
                self.root, rule_id, changes, self._attributes_by_id()
            )
        except RuleEditError as e:
            logger.warning("Rejected edit of rule %s: %s", rule_id, e)
            self.last_error = str(e)
            return False
        self.last_error = None
        return self._replace_root(new_root)

    def remove_rule(self, rule_id: str) -> bool:
        return self._replace_root(mutations.remove_rule(self.root, rule_id))

    def clone_rule(self, rule_id: str) -> bool:
        rule = mutations.find_node(self.root, rule_id)
        if rule is None or is_group(rule):
            return False
        return self._replace_root(
            mutations.clone_rule(self.root, rule, self._clone_parent(rule_id))
        )

    def _clone_parent(self, node_id: str) -> str | None:
        if not self.settings.clone_beside_original:
            return None
        parent = mutations.find_parent(self.root, node_id)
        return parent.id if parent else None

    # -------------------------------------------------------------------------
    # Ruleset details and attributes
    # -------------------------------------------------------------------------

    def update_details(
        self,
        name: str | None = None,
        description: str | None = None,
        base_weight: float | None = None,
    ) -> None:
        changes: dict[str, Any] = {}
        if name is not None:
            changes["name"] = name
        if description is not None:
            changes["description"] = description
        if base_weight is not None:
            changes["base_weight"] = float(base_weight)
        if changes:
            self._replace(self._ruleset.model_copy(update=changes))

    def import_attribute(self, attribute: Attribute, available: list[Attribute]) -> None:
        """Import an attribute with its dependencies and reset the form order."""
        attributes = import_attribute(self._ruleset.attributes, attribute, available)
        if len(attributes) == len(self._ruleset.attributes):
            return
        self._replace(
            self._ruleset.model_copy(
                update={"attributes": attributes, "form_order": identity_order(attributes)}
            )
        )

    def remove_attribute(self, attribute_id: int) -> bool:
        """Remove an attribute unless another attribute's rule references it."""
        try:
            attributes = remove_attribute(self._ruleset.attributes, attribute_id)
        except AttributeDependencyError as e:
            self.last_error = str(e)
            return False
        if len(attributes) == len(self._ruleset.attributes):
            return False
        self._replace(
            self._ruleset.model_copy(
                update={"attributes": attributes, "form_order": identity_order(attributes)}
            )
        )
        return True

    def set_form_order(self, form_order: list[int]) -> bool:
        if sorted(form_order) != list(range(len(self._ruleset.attributes))):
            self.last_error = "Form order must list every attribute exactly once"
            return False
        self._replace(self._ruleset.model_copy(update={"form_order": list(form_order)}))
        return True
