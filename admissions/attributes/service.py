"""Attribute selection for a ruleset - importing with dependencies and safe removal."""

from __future__ import annotations

import logging

from admissions.attributes.models import Attribute

logger = logging.getLogger(__name__)


class AttributeDependencyError(ValueError):
    """Raised when removing an attribute that other attributes still reference."""

    def __init__(self, attribute: Attribute, dependents: list[Attribute]):
        self.attribute = attribute
        self.dependents = dependents
        names = ", ".join(a.display_name for a in dependents)
        super().__init__(
            f"To remove {attribute.display_name}, first remove the attributes "
            f"that depend on it: {names}"
        )


def identity_order(attributes: list[Attribute]) -> list[int]:
    """Default render order: the attributes' own positions."""
    return list(range(len(attributes)))


def find_dependents(attributes: list[Attribute], attribute_id: int) -> list[Attribute]:
    """Attributes whose visibility rule references ``attribute_id``."""
    return [
        a
        for a in attributes
        if a.attribute_id != attribute_id and attribute_id in a.referenced_attribute_ids()
    ]


def import_attribute(
    selected: list[Attribute],
    attribute: Attribute,
    available: list[Attribute],
) -> list[Attribute]:
    """Add an attribute and every attribute its visibility rule references.

    ``depends_on`` is filled from the referenced attributes found in
    ``available``. Attributes already selected are not added twice.
    Returns a new list; the caller resets the form order.
    """
    by_id = {a.attribute_id: a for a in available}
    referenced = attribute.referenced_attribute_ids()
    missing = sorted(i for i in referenced if i not in by_id)
    if missing:
        logger.warning(
            "Attribute %s references unknown attributes %s", attribute.attribute_id, missing
        )

    depends_on = [i for i in sorted(referenced) if i in by_id]
    result = list(selected)
    present = {a.attribute_id for a in result}

    if attribute.attribute_id not in present:
        result.append(attribute.model_copy(update={"depends_on": depends_on}))
        present.add(attribute.attribute_id)

    for dep_id in depends_on:
        if dep_id not in present:
            result.append(by_id[dep_id])
            present.add(dep_id)

    return result


def remove_attribute(selected: list[Attribute], attribute_id: int) -> list[Attribute]:
    """Remove an attribute unless another selected attribute references it.

    Raises:
        AttributeDependencyError: if a selected attribute's rule reads it
    """
    target = next((a for a in selected if a.attribute_id == attribute_id), None)
    if target is None:
        logger.debug("Attribute %s not selected, nothing to remove", attribute_id)
        return list(selected)

    dependents = find_dependents(selected, attribute_id)
    if dependents:
        raise AttributeDependencyError(target, dependents)

    return [a for a in selected if a.attribute_id != attribute_id]
