"""Rule tree model - groups, leaf rules and the ruleset that owns them."""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Iterator, Literal, Union

from pydantic import ConfigDict, Field, field_validator, model_validator

from admissions.attributes.models import Attribute, Condition, ConditionOperator
from admissions.core.ids import generate_node_id
from admissions.core.models import WireModel

ROOT_ID = "root"


# =============================================================================
# Enumerations
# =============================================================================


class Combinator(str, Enum):
    """How a group combines the truth of its children."""

    AND = "AND"
    OR = "OR"


class Operation(str, Enum):
    """Score operation applied by a leaf rule."""

    ADD = "add"
    SUBTRACT = "subtract"
    MULTIPLY = "multiply"
    DIVIDE = "divide"


class DuplicateNodeIdError(ValueError):
    """Raised when a node id would appear twice in one tree."""

    def __init__(self, ids: set[str]):
        self.ids = ids
        super().__init__(f"Duplicate node ids in rule tree: {', '.join(sorted(ids))}")


# =============================================================================
# Tree Nodes
# =============================================================================


class LeafRule(WireModel):
    """A scoring rule: one condition and the operation applied when it holds."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["rule"] = "rule"
    id: str = Field(default_factory=generate_node_id, description="Unique within the tree")
    attribute_id: int | None = Field(None, description="Attribute the condition reads")
    condition: str = Field(ConditionOperator.EQUALS.value, description="Condition operator")
    value: str = Field("", description="Value compared against")
    operation: Operation = Operation.ADD
    points: float = 0.0

    @field_validator("value", mode="before")
    @classmethod
    def _value_as_text(cls, value: Any) -> str:
        if value is None:
            return ""
        return value if isinstance(value, str) else str(value)

    def as_condition(self) -> Condition:
        """The rule's implicit condition."""
        return Condition(
            condition_id=self.id,
            evaluated_attribute_id=self.attribute_id,
            operator=self.condition,
            value1=self.value,
        )

    def describe(self) -> str:
        return f"attribute[{self.attribute_id}] {self.condition} {self.value!r}"


class Group(WireModel):
    """A logic container combining its children with AND/OR."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["group"] = "group"
    id: str = Field(default_factory=generate_node_id, description="Unique within the tree")
    combinator: Combinator = Combinator.AND
    children: tuple[Node, ...] = ()

    @field_validator("combinator", mode="before")
    @classmethod
    def _upper_combinator(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.upper()
        return value


Node = Annotated[Union[Group, LeafRule], Field(discriminator="kind")]

Group.model_rebuild()


def default_root() -> Group:
    """The root group of a new ruleset."""
    return Group(id=ROOT_ID, combinator=Combinator.AND)


def is_group(node: Group | LeafRule) -> bool:
    return isinstance(node, Group)


def iter_nodes(node: Group | LeafRule) -> Iterator[Group | LeafRule]:
    """Yield ``node`` and all of its descendants in pre-order."""
    yield node
    if isinstance(node, Group):
        for child in node.children:
            yield from iter_nodes(child)


def node_ids(node: Group | LeafRule) -> list[str]:
    """All ids in a subtree, in pre-order."""
    return [n.id for n in iter_nodes(node)]


def find_duplicate_ids(node: Group | LeafRule) -> set[str]:
    seen: set[str] = set()
    duplicates: set[str] = set()
    for node_id in node_ids(node):
        if node_id in seen:
            duplicates.add(node_id)
        seen.add(node_id)
    return duplicates


def assert_unique_ids(node: Group | LeafRule) -> None:
    """Raise DuplicateNodeIdError if any id repeats within ``node``."""
    duplicates = find_duplicate_ids(node)
    if duplicates:
        raise DuplicateNodeIdError(duplicates)


# =============================================================================
# Ruleset
# =============================================================================


class Ruleset(WireModel):
    """A scoring tree plus the attributes and render order it governs."""

    id: str | None = Field(None, description="Ruleset identifier")
    name: str = ""
    base_weight: float = Field(0.0, description="Starting score")
    description: str = ""
    root_group: Group = Field(default_factory=default_root)
    attributes: list[Attribute] = Field(default_factory=list)
    form_order: list[int] = Field(
        default_factory=list, description="Indices into attributes, in render order"
    )

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_text(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @model_validator(mode="after")
    def _check_structure(self) -> Ruleset:
        assert_unique_ids(self.root_group)

        if not self.form_order and self.attributes:
            self.form_order = list(range(len(self.attributes)))
        if sorted(self.form_order) != list(range(len(self.attributes))):
            raise ValueError(
                f"formOrder {self.form_order} is not a permutation of "
                f"{len(self.attributes)} attribute indices"
            )

        attribute_ids = [a.attribute_id for a in self.attributes]
        if len(set(attribute_ids)) != len(attribute_ids):
            raise ValueError("Attribute ids must be unique within a ruleset")
        return self

    def get_attribute(self, attribute_id: int) -> Attribute | None:
        """Look up an imported attribute by id."""
        for attribute in self.attributes:
            if attribute.attribute_id == attribute_id:
                return attribute
        return None

    def ordered_attributes(self) -> list[Attribute]:
        """Attributes in render order."""
        return [self.attributes[i] for i in self.form_order]
