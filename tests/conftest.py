"""Pytest fixtures for test suite."""

import pytest
from pathlib import Path

from admissions.attributes import Attribute, AttributeOption, AttributeRule, Condition
from admissions.core.config import get_settings
from admissions.rules import Group, LeafRule, Ruleset, RulesetLoader


# =============================================================================
# Core Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Settings are cached; tests that patch the environment need a fresh read."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def rulesets_dir() -> Path:
    """Path to the bundled rulesets directory."""
    return Path(__file__).parent.parent / "admissions" / "rules" / "data"


@pytest.fixture
def ruleset_loader(rulesets_dir: Path) -> RulesetLoader:
    """Loader with the bundled rulesets loaded."""
    loader = RulesetLoader(rulesets_dir)
    loader.load_directory()
    return loader


@pytest.fixture
def graduate_ruleset(ruleset_loader: RulesetLoader) -> Ruleset:
    return ruleset_loader.get_ruleset("graduate_admissions")


# =============================================================================
# Attribute Fixtures
# =============================================================================


@pytest.fixture
def gpa() -> Attribute:
    return Attribute(
        attribute_id=1,
        name="gpa",
        display_name="GPA",
        type="number",
        validation_rule={"required": True, "min": 0, "max": 4},
    )


@pytest.fixture
def degree() -> Attribute:
    return Attribute(
        attribute_id=2,
        name="degree",
        display_name="Degree",
        type="dropdown",
        options=[
            AttributeOption(label="Bachelor", value="bachelor"),
            AttributeOption(label="Master", value="master"),
        ],
    )


@pytest.fixture
def thesis() -> Attribute:
    """Shown only when the degree is a master."""
    return Attribute(
        attribute_id=3,
        name="thesis",
        display_name="Thesis Title",
        type="singleLineText",
        rules=[
            AttributeRule(
                action="SHOW",
                logic_operator="AND",
                conditions=[
                    Condition(evaluated_attribute_id=2, operator="equals", value1="master")
                ],
            )
        ],
    )


@pytest.fixture
def attributes(gpa, degree, thesis) -> list[Attribute]:
    return [gpa, degree, thesis]


# =============================================================================
# Tree Fixtures
# =============================================================================


@pytest.fixture
def sample_tree() -> Group:
    """root(AND) -> [r1, g1(OR) -> [r2, g2(AND) -> [r3]], r4]"""
    return Group(
        id="root",
        combinator="AND",
        children=(
            LeafRule(id="r1", attribute_id=1, condition="greater_than", value="3", points=10),
            Group(
                id="g1",
                combinator="OR",
                children=(
                    LeafRule(id="r2", attribute_id=2, value="master", points=5),
                    Group(
                        id="g2",
                        combinator="AND",
                        children=(LeafRule(id="r3", attribute_id=1, value="4", points=1),),
                    ),
                ),
            ),
            LeafRule(id="r4", attribute_id=2, value="bachelor", operation="subtract", points=2),
        ),
    )


@pytest.fixture
def sample_ruleset(sample_tree, attributes) -> Ruleset:
    return Ruleset(
        id="sample",
        name="Sample",
        base_weight=100,
        root_group=sample_tree,
        attributes=attributes,
    )
