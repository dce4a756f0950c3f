"""Loading and saving ruleset documents as YAML files."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from admissions.core.config import Settings, get_settings
from admissions.rules.serialization import (
    RulesetDocument,
    document_to_ruleset,
    ruleset_to_document,
)
from admissions.rules.tree import Ruleset

logger = logging.getLogger(__name__)


class RulesetLoader:
    """Loads and validates rulesets from YAML files or directories.

    Files hold the flattened document form (a ``rules`` list of rows). A
    file may contain one document or a list of documents.
    """

    def __init__(self, rulesets_dir: str | Path | None = None):
        self.rulesets_dir = Path(rulesets_dir) if rulesets_dir else None
        self._rulesets: dict[str, Ruleset] = {}

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> RulesetLoader:
        """Loader for the configured rulesets directory."""
        settings = settings or get_settings()
        return cls(settings.rulesets_dir)

    def load_file(self, path: str | Path) -> list[Ruleset]:
        """Load rulesets from a single YAML file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Ruleset file not found: {path}")

        with open(path, "r", encoding="utf-8") as f:
            content = yaml.safe_load(f)

        items = content if isinstance(content, list) else [content]
        rulesets = []
        for index, item in enumerate(items):
            if item is not None and not isinstance(item, dict):
                raise ValueError(
                    f"Ruleset document {index} in {path} is a {type(item).__name__}, not a mapping"
                )
            default_id = path.stem if len(items) == 1 else f"{path.stem}_{index}"
            ruleset = self._parse_ruleset(item or {}, default_id)
            rulesets.append(ruleset)
            self._rulesets[ruleset.id] = ruleset

        return rulesets

    def load_directory(self, path: str | Path | None = None) -> list[Ruleset]:
        """Load all YAML rulesets from a directory."""
        path = Path(path) if path else self.rulesets_dir
        if not path:
            raise ValueError("No rulesets directory specified")
        if not path.exists():
            raise FileNotFoundError(f"Rulesets directory not found: {path}")

        rulesets = []
        for yaml_file in sorted(path.glob("*.yaml")):
            try:
                rulesets.extend(self.load_file(yaml_file))
            except (yaml.YAMLError, ValueError) as e:
                logger.warning("Failed to load %s: %s", yaml_file, e)

        return rulesets

    def get_ruleset(self, ruleset_id: str) -> Ruleset | None:
        """Get a loaded ruleset by id."""
        return self._rulesets.get(str(ruleset_id))

    def get_all_rulesets(self) -> list[Ruleset]:
        return list(self._rulesets.values())

    def _parse_ruleset(self, data: dict[str, Any], default_id: str) -> Ruleset:
        """Parse a ruleset from either the flattened or the nested form."""
        data = dict(data)
        data.setdefault("id", default_id)
        if "rootGroup" in data or "root_group" in data:
            return Ruleset.model_validate(data)
        return document_to_ruleset(RulesetDocument.model_validate(data))

    def save_ruleset(self, ruleset: Ruleset, path: str | Path | None = None) -> Path:
        """Save a ruleset to a YAML file in the flattened form."""
        if path is None:
            if self.rulesets_dir is None:
                raise ValueError("No rulesets directory specified and no path provided")
            if ruleset.id is None:
                raise ValueError("Ruleset has no id to name its file")
            path = self.rulesets_dir / f"{ruleset.id}.yaml"
        else:
            path = Path(path)

        data = ruleset_to_document(ruleset).model_dump(
            mode="json", by_alias=True, exclude_none=True
        )

        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(data, f, default_flow_style=False, allow_unicode=True, sort_keys=False)

        if ruleset.id is not None:
            self._rulesets[ruleset.id] = ruleset
        return path
