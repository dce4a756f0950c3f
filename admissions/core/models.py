"""Shared pydantic base for records exchanged with the backend."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base model using camelCase wire names and snake_case attributes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        """Dump using the camelCase wire names."""
        return self.model_dump(mode="json", by_alias=True)
