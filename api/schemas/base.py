"""
Base model for the camelCase API contract.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Fields are snake_case in Python and camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_columns(self, exclude_unset: bool = False) -> dict:
        """Field values keyed by database column name."""
        return self.model_dump(by_alias=False, exclude_unset=exclude_unset)
