"""Base models for plugin protocol serialization."""

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic.alias_generators import to_pascal


class PascalCaseModel(BaseModel):
    """Base model for docker plugin payloads using PascalCase JSON keys."""

    model_config = ConfigDict(
        alias_generator=to_pascal,
        populate_by_name=True,
    )
