"""Shared schema building blocks"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Literal


MediaType = Literal["movie", "tv"]


class CamelModel(BaseModel):
    """
    Base model exposing camelCase aliases for snake_case fields.
    Accepts either spelling on input, emits camelCase on output.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
