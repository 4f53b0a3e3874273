"""Shared pydantic base — camelCase on the wire, snake_case in Python."""

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "from_attributes": True,
    }


class MessageResponse(CamelModel):
    message: str


# Upper bound of the 32-bit Integer columns (ids, max_spots)
MAX_INT32 = 2**31 - 1
