"""Shared base model for marketplace wire formats"""

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Model serialized with the marketplace API's camelCase field names"""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
