"""Shared schema configuration."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelSchema(BaseModel):
    """
    Base schema speaking the client's camelCase JSON.

    Fields are declared in snake_case; they are read from ORM attributes or
    either spelling of the JSON key, and serialized with camelCase aliases.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
