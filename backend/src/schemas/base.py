"""Base schema that speaks camelCase on the wire."""
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    Schema whose JSON field names are camelCase.

    Python code uses snake_case attributes; requests may use either form and
    responses are serialized by alias (FastAPI's default).
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
