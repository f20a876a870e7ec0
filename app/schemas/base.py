"""Shared pydantic base for camelCase documents and payloads."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    Base model whose aliases are the camelCase keys stored in Firestore.

    Accepts either snake_case field names or camelCase aliases on input;
    FastAPI serializes responses by alias.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
