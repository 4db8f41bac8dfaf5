"""Base model for payloads exchanged with the blog API."""
from pydantic import AliasChoices, AliasGenerator, BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def _snake_or_camel(field_name: str) -> AliasChoices:
    return AliasChoices(field_name, to_camel(field_name))


class ApiModel(BaseModel):
    """
    Accepts both snake_case (server) and camelCase (client) field names.

    `model_dump()` produces snake_case for the server; `model_dump(by_alias=True)`
    produces camelCase for client-side consumers. Unknown fields (including any
    password echoed back by the server) are dropped.
    """

    model_config = ConfigDict(
        alias_generator=AliasGenerator(
            validation_alias=_snake_or_camel,
            serialization_alias=to_camel,
        ),
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )
