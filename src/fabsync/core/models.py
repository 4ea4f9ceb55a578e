"""Base class for persisted JSON documents.

Documents are exchanged with other tools and stored next to profile data,
so their JSON keys are camelCase while Python attributes stay snake_case.
Either spelling is accepted on input.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class Document(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )
