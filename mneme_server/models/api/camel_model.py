"""
Mneme Sync Server - Base API Model

Python attributes stay snake_case; the JSON wire format is camelCase.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serializing field names as camelCase"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
