"""Shared pydantic base for API schemas.

The web client speaks camelCase (avatarUrl, adminOfNgoId); Python code
uses snake_case. Aliases bridge the two, and populate_by_name keeps
snake_case construction working inside the service layer.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
