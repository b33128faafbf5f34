"""
Schema base classes.

The dashboard front-end speaks camelCase; Python code stays snake_case.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Response model serialized with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class DateRangeOut(CamelModel):
    from_: str = Field(alias="from")
    to: str
    days: int
