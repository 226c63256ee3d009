"""Shared schema helpers: camelCase models and the response envelope."""

from typing import Generic, TypeVar

from pydantic import BaseModel
from pydantic.alias_generators import to_camel

DataT = TypeVar("DataT")


class CamelModel(BaseModel):
    """Base model exchanging camelCase JSON while using snake_case in Python."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class ApiResponse(CamelModel, Generic[DataT]):
    """Envelope wrapping every successful API response."""

    success: bool = True
    message: str | None = None
    data: DataT | None = None
