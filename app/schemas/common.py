from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ListResponse(BaseModel, Generic[T]):
    items: list[T]
    count: int
    limit: int | None = None
    offset: int | None = None


def reject_null(value, field_name: str | None):
    """Partial updates may omit a required column but never clear it."""
    if value is None:
        raise ValueError(f"{field_name} cannot be null")
    return value
