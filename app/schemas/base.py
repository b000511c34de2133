"""
Base Schema Classes for Pydantic Models

RULE: All response schemas that read from ORM models MUST inherit from
BaseResponseSchema.
"""

from typing import Generic, List, TypeVar
from pydantic import BaseModel, ConfigDict


class BaseResponseSchema(BaseModel):
    """
    Base class for all response schemas that read from ORM models.

    Usage:
        class ReturnItemResponse(BaseResponseSchema):
            id: UUID
            product_id: UUID
            quantity: int
    """
    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
    )


class BaseCreateSchema(BaseModel):
    """
    Base class for create/input schemas.

    Accepts string UUIDs from the frontend and ignores unknown fields.
    """
    model_config = ConfigDict(
        extra='ignore',
    )


T = TypeVar("T")


class PaginatedResponse(BaseModel, Generic[T]):
    """Page of results with the page/size/pages envelope used by list endpoints."""
    items: List[T]
    total: int
    page: int
    size: int
    pages: int

    @classmethod
    def build(cls, items: List[T], total: int, page: int, size: int):
        return cls(
            items=items,
            total=total,
            page=page,
            size=size,
            pages=(total + size - 1) // size if total else 0,
        )
