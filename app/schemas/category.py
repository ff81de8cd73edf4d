# app/schemas/category.py
from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

from app.schemas.post import PostType


class CategoryCreate(SQLModel):
    """
    Payload for creating a category tag.
    """

    model_config = ConfigDict(extra="forbid")

    category_name: str = Field(max_length=255)
    type: PostType

    @field_validator("category_name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("category_name cannot be empty")
        return v


class CategoryUpdate(SQLModel):
    """
    Partial update payload for categories.

    Empty / missing fields are ignored rather than cleared.
    """

    model_config = ConfigDict(extra="forbid")

    category_name: str | None = Field(default=None, max_length=255)
    type: PostType | None = None


class CategoryRead(SQLModel):
    """
    Category representation for clients.
    """

    id: int
    category_name: str
    type: str
    created_at: int | None = None
    updated_at: int | None = None
