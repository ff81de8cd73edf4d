# app/models/category.py
from sqlalchemy import BigInteger, Column
from sqlmodel import SQLModel, Field


class Category(SQLModel, table=True):
    """
    Category tag, scoped by post type.

    `category_name` is meant to be unique within `type`, but nothing in
    the schema enforces it; the service checks before inserting.
    """

    __tablename__ = "categories"

    id: int | None = Field(default=None, primary_key=True)

    category_name: str = Field(
        max_length=255,
        index=True,
        description="Display name of the tag",
    )

    # cases | news | equipments
    type: str = Field(
        max_length=20,
        index=True,
        description="Post type this tag belongs to",
    )

    created_at: int | None = Field(default=None, sa_column=Column("createdAt", BigInteger))
    updated_at: int | None = Field(default=None, sa_column=Column("updatedAt", BigInteger))
