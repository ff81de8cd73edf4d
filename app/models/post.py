# app/models/post.py
from sqlalchemy import BigInteger, Column, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlmodel import SQLModel, Field


class Post(SQLModel, table=True):
    """
    Language-neutral part of a post.

    Matches the admin database:
      - id, type, thumbnail, ogImage, ogTwitter, date,
        display_order, createdAt, updatedAt

    `type` (cases | news | equipments) is fixed once the row exists.
    Timestamps are epoch milliseconds.
    """

    __tablename__ = "posts"
    __table_args__ = (
        Index("idx_posts_display_order", "display_order"),
        Index("idx_posts_type_order", "type", "display_order"),
    )

    id: int | None = Field(default=None, primary_key=True)

    type: str = Field(
        default="cases",
        sa_column=Column("type", String(20), nullable=False, default="cases"),
    )
    thumbnail: str = Field(default="", sa_column=Column("thumbnail", Text, default=""))
    og_image: str = Field(default="", sa_column=Column("ogImage", Text, default=""))
    og_twitter: str = Field(default="", sa_column=Column("ogTwitter", Text, default=""))
    date: str = Field(default="", sa_column=Column("date", String(50), default=""))

    display_order: int = Field(
        default=0,
        sa_column=Column("display_order", Integer, default=0, server_default="0"),
    )

    created_at: int | None = Field(default=None, sa_column=Column("createdAt", BigInteger))
    updated_at: int | None = Field(default=None, sa_column=Column("updatedAt", BigInteger))


class PostTranslation(SQLModel, table=True):
    """
    Per-language copy of a post's editable text.

    - One row per (post_id, language_code).
    - Deleted together with its post (ON DELETE CASCADE).
    - `sections` holds the JSON-encoded ordered section list.
    """

    __tablename__ = "post_translations"
    __table_args__ = (
        UniqueConstraint("post_id", "language_code", name="uq_post_translations_post_language"),
    )

    id: int | None = Field(default=None, primary_key=True)

    post_id: int = Field(
        sa_column=Column(
            "post_id",
            Integer,
            ForeignKey("posts.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
    )
    language_code: str = Field(
        sa_column=Column("language_code", String(8), nullable=False),
    )

    category: str = Field(default="", sa_column=Column("category", Text, default=""))
    title: str = Field(default="", sa_column=Column("title", Text, default=""))
    card_description: str = Field(
        default="", sa_column=Column("cardDescription", Text, default="")
    )
    sections: str = Field(default="[]", sa_column=Column("sections", Text, default="[]"))
    meta_title: str = Field(default="", sa_column=Column("metaTitle", Text, default=""))
    meta_keywords: str = Field(default="", sa_column=Column("metaKeywords", Text, default=""))
    meta_description: str = Field(
        default="", sa_column=Column("metaDescription", Text, default="")
    )

    created_at: int | None = Field(default=None, sa_column=Column("createdAt", BigInteger))
    updated_at: int | None = Field(default=None, sa_column=Column("updatedAt", BigInteger))
