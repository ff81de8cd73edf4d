# app/schemas/post.py
from typing import Any, Literal

from pydantic import Field, field_validator, model_validator

from app.schemas.section import CamelModel, ContentSection, split_sections

PostType = Literal["cases", "news", "equipments"]
Language = Literal["ja", "en"]

POST_TYPES: tuple[str, ...] = ("cases", "news", "equipments")
LANGUAGES: tuple[str, ...] = ("ja", "en")

# Stored once per post (posts table)
NEUTRAL_FIELDS: tuple[str, ...] = ("thumbnail", "og_image", "og_twitter", "date")

# Stored once per post and language (post_translations table)
TRANSLATED_FIELDS: tuple[str, ...] = (
    "category",
    "title",
    "card_description",
    "meta_title",
    "meta_keywords",
    "meta_description",
)

# Plain text fields the editor may patch directly
EDITABLE_FIELDS: tuple[str, ...] = ("type",) + NEUTRAL_FIELDS + TRANSLATED_FIELDS


class Product(CamelModel):
    """
    The post aggregate edited in the admin UI.

    - `id` None/0 means "not saved yet".
    - Translated fields hold exactly one language at a time.
    - `category` is a comma-separated tag list.
    - `sections` order is given by each section's `order`, not list position.
    """

    id: int | None = None
    type: PostType = "cases"

    category: str = ""
    title: str = ""
    card_description: str = ""
    thumbnail: str = ""

    sections: list[ContentSection] = Field(default_factory=list)
    # stored entries no section model accepts; written back untouched
    unparsed_sections: list[Any] = Field(default_factory=list)

    # SEO
    meta_title: str = ""
    meta_keywords: str = ""
    meta_description: str = ""
    og_image: str = ""
    og_twitter: str = ""

    date: str = ""
    display_order: int | None = None

    created_at: int | None = None
    updated_at: int | None = None

    @model_validator(mode="before")
    @classmethod
    def set_aside_unreadable_sections(cls, values: Any) -> Any:
        """Move section entries that fit no variant into `unparsed_sections`."""
        if not isinstance(values, dict):
            return values
        if not isinstance(values.get("sections"), list):
            return values

        sections, unparsed = split_sections(values["sections"])
        if not unparsed:
            return values

        values = dict(values)
        carried = list(values.pop("unparsedSections", None) or [])
        carried += values.pop("unparsed_sections", None) or []
        values["sections"] = sections
        values["unparsed_sections"] = carried + unparsed
        return values

    @field_validator("sections", mode="before")
    @classmethod
    def default_sections(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator(*(NEUTRAL_FIELDS + TRANSLATED_FIELDS), mode="before")
    @classmethod
    def default_text(cls, value: Any) -> Any:
        return "" if value is None else value

    @property
    def is_persisted(self) -> bool:
        return bool(self.id and self.id > 0)

    def category_tags(self) -> list[str]:
        """Split the comma-separated category field into trimmed tags."""
        return [tag.strip() for tag in self.category.split(",") if tag.strip()]


class PostCreate(CamelModel):
    """Payload for creating an empty post of a given type."""

    type: PostType


class PostCreated(CamelModel):
    id: int


class PostSaveResult(CamelModel):
    """
    Result of saving a post.

    `unknown_categories` lists tags not in the category vocabulary of the
    post's type. Saving is never blocked by them.
    """

    id: int
    unknown_categories: list[str] = Field(default_factory=list)


class PostOrderUpdate(CamelModel):
    ids: list[int]


class PostOrder(CamelModel):
    type: PostType
    ids: list[int]
