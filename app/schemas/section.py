# app/schemas/section.py
"""
Content sections: the ordered, typed blocks a post body is built from.

A section is a tagged union on `type`. Each tag has its own payload model
in `data`, so a gallery section can only ever carry GalleryData, a video
section only VideoData, and so on. Wire format is camelCase (the admin
frontend's shape); Python code uses snake_case field names.
"""
import json
import logging
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)

SectionType = Literal["gallery", "normal", "text-content", "video", "rich-text", "links"]

SECTION_TYPES: tuple[str, ...] = (
    "gallery",
    "normal",
    "text-content",
    "video",
    "rich-text",
    "links",
)


class CamelModel(BaseModel):
    """Accepts both camelCase (wire) and snake_case (Python) keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SectionModel(CamelModel):
    """
    Base for section and payload models.

    Keys this code doesn't know are kept and written back as they came.
    """

    model_config = ConfigDict(extra="allow")


def _blank_to_none(value: Any) -> Any:
    # The editor clears an image position by sending ""
    if value == "":
        return None
    return value


# ----- Payloads -----


class GalleryImage(SectionModel):
    id: str
    src: str = ""
    alt: str = ""


class GalleryRow(SectionModel):
    id: str
    images_per_row: int = Field(default=3, ge=1)
    images: list[GalleryImage] = Field(default_factory=list)


class GalleryData(SectionModel):
    rows: list[GalleryRow] = Field(default_factory=list)


class NormalContentData(SectionModel):
    content: str = ""
    image_url: str | None = None
    image_alt: str | None = None
    image_position: Literal["left", "right", "top", "bottom"] | None = None

    @field_validator("image_position", mode="before")
    @classmethod
    def blank_position(cls, value: Any) -> Any:
        return _blank_to_none(value)


class SectionImage(SectionModel):
    src: str = ""
    alt: str = ""


class TextContentData(SectionModel):
    title: str = ""
    content: str = ""
    title_type: Literal["h1", "h2", "h3"] = "h1"
    image: SectionImage | None = None
    image_position: Literal["left", "right"] | None = None
    image_caption: str | None = None

    @field_validator("image_position", mode="before")
    @classmethod
    def blank_position(cls, value: Any) -> Any:
        return _blank_to_none(value)


class VideoData(SectionModel):
    url: str = ""
    title: str | None = None
    autoplay: bool = False


class RichTextData(SectionModel):
    # sanitized HTML from the WYSIWYG editor
    content: str = ""


class LinkItem(SectionModel):
    id: str
    text: str = ""
    url: str = ""


class LinkList(SectionModel):
    id: str
    type: Literal["bullet", "numbered"] = "bullet"
    items: list[LinkItem] = Field(default_factory=list)


class LinksData(SectionModel):
    link_lists: list[LinkList] = Field(default_factory=list)


SectionData = Union[
    GalleryData,
    NormalContentData,
    TextContentData,
    VideoData,
    RichTextData,
    LinksData,
]


# ----- Sections -----


class SectionBase(SectionModel):
    """
    Fields shared by every section.

    - `id` is generated by the editor and never reused.
    - `order` is the display position (0-based); list position is not.
    """

    id: str
    order: int = Field(default=0, ge=0)
    created_at: int | None = None
    updated_at: int | None = None


class GallerySection(SectionBase):
    type: Literal["gallery"] = "gallery"
    data: GalleryData = Field(default_factory=GalleryData)


class NormalSection(SectionBase):
    type: Literal["normal"] = "normal"
    data: NormalContentData = Field(default_factory=NormalContentData)


class TextContentSection(SectionBase):
    type: Literal["text-content"] = "text-content"
    data: TextContentData = Field(default_factory=TextContentData)


class VideoSection(SectionBase):
    type: Literal["video"] = "video"
    data: VideoData = Field(default_factory=VideoData)


class RichTextSection(SectionBase):
    type: Literal["rich-text"] = "rich-text"
    data: RichTextData = Field(default_factory=RichTextData)


class LinksSection(SectionBase):
    type: Literal["links"] = "links"
    data: LinksData = Field(default_factory=LinksData)


ContentSection = Annotated[
    Union[
        GallerySection,
        NormalSection,
        TextContentSection,
        VideoSection,
        RichTextSection,
        LinksSection,
    ],
    Field(discriminator="type"),
]

SECTION_MODELS: dict[str, type[SectionBase]] = {
    "gallery": GallerySection,
    "normal": NormalSection,
    "text-content": TextContentSection,
    "video": VideoSection,
    "rich-text": RichTextSection,
    "links": LinksSection,
}

_section_adapter: TypeAdapter = TypeAdapter(ContentSection)
_section_list_adapter: TypeAdapter = TypeAdapter(list[ContentSection])


def data_model_for(section_type: str) -> type[BaseModel]:
    """Payload model for a section tag. Raises KeyError for unknown tags."""
    return SECTION_MODELS[section_type].model_fields["data"].annotation


def build_section(
    section_type: str,
    section_id: str,
    order: int,
    timestamp: int,
    initial_data: dict[str, Any] | None = None,
) -> SectionBase:
    """
    Create a section with the zero-value payload for its type.

    `initial_data` is merged over the defaults and validated against the
    payload model, so it cannot smuggle in another variant's shape.
    """
    model = SECTION_MODELS[section_type]
    data_model = data_model_for(section_type)
    data = data_model.model_validate(initial_data or {})
    return model(
        id=section_id,
        order=order,
        data=data,
        created_at=timestamp,
        updated_at=timestamp,
    )


def parse_section(raw: Any) -> SectionBase:
    return _section_adapter.validate_python(raw)


def split_sections(items: list[Any]) -> tuple[list[SectionBase], list[Any]]:
    """
    Validate each entry on its own.

    Returns (sections, unparsed): entries that fit a section shape, and
    the raw entries that don't, untouched and in their original order.
    """
    sections: list[SectionBase] = []
    unparsed: list[Any] = []
    for item in items:
        if isinstance(item, SectionBase):
            sections.append(item)
            continue
        try:
            sections.append(parse_section(item))
        except ValidationError as exc:
            logger.warning("Keeping unreadable section as-is: %s", exc.errors()[:1])
            unparsed.append(item)
    return sections, unparsed


def split_sections_json(raw: Any) -> tuple[list[SectionBase], list[Any]]:
    """
    Decode the stored `sections` column into (sections, unparsed).

    - Unparsable JSON or a non-list value gives ([], []).
    - Entries that don't match any section shape come back in `unparsed`
      so they can be written back unchanged.
    """
    if raw is None or raw == "":
        return [], []

    value = raw
    if isinstance(raw, (str, bytes)):
        try:
            value = json.loads(raw)
        except ValueError:
            logger.warning("Could not parse stored sections JSON; using empty list")
            return [], []

    # Some legacy rows hold the list JSON-encoded twice
    if isinstance(value, str):
        return split_sections_json(value)

    if not isinstance(value, list):
        logger.warning("Stored sections are not a list (%s); using empty list", type(value).__name__)
        return [], []

    return split_sections(value)


def dump_sections_json(sections: list[SectionBase], unparsed: list[Any] | None = None) -> str:
    """
    Encode sections for the `sections` column (camelCase, no nulls).

    `unparsed` entries are appended exactly as they were read.
    """
    encoded = _section_list_adapter.dump_python(
        sections, mode="json", by_alias=True, exclude_none=True
    )
    return json.dumps(encoded + list(unparsed or []), ensure_ascii=False)
