# app/services/document_store.py
"""
In-memory editor state for one post.

DocumentStore owns a single Product and is the only thing that mutates it.
Every operation is synchronous, never raises, and never touches the
network; saving is a separate step (see EditorSession).

This is editor-side state. The HTTP app never imports it; a client
process (an admin tool or a script) holds one store per open post and
persists it through EditorSession, in-process via `service_callables`.

Section ordering rules:
  - `order` decides display position; list position doesn't.
  - After add / remove / move the orders are exactly 0..n-1.
"""
import logging
import uuid
from typing import Any, Callable, Mapping

from pydantic import BaseModel, ValidationError

from app.core.timestamps import now_ms
from app.schemas.post import EDITABLE_FIELDS, POST_TYPES, Product
from app.schemas.section import SECTION_MODELS, SectionBase, build_section

logger = logging.getLogger(__name__)

Listener = Callable[[Product], None]


def new_section_id() -> str:
    return f"section-{uuid.uuid4().hex}"


def _field_names(model: type[BaseModel]) -> dict[str, str]:
    """Map both field names and camelCase aliases to field names."""
    names: dict[str, str] = {}
    for name, info in model.model_fields.items():
        names[name] = name
        if info.alias:
            names[info.alias] = name
    return names


def merge_data(data: BaseModel, partial: Mapping[str, Any] | BaseModel) -> BaseModel | None:
    """
    Shallow-merge `partial` into a section payload.

    Keys may be snake_case or camelCase. Keys the payload model doesn't
    know are ignored. Returns None if the merged payload would not be
    valid for its model.
    """
    if isinstance(partial, BaseModel):
        partial = partial.model_dump(exclude_unset=True)

    model = type(data)
    names = _field_names(model)
    patch: dict[str, Any] = {}
    for key, value in partial.items():
        name = names.get(key)
        if name is None:
            logger.debug("Ignoring unknown %s key %r", model.__name__, key)
            continue
        patch[name] = value

    try:
        return model.model_validate({**data.model_dump(), **patch})
    except ValidationError as exc:
        logger.warning("Rejected %s update: %s", model.__name__, exc.errors()[:1])
        return None


def coerce_product(raw: Mapping[str, Any]) -> Product:
    """
    Build a Product from a fetched mapping without raising.

    Section entries that fit no variant end up in `unparsed_sections`.
    Top-level fields that fail validation are dropped (and logged) so the
    rest of the document still loads.
    """
    values = dict(raw)
    try:
        return Product.model_validate(values)
    except ValidationError as exc:
        names = _field_names(Product)
        bad_fields = {names.get(err["loc"][0], err["loc"][0]) for err in exc.errors() if err["loc"]}
        logger.warning("Dropping invalid product fields %s", sorted(map(str, bad_fields)))

    kept = {key: value for key, value in values.items() if names.get(key, key) not in bad_fields}
    try:
        return Product.model_validate(kept)
    except ValidationError as exc:
        logger.warning("Product still invalid, starting empty: %s", exc.errors()[:1])
        return Product()


class DocumentStore:
    """
    Observable holder of the Product being edited.

    - subscribe(listener) is called with the product after each change.
    - Unknown section ids, type-mismatched variant updates and invalid
      payloads are silent no-ops (the mutators return False / None).
    """

    def __init__(
        self,
        product: Product | None = None,
        clock: Callable[[], int] = now_ms,
        id_factory: Callable[[], str] = new_section_id,
    ):
        self.clock = clock
        self.id_factory = id_factory
        self._listeners: list[Listener] = []
        self._used_ids: set[str] = set()
        self._product = Product()
        if product is not None:
            self._replace(product)

    # ----- Observation -----

    @property
    def product(self) -> Product:
        return self._product

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self._product)

    # ----- Whole aggregate -----

    def set_product(self, product: Product | Mapping[str, Any]) -> None:
        """
        Replace the aggregate, e.g. after fetching it.

        Mappings go through coerce_product, so a malformed fetch result
        loads as much as it can instead of raising.
        """
        self._replace(product)
        self._notify()

    def _replace(self, product: Product | Mapping[str, Any]) -> None:
        if isinstance(product, Product):
            self._product = product.model_copy(deep=True)
        else:
            self._product = coerce_product(product)
        self._used_ids.update(section.id for section in self._product.sections)
        self._used_ids.update(
            entry["id"]
            for entry in self._product.unparsed_sections
            if isinstance(entry, dict) and isinstance(entry.get("id"), str)
        )

    def assign_id(self, post_id: int) -> None:
        """Adopt the id the database gave a newly created post."""
        if self._product.id == post_id:
            return
        self._product.id = post_id
        self._notify()

    def update_field(self, field: str, value: Any) -> bool:
        """
        Patch one scalar field (snake_case or camelCase name).

        `type` can only change before the post is first saved.
        """
        name = _field_names(Product).get(field)
        if name not in EDITABLE_FIELDS:
            logger.debug("update_field ignored for %r", field)
            return False

        if name == "type":
            if value not in POST_TYPES:
                logger.warning("Ignoring unknown post type %r", value)
                return False
            if self._product.is_persisted and value != self._product.type:
                logger.warning("Post %s already saved; type stays %s", self._product.id, self._product.type)
                return False
        else:
            value = "" if value is None else str(value)

        setattr(self._product, name, value)
        self._product.updated_at = self.clock()
        self._notify()
        return True

    # ----- Section list -----

    def sorted_sections(self) -> list[SectionBase]:
        return sorted(self._product.sections, key=lambda s: s.order)

    def get_section(self, section_id: str) -> SectionBase | None:
        for section in self._product.sections:
            if section.id == section_id:
                return section
        return None

    def _next_section_id(self) -> str:
        section_id = self.id_factory()
        suffix = 1
        candidate = section_id
        while candidate in self._used_ids:
            suffix += 1
            candidate = f"{section_id}-{suffix}"
        self._used_ids.add(candidate)
        return candidate

    def add_section(self, section_type: str, initial_data: Mapping[str, Any] | None = None) -> str | None:
        """
        Append a new section of `section_type` as the last one.

        Returns the new section id, or None if the type is unknown or
        `initial_data` doesn't fit the type's payload.
        """
        if section_type not in SECTION_MODELS:
            logger.warning("Unknown section type %r", section_type)
            return None

        now = self.clock()
        try:
            section = build_section(
                section_type,
                section_id=self._next_section_id(),
                order=len(self._product.sections),
                timestamp=now,
                initial_data=dict(initial_data or {}),
            )
        except ValidationError as exc:
            logger.warning("Invalid initial data for %s section: %s", section_type, exc.errors()[:1])
            return None

        self._product.sections.append(section)
        self._product.updated_at = now
        self._notify()
        return section.id

    def remove_section(self, section_id: str) -> bool:
        remaining = [s for s in self._product.sections if s.id != section_id]
        if len(remaining) == len(self._product.sections):
            return False

        now = self.clock()
        self._product.sections = remaining
        self._densify(now)
        self._product.updated_at = now
        self._notify()
        return True

    def _densify(self, now: int) -> None:
        # stable sort keeps ties in list order
        for index, section in enumerate(self.sorted_sections()):
            if section.order != index:
                section.order = index
                section.updated_at = now

    def move_section_up(self, section_id: str) -> bool:
        return self._swap_with_neighbour(section_id, -1)

    def move_section_down(self, section_id: str) -> bool:
        return self._swap_with_neighbour(section_id, 1)

    def _swap_with_neighbour(self, section_id: str, step: int) -> bool:
        ordered = self.sorted_sections()
        index = next((i for i, s in enumerate(ordered) if s.id == section_id), None)
        if index is None:
            return False

        target = index + step
        if target < 0 or target >= len(ordered):
            return False

        now = self.clock()
        current, neighbour = ordered[index], ordered[target]
        current.order, neighbour.order = neighbour.order, current.order
        current.updated_at = now
        neighbour.updated_at = now
        self._product.updated_at = now
        self._notify()
        return True

    # ----- Section payloads -----

    def update_section(self, section_id: str, partial: Mapping[str, Any] | BaseModel) -> bool:
        """Shallow-merge `partial` into the section's data, whatever its type."""
        return self._update_data(section_id, None, partial)

    def update_gallery_data(self, section_id: str, partial: Mapping[str, Any] | BaseModel) -> bool:
        return self._update_data(section_id, "gallery", partial)

    def update_normal_content_data(self, section_id: str, partial: Mapping[str, Any] | BaseModel) -> bool:
        return self._update_data(section_id, "normal", partial)

    def update_text_content_data(self, section_id: str, partial: Mapping[str, Any] | BaseModel) -> bool:
        return self._update_data(section_id, "text-content", partial)

    def update_video_data(self, section_id: str, partial: Mapping[str, Any] | BaseModel) -> bool:
        return self._update_data(section_id, "video", partial)

    def update_rich_text_data(self, section_id: str, partial: Mapping[str, Any] | BaseModel) -> bool:
        return self._update_data(section_id, "rich-text", partial)

    def update_links_data(self, section_id: str, partial: Mapping[str, Any] | BaseModel) -> bool:
        return self._update_data(section_id, "links", partial)

    def _update_data(
        self,
        section_id: str,
        expected_type: str | None,
        partial: Mapping[str, Any] | BaseModel,
    ) -> bool:
        section = self.get_section(section_id)
        if section is None:
            return False
        if expected_type is not None and section.type != expected_type:
            logger.debug(
                "Skipping %s update for section %s of type %s",
                expected_type,
                section_id,
                section.type,
            )
            return False

        merged = merge_data(section.data, partial)
        if merged is None:
            return False

        now = self.clock()
        section.data = merged
        section.updated_at = now
        self._product.updated_at = now
        self._notify()
        return True
