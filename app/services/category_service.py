# app/services/category_service.py
import logging
from typing import Callable

from fastapi import HTTPException, status
from sqlmodel import Session

from app.core.timestamps import now_ms
from app.models.category import Category
from app.repositories.category_repo import CategoryRepository
from app.schemas.category import CategoryCreate, CategoryUpdate

logger = logging.getLogger(__name__)


class CategoryService:
    """
    Business logic for the per-type category vocabulary.

    Responsibilities:
      - duplicate-name check on create and update (same type, exact match)
      - partial updates that skip empty values
      - unguarded delete

    Known limitations (kept as-is):
      - The duplicate check is read-then-insert with no unique index, so
        two admins creating the same name at once can both succeed.
      - Deleting a category does not look at posts still tagged with it.
    """

    def __init__(self, repo: CategoryRepository, clock: Callable[[], int] = now_ms):
        self.repo = repo
        self.clock = clock

    def list_categories(self, session: Session, category_type: str | None = None) -> list[Category]:
        if category_type:
            return self.repo.list_by_type(session, category_type)
        return self.repo.list_all(session)

    def get_category(self, session: Session, category_id: int) -> Category:
        category = self.repo.get_by_id(session, category_id)
        if not category:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Category not found",
            )
        return category

    def create_category(self, session: Session, payload: CategoryCreate) -> Category:
        if self.repo.get_by_name(session, payload.category_name, payload.type):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Category already exists for this type",
            )

        now = self.clock()
        category = Category(
            category_name=payload.category_name,
            type=payload.type,
            created_at=now,
            updated_at=now,
        )
        created = self.repo.create(session, category)
        logger.info("Created %s category %s (%s)", created.type, created.id, created.category_name)
        return created

    def update_category(
        self,
        session: Session,
        category_id: int,
        payload: CategoryUpdate,
    ) -> Category:
        """
        Partial update: only non-empty fields are applied, updated_at is
        always refreshed. Renaming or moving onto a name the target type
        already has is a 409, same as on create.
        """
        category = self.get_category(session, category_id)

        new_name = category.category_name
        if payload.category_name and payload.category_name.strip():
            new_name = payload.category_name.strip()
        new_type = payload.type or category.type

        existing = self.repo.get_by_name(session, new_name, new_type)
        if existing and existing.id != category.id:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Category already exists for this type",
            )

        category.category_name = new_name
        category.type = new_type
        category.updated_at = self.clock()
        updated = self.repo.update(session, category)
        logger.info("Updated category %s", category_id)
        return updated

    def delete_category(self, session: Session, category_id: int) -> None:
        category = self.get_category(session, category_id)
        self.repo.delete(session, category)
        logger.info("Deleted category %s", category_id)

    def unknown_tags(self, session: Session, category_type: str, tags: list[str]) -> list[str]:
        """Tags that are not in the vocabulary of `category_type`."""
        known = {c.category_name for c in self.repo.list_by_type(session, category_type)}
        return [tag for tag in tags if tag not in known]
