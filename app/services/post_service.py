# app/services/post_service.py
import logging

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from app.core.sql import SessionExecutor
from app.repositories.post_repo import PostRepository
from app.schemas.post import PostSaveResult, Product
from app.services.category_service import CategoryService

logger = logging.getLogger(__name__)


class PostService:
    """
    Business logic for cases / news / equipments posts.

    Responsibilities:
      - 404 handling around the mapper
      - creating empty posts for the editor to open
      - soft category check on save (reported, never blocking)
      - batched reordering

    Database errors are logged and re-raised unchanged.
    """

    def __init__(self, repo: PostRepository, categories: CategoryService):
        self.repo = repo
        self.categories = categories

    # ----- Reads -----

    def list_posts(
        self,
        session: Session,
        language: str,
        post_type: str | None = None,
        category: str | None = None,
        search_title: str | None = None,
        sort: str | None = "latest",
        limit: int | None = None,
    ) -> list[Product]:
        return self.repo.list_posts(
            SessionExecutor(session),
            language,
            post_type=post_type,
            category=category,
            search_title=search_title,
            sort=sort,
            limit=limit,
        )

    def get_post(
        self,
        session: Session,
        post_id: int | str,
        language: str,
        post_type: str | None = None,
    ) -> Product:
        product = self.repo.get(SessionExecutor(session), post_id, language, post_type)
        if not product:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Post not found",
            )
        return product

    def get_post_order(self, session: Session, post_type: str) -> list[int]:
        return self.repo.get_order(SessionExecutor(session), post_type)

    def list_used_categories(self, session: Session, post_type: str, language: str) -> list[str]:
        return self.repo.list_used_categories(SessionExecutor(session), post_type, language)

    # ----- Writes -----

    def create_post(self, session: Session, post_type: str, language: str) -> int:
        """Save an empty post so the editor has an id to open."""
        return self._save(session, Product(type=post_type), language)

    def save_post(self, session: Session, product: Product, language: str) -> PostSaveResult:
        """
        Save `product` for `language`.

        Category tags missing from the type's vocabulary are logged and
        returned alongside the id; the save goes ahead regardless.
        """
        unknown = self.categories.unknown_tags(session, product.type, product.category_tags())
        if unknown:
            logger.warning("Post %s uses unknown %s categories: %s", product.id, product.type, unknown)

        post_id = self._save(session, product, language)
        return PostSaveResult(id=post_id, unknown_categories=unknown)

    def update_post(
        self,
        session: Session,
        post_id: int,
        product: Product,
        language: str,
    ) -> PostSaveResult:
        """Save to an existing post id; 404 if it doesn't exist."""
        db = SessionExecutor(session)
        existing = self.repo.get(db, post_id, language)
        if not existing:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Post not found",
            )
        product = product.model_copy(update={"id": post_id, "type": existing.type})
        return self.save_post(session, product, language)

    def delete_post(self, session: Session, post_id: int, post_type: str | None = None) -> None:
        try:
            deleted = self.repo.delete(SessionExecutor(session), post_id, post_type)
        except SQLAlchemyError:
            logger.exception("Deleting post %s failed", post_id)
            raise
        if not deleted:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Post not found",
            )

    def reorder_posts(self, session: Session, post_type: str, post_ids: list[int]) -> list[int]:
        """Persist a full display order and return the order now stored."""
        db = SessionExecutor(session)
        try:
            self.repo.reorder(db, post_ids, post_type)
        except SQLAlchemyError:
            logger.exception("Reordering %s posts failed", post_type)
            raise
        return self.repo.get_order(db, post_type)

    def _save(self, session: Session, product: Product, language: str) -> int:
        try:
            return self.repo.save(SessionExecutor(session), product, language)
        except SQLAlchemyError:
            logger.exception("Saving post %s (%s) failed", product.id, language)
            raise
