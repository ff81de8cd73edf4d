# app/repositories/category_repo.py
from sqlmodel import Session, select

from app.models.category import Category


class CategoryRepository:
    """
    Data access layer for Category.

    - Pure DB operations (CRUD + queries).
    - No FastAPI, no business logic.
    """

    def get_by_id(self, session: Session, category_id: int) -> Category | None:
        return session.get(Category, category_id)

    def get_by_name(self, session: Session, category_name: str, category_type: str) -> Category | None:
        """Exact, case-sensitive name match within one type."""
        stmt = select(Category).where(
            Category.type == category_type,
            Category.category_name == category_name,
        )
        return session.exec(stmt).first()

    def list_by_type(self, session: Session, category_type: str) -> list[Category]:
        stmt = (
            select(Category)
            .where(Category.type == category_type)
            .order_by(Category.category_name)
        )
        return list(session.exec(stmt).all())

    def list_all(self, session: Session) -> list[Category]:
        stmt = select(Category).order_by(Category.type, Category.category_name)
        return list(session.exec(stmt).all())

    def create(self, session: Session, category: Category) -> Category:
        session.add(category)
        session.commit()
        session.refresh(category)
        return category

    def update(self, session: Session, category: Category) -> Category:
        session.add(category)
        session.commit()
        session.refresh(category)
        return category

    def delete(self, session: Session, category: Category) -> None:
        session.delete(category)
        session.commit()
