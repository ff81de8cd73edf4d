# app/routers/categories.py
from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from app.core.auth import require_admin
from app.database import get_session
from app.repositories.category_repo import CategoryRepository
from app.schemas.category import CategoryCreate, CategoryRead, CategoryUpdate
from app.schemas.post import PostType
from app.services.category_service import CategoryService

router = APIRouter(prefix="/categories", tags=["Categories"])

service = CategoryService(CategoryRepository())


@router.get("", response_model=list[CategoryRead])
def list_categories(
    session: Session = Depends(get_session),
    type: PostType | None = None,
):
    """
    List category tags.

    - With `type`: that type's tags by name.
    - Without: all tags, grouped by type.
    """
    return service.list_categories(session, type)


@router.post(
    "",
    response_model=CategoryRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def create_category(
    payload: CategoryCreate,
    session: Session = Depends(get_session),
):
    """Create a tag; 409 if the name already exists for the type."""
    return service.create_category(session, payload)


@router.patch(
    "/{category_id}",
    response_model=CategoryRead,
    dependencies=[Depends(require_admin)],
)
def update_category(
    category_id: int,
    payload: CategoryUpdate,
    session: Session = Depends(get_session),
):
    return service.update_category(session, category_id, payload)


@router.delete(
    "/{category_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
)
def delete_category(
    category_id: int,
    session: Session = Depends(get_session),
):
    """
    Delete a tag. Posts still tagged with it keep the text.
    """
    service.delete_category(session, category_id)
    return None
