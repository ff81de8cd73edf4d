# app/routers/posts.py
from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from app.core.auth import require_admin
from app.core.config import get_settings
from app.database import get_session
from app.repositories.category_repo import CategoryRepository
from app.repositories.post_repo import PostRepository
from app.schemas.post import (
    Language,
    PostCreate,
    PostCreated,
    PostOrder,
    PostOrderUpdate,
    PostSaveResult,
    PostType,
    Product,
)
from app.services.category_service import CategoryService
from app.services.post_service import PostService

router = APIRouter(prefix="/posts", tags=["Posts"])

settings = get_settings()

service = PostService(PostRepository(), CategoryService(CategoryRepository()))


# -------- Public endpoints --------


@router.get("", response_model=list[Product])
def list_posts(
    session: Session = Depends(get_session),
    type: PostType | None = None,
    category: str | None = None,
    search_title: str | None = None,
    sort: str | None = "latest",
    limit: int | None = Query(default=None, ge=1),
    language: Language = settings.DEFAULT_LANGUAGE,
):
    """
    List posts for one language.

    - `category` is a substring match on the comma-separated tags.
    - `search_title` is a substring match on the title.
    - `sort=latest` orders by last update, newest first.
    """
    return service.list_posts(
        session,
        language,
        post_type=type,
        category=category,
        search_title=search_title,
        sort=sort,
        limit=limit,
    )


@router.get("/order/{post_type}", response_model=PostOrder)
def get_post_order(
    post_type: PostType,
    session: Session = Depends(get_session),
):
    """Post ids of one type in display order."""
    return PostOrder(type=post_type, ids=service.get_post_order(session, post_type))


@router.get("/categories-used/{post_type}", response_model=list[str])
def list_used_categories(
    post_type: PostType,
    session: Session = Depends(get_session),
    language: Language = settings.DEFAULT_LANGUAGE,
):
    """Distinct category tags currently used by posts of this type."""
    return service.list_used_categories(session, post_type, language)


@router.get("/{post_id}", response_model=Product)
def get_post(
    post_id: int,
    session: Session = Depends(get_session),
    type: PostType | None = None,
    language: Language = settings.DEFAULT_LANGUAGE,
):
    """
    Get one post in one language.

    Translated fields are "" when the post has no row for that language.
    """
    return service.get_post(session, post_id, language, post_type=type)


# -------- Admin endpoints --------


@router.post(
    "",
    response_model=PostCreated,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def create_post(
    payload: PostCreate,
    session: Session = Depends(get_session),
    language: Language = settings.DEFAULT_LANGUAGE,
):
    """Create an empty post of the given type; the editor opens it next."""
    return PostCreated(id=service.create_post(session, payload.type, language))


@router.put(
    "/order/{post_type}",
    response_model=PostOrder,
    dependencies=[Depends(require_admin)],
)
def reorder_posts(
    post_type: PostType,
    payload: PostOrderUpdate,
    session: Session = Depends(get_session),
):
    """
    Store a full display order for one type in a single statement.

    Position i in `ids` becomes display_order i + 1.
    """
    ids = service.reorder_posts(session, post_type, payload.ids)
    return PostOrder(type=post_type, ids=ids)


@router.put(
    "/{post_id}",
    response_model=PostSaveResult,
    dependencies=[Depends(require_admin)],
)
def save_post(
    post_id: int,
    payload: Product,
    session: Session = Depends(get_session),
    language: Language = settings.DEFAULT_LANGUAGE,
):
    """
    Save a post for one language.

    Empty fields don't overwrite stored values. Unknown category tags are
    reported back but don't block the save.
    """
    return service.update_post(session, post_id, payload, language)


@router.delete(
    "/{post_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
)
def delete_post(
    post_id: int,
    session: Session = Depends(get_session),
    type: PostType | None = None,
):
    """Delete a post and all its translations (admin only)."""
    service.delete_post(session, post_id, post_type=type)
    return None
