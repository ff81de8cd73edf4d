# app/services/editor_session.py
"""
Load / publish cycle of one post in the editor.

The DocumentStore holds the working copy. EditorSession fills it from
storage and writes it back. A failed publish leaves the working copy
untouched so the editor can try again.

Used by client processes, not by the HTTP app. `service_callables` wires
a session to PostService directly, running the blocking calls in threads.
"""
import asyncio
import logging
from typing import Awaitable, Callable

from fastapi import HTTPException
from sqlmodel import Session

from app.core.messages import Notify, log_feedback, message
from app.schemas.post import PostSaveResult, Product
from app.services.document_store import DocumentStore
from app.services.post_service import PostService

logger = logging.getLogger(__name__)

LoadPost = Callable[[int, str], Awaitable[Product | None]]
SavePost = Callable[[Product, str], Awaitable[PostSaveResult]]


def service_callables(
    service: PostService,
    session_factory: Callable[[], Session],
) -> tuple[LoadPost, SavePost]:
    """
    Wrap the synchronous PostService for EditorSession.

    Each call opens its own session and runs in a worker thread.
    """

    def _load(post_id: int, language: str) -> Product | None:
        with session_factory() as session:
            try:
                return service.get_post(session, post_id, language)
            except HTTPException as exc:
                if exc.status_code == 404:
                    return None
                raise

    def _save(product: Product, language: str) -> PostSaveResult:
        with session_factory() as session:
            return service.save_post(session, product, language)

    async def load(post_id: int, language: str) -> Product | None:
        return await asyncio.to_thread(_load, post_id, language)

    async def save(product: Product, language: str) -> PostSaveResult:
        return await asyncio.to_thread(_save, product, language)

    return load, save


class EditorSession:
    def __init__(
        self,
        store: DocumentStore,
        load_post: LoadPost,
        save_post: SavePost,
        language: str = "ja",
        notify: Notify = log_feedback,
    ):
        self.store = store
        self.load_post = load_post
        self.save_post = save_post
        self.language = language
        self.notify = notify

        self.is_loading = False
        self.is_publishing = False
        self.not_found = False
        self.last_error: Exception | None = None
        self.unknown_categories: list[str] = []

    async def load(self, post_id: int) -> bool:
        """Fetch a post into the store. Returns False if it wasn't loaded."""
        self.is_loading = True
        self.not_found = False
        self.last_error = None
        try:
            product = await self.load_post(post_id, self.language)
        except Exception as exc:
            logger.exception("Loading post %s failed", post_id)
            self.last_error = exc
            self.notify("error", message("load_failed", self.language))
            return False
        finally:
            self.is_loading = False

        if product is None:
            self.not_found = True
            self.notify("error", message("not_found", self.language))
            return False

        self.store.set_product(product)
        return True

    async def publish(self) -> int | None:
        """
        Save the store's product for the session language.

        On success a newly created post's id is adopted by the store and
        the id is returned. On failure the store is left as it was and
        None is returned.
        """
        self.is_publishing = True
        self.last_error = None
        snapshot = self.store.product.model_copy(deep=True)
        try:
            result = await self.save_post(snapshot, self.language)
        except Exception as exc:
            logger.exception("Publishing post %s failed", snapshot.id)
            self.last_error = exc
            self.notify("error", message("publish_failed", self.language))
            return None
        finally:
            self.is_publishing = False

        self.unknown_categories = list(result.unknown_categories)
        self.store.assign_id(result.id)
        self.notify("success", message("publish_saved", self.language))
        return result.id
