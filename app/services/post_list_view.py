# app/services/post_list_view.py
"""
State of the drag-and-drop post listing for one post type.

Three snapshots of the list are kept:
  - local_order:      what is rendered; changes immediately on each drop
  - last_saved_order: the order last confirmed persisted
  - server_snapshot:  the list as last fetched from the server

A drop reorders local_order at once and (re)arms a debounce timer for the
whole list. When the timer fires, the full id list is persisted in one
call. Success moves last_saved_order forward. Failure puts local_order
back to server_snapshot (not last_saved_order) and is not retried.

Like DocumentStore, this is editor-side state for a client process; the
HTTP app does not import it. The callables it is built with are
usually thin wrappers over PostService or over the /posts endpoints.
"""
import logging
from typing import Awaitable, Callable, Sequence

from app.core.config import get_settings
from app.core.debounce import Debouncer
from app.core.messages import Notify, log_feedback, message
from app.schemas.post import Product

logger = logging.getLogger(__name__)

PersistOrder = Callable[[list[int], str], Awaitable[object]]
FetchPosts = Callable[[], Awaitable[list[Product]]]
DeletePost = Callable[[int], Awaitable[object]]


class PostListView:
    def __init__(
        self,
        post_type: str,
        persist: PersistOrder,
        fetch: FetchPosts | None = None,
        remove: DeletePost | None = None,
        notify: Notify = log_feedback,
        language: str = "ja",
        debounce_ms: int | None = None,
    ):
        self.post_type = post_type
        self.persist = persist
        self.fetch = fetch
        self.remove = remove
        self.notify = notify
        self.language = language

        if debounce_ms is None:
            debounce_ms = get_settings().REORDER_DEBOUNCE_MS
        self._debouncer = Debouncer(debounce_ms, self._save_order)

        self.local_order: list[Product] = []
        self.last_saved_order: list[Product] = []
        self.server_snapshot: list[Product] = []

        self.is_loading = False
        self.is_saving = False
        self.deleting_ids: set[int] = set()

    # ----- Derived state -----

    @staticmethod
    def ids(items: Sequence[Product]) -> list[int]:
        return [item.id for item in items]

    @property
    def has_unsaved_changes(self) -> bool:
        return self.ids(self.local_order) != self.ids(self.last_saved_order)

    @property
    def save_pending(self) -> bool:
        return self._debouncer.pending

    # ----- Loading -----

    def load(self, items: Sequence[Product]) -> None:
        """Take a freshly fetched list as the new baseline."""
        self.server_snapshot = list(items)
        self.local_order = list(items)
        self.last_saved_order = list(items)

    async def refresh(self) -> None:
        if self.fetch is None:
            raise RuntimeError("PostListView has no fetch function")
        self.is_loading = True
        try:
            self.load(await self.fetch())
        finally:
            self.is_loading = False

    # ----- Reordering -----

    def move(self, from_index: int, to_index: int) -> bool:
        """
        Apply a drop: move the item at from_index to to_index.

        Must be called from within a running event loop. Returns False
        (and schedules nothing) for same-position or out-of-range drops.
        """
        size = len(self.local_order)
        if from_index == to_index:
            return False
        if not (0 <= from_index < size and 0 <= to_index < size):
            return False

        items = list(self.local_order)
        item = items.pop(from_index)
        items.insert(to_index, item)
        self.local_order = items

        self._debouncer.schedule(list(items))
        logger.debug("Reorder of %s scheduled: %s", self.post_type, self.ids(items))
        return True

    async def flush(self) -> None:
        """Persist a pending reorder right away (e.g. before leaving the page)."""
        await self._debouncer.flush()

    async def wait_idle(self) -> None:
        await self._debouncer.wait_idle()

    def close(self) -> None:
        """Drop a pending reorder without saving it."""
        self._debouncer.cancel()

    async def _save_order(self, items: list[Product]) -> None:
        post_ids = self.ids(items)
        self.is_saving = True
        try:
            await self.persist(post_ids, self.post_type)
        except Exception:
            logger.exception("Saving %s order failed; reverting to server list", self.post_type)
            self.local_order = list(self.server_snapshot)
            self.notify("error", message("reorder_failed", self.language))
        else:
            self.last_saved_order = list(items)
            logger.info("Saved %s order: %s", self.post_type, post_ids)
            self.notify("success", message("reorder_saved", self.language))
        finally:
            self.is_saving = False

    # ----- Deleting -----

    async def delete(self, post_id: int) -> bool:
        """
        Delete one post. Other deletes and reorders can run meanwhile;
        `deleting_ids` tracks which rows are busy.
        """
        if self.remove is None:
            raise RuntimeError("PostListView has no remove function")

        self.deleting_ids.add(post_id)
        try:
            await self.remove(post_id)
        except Exception:
            logger.exception("Deleting post %s failed", post_id)
            self.notify("error", message("delete_failed", self.language))
            return False
        finally:
            self.deleting_ids.discard(post_id)

        self.notify("success", message("delete_done", self.language))
        if self.fetch is not None:
            await self.refresh()
        else:
            self.local_order = [p for p in self.local_order if p.id != post_id]
            self.last_saved_order = [p for p in self.last_saved_order if p.id != post_id]
            self.server_snapshot = [p for p in self.server_snapshot if p.id != post_id]
        return True
