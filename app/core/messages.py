# app/core/messages.py
# User-facing feedback shown as toasts in the admin UI.
import logging
from typing import Callable

logger = logging.getLogger(__name__)

MESSAGES: dict[str, dict[str, str]] = {
    "reorder_saved": {
        "ja": "並び順を保存しました",
        "en": "Order saved successfully",
    },
    "reorder_failed": {
        "ja": "並び順の保存に失敗しました",
        "en": "Failed to save order",
    },
    "publish_saved": {
        "ja": "保存しました",
        "en": "Saved successfully",
    },
    "publish_failed": {
        "ja": "保存に失敗しました",
        "en": "Failed to save",
    },
    "delete_done": {
        "ja": "正常に削除されました",
        "en": "Deleted successfully",
    },
    "delete_failed": {
        "ja": "削除に失敗しました",
        "en": "Failed to delete",
    },
    "load_failed": {
        "ja": "読み込みに失敗しました",
        "en": "Failed to load",
    },
    "not_found": {
        "ja": "投稿が見つかりません",
        "en": "Post not found",
    },
}


def message(key: str, language: str = "ja") -> str:
    """Look up a feedback message; unknown languages fall back to Japanese."""
    entry = MESSAGES[key]
    return entry.get(language) or entry["ja"]


Notify = Callable[[str, str], None]


def log_feedback(level: str, text: str) -> None:
    """Default feedback sink: write the toast to the log."""
    logger.info("[%s] %s", level, text)
