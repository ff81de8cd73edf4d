# app/repositories/post_repo.py
import logging
from typing import Any, Callable

from app.core.sql import (
    InsertQuery,
    SelectQuery,
    SqlExecutor,
    UpdateQuery,
    build_reorder_statement,
    non_empty,
)
from app.core.timestamps import now_ms, to_epoch_ms
from app.schemas.post import Product
from app.schemas.section import dump_sections_json, split_sections_json

logger = logging.getLogger(__name__)

_PRODUCT_COLUMNS = [
    'p."id"',
    'p."type"',
    'p."thumbnail"',
    'p."ogImage"',
    'p."ogTwitter"',
    'p."date"',
    'p."display_order"',
    'p."createdAt"',
    'p."updatedAt"',
    'pt."category"',
    'pt."title"',
    'pt."cardDescription"',
    'pt."sections"',
    'pt."metaTitle"',
    'pt."metaKeywords"',
    'pt."metaDescription"',
]

_TRANSLATION_JOIN = (
    'LEFT JOIN post_translations pt '
    'ON p."id" = pt."post_id" AND pt."language_code" = ?'
)


class PostRepository:
    """
    Maps the Product aggregate onto `posts` + `post_translations`.

    - Talks to storage only through SqlExecutor.execute().
    - Stateless: nothing is cached between calls.
    - Each statement commits on its own; a save is two or three
      statements with nothing tying them together.

    Known limitations (kept as-is):
      - Translation upsert is check-then-insert-or-update. Two concurrent
        saves of the same (post, language) race; the unique constraint
        turns the loser's INSERT into an IntegrityError.
      - If the translation write fails after the posts row was updated,
        the posts row keeps the new values and the translation stays stale.
      - Updates skip empty fields, so a field can't be cleared by saving "".
    """

    def __init__(self, clock: Callable[[], int] = now_ms):
        self.clock = clock

    # ----- Writes -----

    def save(self, db: SqlExecutor, product: Product, language: str) -> int:
        """
        Persist a product for one language and return its id.

        Existing post (id > 0):
          1. UPDATE posts with non-empty neutral fields (+ type, updatedAt).
          2. UPDATE or INSERT the (post_id, language) translation row,
             non-empty fields only.

        New post:
          1. INSERT posts, read back the generated id.
          2. INSERT one translation row for `language`.
        """
        now = self.clock()
        translated = self._translated_values(product)

        if product.is_persisted:
            post_id = product.id
            neutral = {
                "type": product.type,
                **non_empty(self._neutral_values(product)),
                "updatedAt": now,
            }
            sql, params = UpdateQuery("posts", neutral, {"id": post_id}).build()
            db.execute(sql, params)
            logger.info("Updated post %s", post_id)

            if self.translation_exists(db, post_id, language):
                sql, params = UpdateQuery(
                    "post_translations",
                    {**translated, "updatedAt": now},
                    {"post_id": post_id, "language_code": language},
                ).build()
                db.execute(sql, params)
                logger.info("Updated %s translation of post %s", language, post_id)
            else:
                self._insert_translation(db, post_id, language, translated, now)
            return post_id

        sql, params = InsertQuery(
            "posts",
            {
                "type": product.type,
                **self._neutral_values(product),
                "createdAt": product.created_at or now,
                "updatedAt": now,
            },
            returning="id" if db.supports_returning else None,
        ).build()
        result = db.execute(sql, params)
        post_id = int(result.results[0]["id"]) if result.results else result.meta.last_row_id
        if not post_id:
            raise RuntimeError("Database did not return an id for the new post")
        logger.info("Created %s post %s", product.type, post_id)

        self._insert_translation(db, post_id, language, translated, now)
        return post_id

    def delete(self, db: SqlExecutor, post_id: int, post_type: str | None = None) -> bool:
        """
        Delete a post row. Translations go with it via ON DELETE CASCADE.

        Returns False when nothing matched.
        """
        sql = 'DELETE FROM posts WHERE "id" = ?'
        params: list[Any] = [post_id]
        if post_type:
            sql += ' AND "type" = ?'
            params.append(post_type)
        result = db.execute(sql, params)
        deleted = bool(result.meta.rows_affected)
        logger.info("Delete post %s (type=%s): %s", post_id, post_type, deleted)
        return deleted

    def reorder(self, db: SqlExecutor, post_ids: list[int], post_type: str) -> None:
        """Assign display_order 1..n to `post_ids` in one statement."""
        if not post_ids:
            return
        sql, params = build_reorder_statement(post_ids, post_type, self.clock())
        db.execute(sql, params)
        logger.info("Reordered %d %s posts", len(post_ids), post_type)

    # ----- Reads -----

    def translation_exists(self, db: SqlExecutor, post_id: int, language: str) -> bool:
        sql, params = (
            SelectQuery("post_translations", ['"id"'])
            .where('"post_id" = ?', post_id)
            .where('"language_code" = ?', language)
            .build()
        )
        return len(db.execute(sql, params).results) > 0

    def get(
        self,
        db: SqlExecutor,
        post_id: int | str,
        language: str,
        post_type: str | None = None,
    ) -> Product | None:
        """
        Fetch one post in one language.

        Missing translation -> translated fields come back as "".
        Non-numeric ids -> None.
        """
        try:
            numeric_id = int(post_id)
        except (TypeError, ValueError):
            return None

        query = (
            SelectQuery("posts p", _PRODUCT_COLUMNS)
            .join(_TRANSLATION_JOIN, language)
            .where('p."id" = ?', numeric_id)
        )
        if post_type:
            query.where('p."type" = ?', post_type)

        sql, params = query.build()
        rows = db.execute(sql, params).results
        if not rows:
            return None
        return self._row_to_product(rows[0])

    def list_posts(
        self,
        db: SqlExecutor,
        language: str,
        post_type: str | None = None,
        category: str | None = None,
        search_title: str | None = None,
        sort: str | None = "latest",
        limit: int | None = None,
    ) -> list[Product]:
        """
        List posts in one language.

        Filters are applied in a fixed order: type, category (substring),
        title (substring). Sorting is always newest update first.
        """
        query = SelectQuery("posts p", _PRODUCT_COLUMNS).join(_TRANSLATION_JOIN, language)

        if post_type:
            query.where('p."type" = ?', post_type)
        if category:
            query.where('pt."category" LIKE ?', f"%{category}%")
        if search_title:
            query.where('pt."title" LIKE ?', f"%{search_title}%")
        if sort == "latest" or not sort:
            query.order_by('p."updatedAt" DESC')
        query.limit(limit)

        sql, params = query.build()
        return [self._row_to_product(row) for row in db.execute(sql, params).results]

    def get_order(self, db: SqlExecutor, post_type: str) -> list[int]:
        """Post ids of one type in display order."""
        sql, params = (
            SelectQuery("posts", ['"id"'])
            .where('"type" = ?', post_type)
            .order_by('"display_order" ASC', '"updatedAt" DESC')
            .build()
        )
        return [int(row["id"]) for row in db.execute(sql, params).results]

    def list_used_categories(self, db: SqlExecutor, post_type: str, language: str) -> list[str]:
        """
        Distinct category tags used by posts of a type in one language.

        Stored values are comma-separated; each tag is returned once.
        """
        sql, params = (
            SelectQuery("posts p", ['DISTINCT pt."category"'])
            .join('JOIN post_translations pt ON p."id" = pt."post_id"')
            .where('p."type" = ?', post_type)
            .where('pt."language_code" = ?', language)
            .where('pt."category" IS NOT NULL')
            .where("pt.\"category\" != ''")
            .order_by('pt."category"')
            .build()
        )
        tags: list[str] = []
        for row in db.execute(sql, params).results:
            for tag in (row["category"] or "").split(","):
                tag = tag.strip()
                if tag and tag not in tags:
                    tags.append(tag)
        return tags

    # ----- Helpers -----

    @staticmethod
    def _neutral_values(product: Product) -> dict[str, Any]:
        return {
            "thumbnail": product.thumbnail,
            "ogImage": product.og_image,
            "ogTwitter": product.og_twitter,
            "date": product.date,
        }

    @staticmethod
    def _translated_values(product: Product) -> dict[str, Any]:
        # sections always serializes to at least "[]", so it is always written
        return non_empty(
            {
                "category": product.category,
                "title": product.title,
                "cardDescription": product.card_description,
                "sections": dump_sections_json(product.sections, product.unparsed_sections),
                "metaTitle": product.meta_title,
                "metaKeywords": product.meta_keywords,
                "metaDescription": product.meta_description,
            }
        )

    def _insert_translation(
        self,
        db: SqlExecutor,
        post_id: int,
        language: str,
        translated: dict[str, Any],
        now: int,
    ) -> None:
        sql, params = InsertQuery(
            "post_translations",
            {
                "post_id": post_id,
                "language_code": language,
                **translated,
                "createdAt": now,
                "updatedAt": now,
            },
        ).build()
        db.execute(sql, params)
        logger.info("Inserted %s translation of post %s", language, post_id)

    @staticmethod
    def _row_to_product(row: dict[str, Any]) -> Product:
        sections, unparsed = split_sections_json(row.get("sections"))
        return Product(
            id=row["id"],
            type=row.get("type") or "cases",
            category=row.get("category") or "",
            title=row.get("title") or "",
            card_description=row.get("cardDescription") or "",
            thumbnail=row.get("thumbnail") or "",
            sections=sections,
            unparsed_sections=unparsed,
            meta_title=row.get("metaTitle") or "",
            meta_keywords=row.get("metaKeywords") or "",
            meta_description=row.get("metaDescription") or "",
            og_image=row.get("ogImage") or "",
            og_twitter=row.get("ogTwitter") or "",
            date=row.get("date") or "",
            display_order=row.get("display_order"),
            created_at=to_epoch_ms(row.get("createdAt")),
            updated_at=to_epoch_ms(row.get("updatedAt")),
        )
