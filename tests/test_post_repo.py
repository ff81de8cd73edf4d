import json

import pytest
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from app.repositories.post_repo import PostRepository
from app.schemas.post import Product
from app.schemas.section import NormalSection


@pytest.fixture
def repo(clock):
    return PostRepository(clock=clock)


def count_rows(session, sql: str, **params) -> int:
    return session.connection().execute(text(sql), params).scalar_one()


def test_save_new_post_then_fetch_per_language(repo, executor):
    post_id = repo.save(executor, Product(type="cases", title="A"), "en")

    assert isinstance(post_id, int) and post_id > 0
    assert repo.get(executor, post_id, "en").title == "A"

    ja = repo.get(executor, post_id, "ja")
    assert ja.title == ""
    assert ja.category == ""
    assert ja.sections == []


def test_new_post_writes_exactly_one_translation(repo, executor, session):
    post_id = repo.save(executor, Product(type="news", title="Launch"), "ja")

    assert count_rows(session, "SELECT COUNT(*) FROM post_translations WHERE post_id = :id", id=post_id) == 1


def test_saving_twice_keeps_one_translation_row(repo, executor, session):
    product = Product(type="cases", title="Same", category="Steel")
    post_id = repo.save(executor, product, "ja")

    saved = product.model_copy(update={"id": post_id})
    repo.save(executor, saved, "ja")
    repo.save(executor, saved, "ja")

    assert count_rows(
        session,
        "SELECT COUNT(*) FROM post_translations WHERE post_id = :id AND language_code = 'ja'",
        id=post_id,
    ) == 1


def test_second_language_is_inserted_alongside(repo, executor, session):
    post_id = repo.save(executor, Product(type="cases", title="日本語"), "ja")
    repo.save(executor, Product(id=post_id, type="cases", title="English"), "en")

    assert repo.get(executor, post_id, "ja").title == "日本語"
    assert repo.get(executor, post_id, "en").title == "English"
    assert count_rows(session, "SELECT COUNT(*) FROM post_translations WHERE post_id = :id", id=post_id) == 2


def test_empty_fields_do_not_clear_stored_values(repo, executor):
    post_id = repo.save(
        executor,
        Product(type="cases", title="Kept", thumbnail="thumb.png", meta_title="SEO"),
        "ja",
    )

    repo.save(executor, Product(id=post_id, type="cases", title="", thumbnail="", meta_title=""), "ja")

    stored = repo.get(executor, post_id, "ja")
    assert stored.title == "Kept"
    assert stored.thumbnail == "thumb.png"
    assert stored.meta_title == "SEO"


def test_sections_round_trip_through_json(repo, executor):
    section = NormalSection(id="s1", order=0, data={"content": "<p>x</p>", "imagePosition": "left"})
    post_id = repo.save(executor, Product(type="equipments", sections=[section]), "ja")

    stored = repo.get(executor, post_id, "ja")
    assert len(stored.sections) == 1
    assert stored.sections[0].type == "normal"
    assert stored.sections[0].data.image_position == "left"


def test_unparsable_sections_json_gives_empty_list(repo, executor, session):
    post_id = repo.save(executor, Product(type="cases", title="Broken"), "ja")
    session.connection().execute(
        text("UPDATE post_translations SET sections = '{not json' WHERE post_id = :id"),
        {"id": post_id},
    )
    session.commit()

    assert repo.get(executor, post_id, "ja").sections == []


def test_unreadable_legacy_section_survives_fetch_and_save(repo, executor, session):
    legacy = {"id": "old", "type": "normal", "order": 1, "data": {"content": "keep me", "imagePosition": "center"}}
    readable = {"id": "s1", "type": "video", "order": 0, "data": {"url": "v.mp4", "autoplay": False}}
    post_id = repo.save(executor, Product(type="cases", title="Legacy"), "ja")
    session.connection().execute(
        text("UPDATE post_translations SET sections = :sections WHERE post_id = :id"),
        {"sections": json.dumps([readable, legacy]), "id": post_id},
    )
    session.commit()

    fetched = repo.get(executor, post_id, "ja")
    assert [s.id for s in fetched.sections] == ["s1"]
    assert fetched.unparsed_sections == [legacy]

    fetched.title = "Edited"
    repo.save(executor, fetched, "ja")

    stored = session.connection().execute(
        text("SELECT sections FROM post_translations WHERE post_id = :id AND language_code = 'ja'"),
        {"id": post_id},
    ).scalar_one()
    assert "keep me" in stored
    assert json.loads(stored) == [readable, legacy]


def test_legacy_iso_timestamps_are_normalized(repo, executor, session):
    post_id = repo.save(executor, Product(type="news", title="Old"), "ja")
    session.connection().execute(
        text('UPDATE posts SET "createdAt" = :ts WHERE id = :id'),
        {"ts": "2024-05-01T00:00:00.000Z", "id": post_id},
    )
    session.commit()

    assert repo.get(executor, post_id, "ja").created_at == 1714521600000


def test_get_missing_or_non_numeric_id(repo, executor):
    assert repo.get(executor, 999, "ja") is None
    assert repo.get(executor, "abc", "ja") is None


def test_get_scoped_by_type(repo, executor):
    post_id = repo.save(executor, Product(type="news", title="N"), "ja")

    assert repo.get(executor, post_id, "ja", post_type="cases") is None
    assert repo.get(executor, post_id, "ja", post_type="news").title == "N"


def test_partial_write_gap_is_left_in_place(repo, recorder):
    post_id = repo.save(recorder, Product(type="cases", title="Before", thumbnail="old.png"), "ja")

    recorder.fail_when = lambda sql: sql.startswith("UPDATE post_translations")
    with pytest.raises(OperationalError):
        repo.save(recorder, Product(id=post_id, type="cases", title="After", thumbnail="new.png"), "ja")

    recorder.fail_when = None
    stored = repo.get(recorder, post_id, "ja")
    # neutral row already moved on, translation did not
    assert stored.thumbnail == "new.png"
    assert stored.title == "Before"


def test_update_statements_use_non_empty_columns_only(repo, recorder):
    post_id = repo.save(recorder, Product(type="cases", title="T"), "ja")
    recorder.statements.clear()

    repo.save(recorder, Product(id=post_id, type="cases", thumbnail="t.png"), "ja")

    update_posts = recorder.statements[0][0]
    assert update_posts.startswith("UPDATE posts SET")
    assert '"thumbnail" = ?' in update_posts
    assert '"ogImage"' not in update_posts
    assert recorder.statements[1][0].startswith('SELECT "id" FROM post_translations')
    assert recorder.statements[2][0].startswith("UPDATE post_translations")


def test_delete_cascades_to_translations(repo, executor, session):
    post_id = repo.save(executor, Product(type="cases", title="Gone"), "ja")
    repo.save(executor, Product(id=post_id, type="cases", title="Gone EN"), "en")

    assert repo.delete(executor, post_id) is True

    assert repo.get(executor, post_id, "ja") is None
    assert count_rows(session, "SELECT COUNT(*) FROM post_translations WHERE post_id = :id", id=post_id) == 0


def test_delete_scoped_by_type(repo, executor):
    post_id = repo.save(executor, Product(type="news", title="Keep"), "ja")

    assert repo.delete(executor, post_id, post_type="cases") is False
    assert repo.get(executor, post_id, "ja") is not None


def test_list_filters_and_sorting(repo, executor):
    first = repo.save(executor, Product(type="cases", title="Bridge repair", category="Steel,Civil"), "ja")
    second = repo.save(executor, Product(type="cases", title="Tank coating", category="Coating"), "ja")
    repo.save(executor, Product(type="news", title="Bridge award", category="Steel"), "ja")

    all_cases = repo.list_posts(executor, "ja", post_type="cases")
    assert [p.id for p in all_cases] == [second, first]

    steel_cases = repo.list_posts(executor, "ja", post_type="cases", category="Steel")
    assert [p.id for p in steel_cases] == [first]

    bridges = repo.list_posts(executor, "ja", search_title="Bridge")
    assert {p.title for p in bridges} == {"Bridge repair", "Bridge award"}

    assert len(repo.list_posts(executor, "ja", limit=1)) == 1


def test_list_predicates_follow_fixed_order(repo, recorder):
    repo.list_posts(recorder, "en", post_type="news", category="A", search_title="B", limit=5)

    sql, params = recorder.statements[-1]
    assert sql.index('p."type" = ?') < sql.index('pt."category" LIKE ?') < sql.index('pt."title" LIKE ?')
    assert sql.endswith('ORDER BY p."updatedAt" DESC LIMIT ?')
    assert params == ["en", "news", "%A%", "%B%", 5]


def test_list_without_translation_returns_empty_strings(repo, executor):
    post_id = repo.save(executor, Product(type="cases", title="Only JA"), "ja")

    [product] = repo.list_posts(executor, "en", post_type="cases")
    assert product.id == post_id
    assert product.title == ""


def test_reorder_is_one_statement_and_sets_positions(repo, recorder):
    ids = [repo.save(recorder, Product(type="cases", title=f"P{i}"), "ja") for i in range(5)]
    recorder.statements.clear()

    new_order = [ids[3], ids[0], ids[1], ids[2], ids[4]]
    repo.reorder(recorder, new_order, "cases")

    assert len(recorder.statements) == 1
    assert "CASE" in recorder.statements[0][0]
    assert repo.get_order(recorder, "cases") == new_order
    for position, post_id in enumerate(new_order, start=1):
        assert repo.get(recorder, post_id, "ja").display_order == position


def test_reorder_leaves_other_types_alone(repo, executor):
    case_id = repo.save(executor, Product(type="cases", title="C"), "ja")
    news_id = repo.save(executor, Product(type="news", title="N"), "ja")

    repo.reorder(executor, [news_id, case_id], "cases")

    assert repo.get(executor, case_id, "ja").display_order == 2
    assert repo.get(executor, news_id, "ja").display_order == 0


def test_reorder_empty_list_is_noop(repo, recorder):
    repo.reorder(recorder, [], "cases")
    assert recorder.statements == []


def test_list_used_categories(repo, executor):
    repo.save(executor, Product(type="cases", category="Steel, Civil"), "ja")
    repo.save(executor, Product(type="cases", category="Civil"), "ja")
    repo.save(executor, Product(type="news", category="Press"), "ja")
    repo.save(executor, Product(type="cases", category="English only"), "en")

    assert sorted(repo.list_used_categories(executor, "cases", "ja")) == ["Civil", "Steel"]
