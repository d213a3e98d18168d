# tests/test_reorganize.py
from datetime import datetime, timedelta

import pytest
from sqlalchemy import inspect

from blog_api.core.errors import TransactionError
from blog_api.core.models import BlogPost
from blog_api.infra.db import SessionLocal, engine
from blog_api.services import blogs as blog_svc
from blog_api.services import reorganize as reorg
from blog_api.services.reorganize import STAGING_TABLE, reorganize_ids

T0 = datetime(2024, 1, 1, 12, 0, 0)


def _insert_gapped(db):
    rows = [
        BlogPost(id=5, title="first", author="A", description="one", age=1,
                 created_at=T0, updated_at=T0 + timedelta(days=1)),
        BlogPost(id=9, title="second", author="B", description=None, age=None,
                 created_at=T0 + timedelta(hours=1), updated_at=T0 + timedelta(hours=1)),
        BlogPost(id=12, title="third", author="C", description="three", age=3,
                 created_at=T0 + timedelta(hours=2), updated_at=T0 + timedelta(hours=5)),
    ]
    db.add_all(rows)
    db.commit()


def _snapshot():
    with SessionLocal() as s:
        return [
            (p.id, p.title, p.author, p.description, p.age, p.is_deleted, p.created_at, p.updated_at)
            for p in s.query(BlogPost).order_by(BlogPost.id).all()
        ]


def test_renumbers_in_creation_order_keeping_fields(db):
    _insert_gapped(db)
    before = _snapshot()

    assert reorganize_ids(db) is True

    after = _snapshot()
    assert [r[0] for r in after] == [1, 2, 3]
    assert [r[1:] for r in after] == [r[1:] for r in before]


def test_order_follows_created_at_not_old_id(db):
    db.add_all([
        BlogPost(id=3, title="newest", author="x", created_at=T0 + timedelta(days=2), updated_at=T0),
        BlogPost(id=7, title="oldest", author="x", created_at=T0, updated_at=T0),
        BlogPost(id=8, title="middle", author="x", created_at=T0 + timedelta(days=1), updated_at=T0),
    ])
    db.commit()

    reorganize_ids(db)

    assert [(r[0], r[1]) for r in _snapshot()] == [(1, "oldest"), (2, "middle"), (3, "newest")]


def test_soft_deleted_rows_are_purged(db):
    _insert_gapped(db)
    assert blog_svc.soft_delete_post(db, 9) is True

    reorganize_ids(db)

    assert [(r[0], r[1]) for r in _snapshot()] == [(1, "first"), (2, "third")]


def test_next_create_continues_after_reorganized_run(db):
    _insert_gapped(db)
    reorganize_ids(db)
    assert blog_svc.create_post(db, {"title": "fresh", "author": "D"}).id == 4


def test_indexes_survive_the_swap(db):
    _insert_gapped(db)
    reorganize_ids(db)
    names = {ix["name"] for ix in inspect(engine).get_indexes("blog_posts")}
    assert {"ix_blog_posts_author", "ix_blog_posts_title", "ix_blog_posts_is_deleted"} <= names
    assert not inspect(engine).has_table(STAGING_TABLE)


def test_reorganize_empty_table(db):
    assert reorganize_ids(db) is True
    assert _snapshot() == []


def test_failure_before_swap_leaves_table_untouched(db, monkeypatch):
    _insert_gapped(db)
    before = _snapshot()

    def boom(conn, staging):
        raise RuntimeError("disk full")

    monkeypatch.setattr(reorg, "_swap_tables", boom)
    with pytest.raises(TransactionError):
        reorganize_ids(db)

    assert _snapshot() == before
    assert not inspect(engine).has_table(STAGING_TABLE)


def test_failure_mid_swap_rolls_back_drop(db, monkeypatch):
    _insert_gapped(db)
    before = _snapshot()

    def drop_then_fail(conn, staging):
        BlogPost.__table__.drop(conn)
        raise RuntimeError("interrupted before commit")

    monkeypatch.setattr(reorg, "_swap_tables", drop_then_fail)
    with pytest.raises(TransactionError):
        reorganize_ids(db)

    assert [r[0] for r in _snapshot()] == [5, 9, 12]
    assert _snapshot() == before
    assert not inspect(engine).has_table(STAGING_TABLE)


def test_leftover_staging_table_is_replaced(db):
    _insert_gapped(db)
    with engine.begin() as conn:
        reorg._staging_table().create(conn)

    assert reorganize_ids(db) is True
    assert [r[0] for r in _snapshot()] == [1, 2, 3]
    assert not inspect(engine).has_table(STAGING_TABLE)
