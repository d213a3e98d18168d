""""模块职能：

ID 重排：把 blog_posts 里未软删除的行按 (created_at, id) 重新编号为 1..N，
其余字段与时间戳原样保留；软删除的行在重写中被清理掉。

做法（先暂存、再整体替换，全部在同一个事务里）：

1) 清掉残留的 blog_posts_staging，再按 blog_posts 的结构重建（不带索引）

2) INSERT ... SELECT ROW_NUMBER() OVER (ORDER BY created_at, id) 写入暂存表

3) DROP blog_posts → RENAME staging → 重建索引（PostgreSQL 另外校正序列）

4) COMMIT；任何一步失败整体 ROLLBACK，原表与原 id 不变，抛 TransactionError，不自动重试

并发读在提交前只看得到旧表，提交后只看得到新表。"""

from sqlalchemy import MetaData, Table, func, insert, select, text
from sqlalchemy.engine import Connection
from sqlalchemy.orm import Session

from blog_api.core.errors import TransactionError
from blog_api.core.models import BlogPost
from blog_api.infra.logger import emit, emit_error

STAGING_TABLE = "blog_posts_staging"


def _staging_table() -> Table:
    staging = BlogPost.__table__.to_metadata(MetaData(), name=STAGING_TABLE)
    staging.indexes.clear()
    return staging


def _stage_rows(conn: Connection, staging: Table) -> int:
    src = BlogPost.__table__
    # 上次残留的暂存表一并在本事务内清掉
    staging.drop(conn, checkfirst=True)
    staging.create(conn)

    kept = [c.name for c in src.columns if c.name != "id"]
    new_id = func.row_number().over(order_by=(src.c.created_at.asc(), src.c.id.asc()))
    rows = (select(new_id.label("id"), *[src.c[name] for name in kept])
            .where(src.c.is_deleted.is_(False)))
    conn.execute(insert(staging).from_select(["id", *kept], rows))
    return conn.execute(select(func.count()).select_from(staging)).scalar_one()


def _swap_tables(conn: Connection, staging: Table) -> None:
    src = BlogPost.__table__
    src.drop(conn)
    conn.execute(text(f"ALTER TABLE {staging.name} RENAME TO {src.name}"))
    for index in src.indexes:
        index.create(conn)
    if conn.dialect.name == "postgresql":
        conn.execute(text(
            f"SELECT setval(pg_get_serial_sequence('{src.name}', 'id'), "
            f"COALESCE((SELECT MAX(id) FROM {src.name}), 0) + 1, false)"
        ))


def reorganize_ids(db: Session) -> bool:
    emit("blog_reorganize_begin")
    staging = _staging_table()
    try:
        conn = db.connection()
        total = _stage_rows(conn, staging)
        _swap_tables(conn, staging)
        db.commit()
    except Exception as e:
        db.rollback()
        emit_error("blog_reorganize_error", error=repr(e))
        raise TransactionError("Failed to reorganize blog ids; no changes were applied") from e

    # 旧 id 对应的对象已失效
    db.expunge_all()
    emit("blog_reorganize_done", total=total)
    return True
