"""
模块职能：
- BlogPost 的增删改查、软删除/恢复、带过滤的分页查询。
- 所有读路径都经 _active() 过滤 is_deleted，软删除的排除规则只写这一处。

日志：
- blog_create / blog_update / blog_soft_delete / blog_restore
- *_error：数据库异常（回滚后原样抛出）
"""
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from blog_api.core.errors import ValidationError
from blog_api.core.models import BlogPost
from blog_api.core.state_machine import RecordState, can_transit
from blog_api.infra.logger import emit, emit_error

EDITABLE_FIELDS = ("title", "author", "description", "age")

SORTABLE_COLUMNS = {
    "id": BlogPost.id,
    "title": BlogPost.title,
    "author": BlogPost.author,
    "age": BlogPost.age,
    "createdAt": BlogPost.created_at,
    "updatedAt": BlogPost.updated_at,
}


@dataclass
class PostFilter:
    page: int = 1
    limit: int = 10
    author: Optional[str] = None
    title: Optional[str] = None
    search: Optional[str] = None
    min_age: Optional[int] = None
    max_age: Optional[int] = None
    sort_by: Optional[str] = None
    sort_order: Optional[str] = None


def _active(q: Query) -> Query:
    return q.filter(BlogPost.is_deleted.is_(False))


def _contains(column, term: str):
    # 大小写不敏感的子串匹配；转义 LIKE 通配符，按字面量匹配
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return column.ilike(f"%{escaped}%", escape="\\")


def _order_by(flt: PostFilter):
    sort_by = flt.sort_by or "id"
    column = SORTABLE_COLUMNS.get(sort_by)
    if column is None:
        raise ValidationError(f"Invalid sortBy: {sort_by}")
    order = (flt.sort_order or "ASC").upper()
    if order not in ("ASC", "DESC"):
        raise ValidationError(f"Invalid sortOrder: {flt.sort_order}")
    primary = column.desc() if order == "DESC" else column.asc()
    # id 兜底，保证翻页稳定
    return [primary] if column is BlogPost.id else [primary, BlogPost.id.asc()]


def _pick_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in fields.items() if k in EDITABLE_FIELDS}


def get_post(db: Session, post_id: int) -> Optional[BlogPost]:
    try:
        return _active(db.query(BlogPost)).filter(BlogPost.id == post_id).first()
    except SQLAlchemyError as e:
        emit_error("blog_fetch_error", post_id=post_id, error=str(e))
        raise


def list_posts(db: Session, flt: PostFilter) -> Dict[str, Any]:
    if flt.page < 1 or flt.limit < 1:
        raise ValidationError("page and limit must be >= 1")

    q = _active(db.query(BlogPost))
    if flt.author:
        q = q.filter(_contains(BlogPost.author, flt.author))
    if flt.title:
        q = q.filter(_contains(BlogPost.title, flt.title))
    if flt.min_age is not None:
        q = q.filter(BlogPost.age >= flt.min_age)
    if flt.max_age is not None:
        q = q.filter(BlogPost.age <= flt.max_age)
    if flt.search:
        q = q.filter(
            _contains(BlogPost.title, flt.search)
            | _contains(BlogPost.author, flt.search)
            | _contains(BlogPost.description, flt.search)
        )

    order = _order_by(flt)
    try:
        total = q.count()
        rows = (q.order_by(*order)
                 .offset((flt.page - 1) * flt.limit)
                 .limit(flt.limit)
                 .all())
    except SQLAlchemyError as e:
        emit_error("blog_list_error", page=flt.page, limit=flt.limit, error=str(e))
        raise

    return {
        "totalItems": total,
        "totalPages": math.ceil(total / flt.limit),
        "currentPage": flt.page,
        "items": rows,
    }


def list_all_posts(db: Session) -> List[BlogPost]:
    """包括软删除的行，按 id 升序（管理员视图）。"""
    try:
        return db.query(BlogPost).order_by(BlogPost.id.asc()).all()
    except SQLAlchemyError as e:
        emit_error("blog_list_all_error", error=str(e))
        raise


def create_post(db: Session, fields: Dict[str, Any]) -> BlogPost:
    post = BlogPost(**_pick_fields(fields), is_deleted=False)
    try:
        db.add(post); db.commit(); db.refresh(post)
    except SQLAlchemyError as e:
        db.rollback()
        emit_error("blog_create_error", error=str(e))
        raise
    emit("blog_create", post_id=post.id)
    return post


def update_post(db: Session, post_id: int, fields: Dict[str, Any]) -> Optional[BlogPost]:
    """部分更新：只改传入的字段；不存在或已软删除返回 None。"""
    post = get_post(db, post_id)
    if not post:
        return None
    changes = _pick_fields(fields)
    for key, value in changes.items():
        setattr(post, key, value)
    try:
        db.add(post); db.commit(); db.refresh(post)
    except SQLAlchemyError as e:
        db.rollback()
        emit_error("blog_update_error", post_id=post_id, error=str(e))
        raise
    emit("blog_update", post_id=post_id, fields=sorted(changes))
    return post


def _set_state(db: Session, post_id: int, target: RecordState, event: str) -> bool:
    try:
        post = db.get(BlogPost, post_id)
        if not post or not can_transit(post.state, target):
            return False
        post.is_deleted = target is RecordState.DELETED
        db.add(post); db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        emit_error(f"{event}_error", post_id=post_id, error=str(e))
        raise
    emit(event, post_id=post_id)
    return True


def soft_delete_post(db: Session, post_id: int) -> bool:
    return _set_state(db, post_id, RecordState.DELETED, "blog_soft_delete")


def restore_post(db: Session, post_id: int) -> bool:
    return _set_state(db, post_id, RecordState.ACTIVE, "blog_restore")
