# blog_api/api/blogs.py
# -*- coding: utf-8 -*-
"""
Blog API（挂载在根路径 /）
------------------------------------
| GET    /                 公开   分页 + 过滤
| GET    /all              admin  含软删除的全量（按 id）
| GET    /{id}             公开
| POST   /                 editor, admin
| PUT    /{id}             editor, admin   部分更新
| DELETE /{id}             admin           软删除
| POST   /{id}/restore     admin
| POST   /reorganize-ids   admin           ID 重排（事务内整体替换）

入参校验在这里（pydantic / Query 约束），service 层只处理业务。
"""
from typing import Annotated, Literal, Optional

from fastapi import APIRouter, Depends, Path, Query, status
from pydantic import BaseModel, BeforeValidator, Field, field_validator
from sqlalchemy.orm import Session

from blog_api.core.config import get_settings
from blog_api.core.context import Context, require_admin, require_editor
from blog_api.core.errors import NotFound
from blog_api.core.models import BlogPost
from blog_api.infra.db import get_db
from blog_api.infra.logger import emit
from blog_api.services import blogs as blog_svc
from blog_api.services.reorganize import reorganize_ids

router = APIRouter()
_settings = get_settings()

SortField = Literal["id", "title", "author", "age", "createdAt", "updatedAt"]


def _upper(v):
    return v.upper() if isinstance(v, str) else v


# 排序方向大小写不敏感
SortOrder = Annotated[Literal["ASC", "DESC"], BeforeValidator(_upper)]


class CreatePostIn(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    author: str = Field(min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=5000)
    age: Optional[int] = Field(default=None, ge=0, le=150)


class UpdatePostIn(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    author: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=5000)
    age: Optional[int] = Field(default=None, ge=0, le=150)

    @field_validator("title", "author")
    @classmethod
    def _not_null(cls, v):
        # 可以不传，但不能显式置空
        if v is None:
            raise ValueError("must not be null")
        return v


def _page_out(page: dict) -> dict:
    return {**page, "items": [p.to_dict() for p in page["items"]]}


@router.get("/", summary="List blogs")
def list_blogs(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=_settings.default_page_size, ge=1, le=_settings.max_page_size),
    author: Optional[str] = Query(default=None),
    title: Optional[str] = Query(default=None),
    search: Optional[str] = Query(default=None),
    min_age: Optional[int] = Query(default=None, alias="minAge", ge=0, le=150),
    max_age: Optional[int] = Query(default=None, alias="maxAge", ge=0, le=150),
    sort_by: Optional[SortField] = Query(default=None, alias="sortBy"),
    sort_order: Optional[SortOrder] = Query(default=None, alias="sortOrder"),
    db: Session = Depends(get_db),
):
    flt = blog_svc.PostFilter(
        page=page, limit=limit, author=author, title=title, search=search,
        min_age=min_age, max_age=max_age, sort_by=sort_by, sort_order=sort_order,
    )
    return _page_out(blog_svc.list_posts(db, flt))


@router.get("/all", summary="List every blog, deleted ones included")
def list_all_blogs(db: Session = Depends(get_db), ctx: Context = Depends(require_admin)):
    rows = blog_svc.list_all_posts(db)
    emit("api_blogs_list_all", actor=ctx.user_id, count=len(rows))
    return [p.to_dict() for p in rows]


@router.post("/reorganize-ids", summary="Renumber blog ids 1..N")
def reorganize_blog_ids(db: Session = Depends(get_db), ctx: Context = Depends(require_admin)):
    emit("api_blogs_reorganize", actor=ctx.user_id)
    reorganize_ids(db)
    total = db.query(BlogPost).count()
    return {"message": "IDs successfully reorganized", "totalItems": total}


@router.get("/{post_id}", summary="Get blog")
def get_blog(post_id: int = Path(ge=1), db: Session = Depends(get_db)):
    post = blog_svc.get_post(db, post_id)
    if not post:
        raise NotFound("Blog not found")
    return post.to_dict()


@router.post("/", status_code=status.HTTP_201_CREATED, summary="Create blog")
def create_blog(
    body: CreatePostIn,
    db: Session = Depends(get_db),
    ctx: Context = Depends(require_editor),
):
    post = blog_svc.create_post(db, body.model_dump())
    emit("api_blogs_create", actor=ctx.user_id, post_id=post.id)
    return post.to_dict()


@router.put("/{post_id}", summary="Update blog")
def update_blog(
    body: UpdatePostIn,
    post_id: int = Path(ge=1),
    db: Session = Depends(get_db),
    ctx: Context = Depends(require_editor),
):
    # 只传入客户端真正给出的字段
    post = blog_svc.update_post(db, post_id, body.model_dump(exclude_unset=True))
    if not post:
        raise NotFound("Blog not found")
    emit("api_blogs_update", actor=ctx.user_id, post_id=post_id)
    return post.to_dict()


@router.delete("/{post_id}", summary="Soft-delete blog")
def delete_blog(
    post_id: int = Path(ge=1),
    db: Session = Depends(get_db),
    ctx: Context = Depends(require_admin),
):
    if not blog_svc.soft_delete_post(db, post_id):
        raise NotFound("Blog not found or already deleted")
    emit("api_blogs_delete", actor=ctx.user_id, post_id=post_id)
    return {"message": "Blog deleted successfully"}


@router.post("/{post_id}/restore", summary="Restore blog")
def restore_blog(
    post_id: int = Path(ge=1),
    db: Session = Depends(get_db),
    ctx: Context = Depends(require_admin),
):
    if not blog_svc.restore_post(db, post_id):
        raise NotFound("Blog not found or not deleted")
    emit("api_blogs_restore", actor=ctx.user_id, post_id=post_id)
    return {"message": "Blog restored successfully"}
