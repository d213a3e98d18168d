""""
模块职能：

定义 blog_posts 表（BlogPost）：

id 自增整数；ID 重排后按 created_at 连续为 1..N

title / author / description / age：内容字段

is_deleted：软删除标志，默认 False；被软删除的行不参与默认查询，但仍占用 id

created_at / updated_at：服务端写入"""

# blog_api/core/models.py
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Index, Integer, String, Text

from blog_api.core.state_machine import RecordState
from blog_api.infra.db import Base


def _utcnow() -> datetime:
    # 统一存 naive UTC，SQLite 不保存时区
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _iso(value):
    return value.isoformat() if value else None


class BlogPost(Base):
    __tablename__ = "blog_posts"

    id = Column(Integer, primary_key=True)
    title = Column(String(200), nullable=False)
    author = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    age = Column(Integer, nullable=True)
    is_deleted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=_utcnow)
    updated_at = Column(DateTime, nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        Index("ix_blog_posts_author", "author"),
        Index("ix_blog_posts_title", "title"),
        Index("ix_blog_posts_is_deleted", "is_deleted"),
    )

    @property
    def state(self) -> RecordState:
        return RecordState.DELETED if self.is_deleted else RecordState.ACTIVE

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "author": self.author,
            "description": self.description,
            "age": self.age,
            "isDeleted": bool(self.is_deleted),
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }
