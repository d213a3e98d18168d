# blog_api/core/models_user.py
""""定义 UserRole（user|editor|admin）与 User ORM 实体：
id/username/email/password_hash/role/is_active/created_at/updated_at。

password_hash 只由 services.users 显式计算后写入，不挂 ORM 钩子；
to_public_dict() 永远不带 password_hash。"""
from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, Enum as SAEnum, Integer, String

from blog_api.core.models import _iso, _utcnow
from blog_api.core.state_machine import RecordState
from blog_api.infra.db import Base


class UserRole(str, Enum):
    user = "user"
    editor = "editor"
    admin = "admin"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    username = Column(String(30), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(SAEnum(UserRole), nullable=False, default=UserRole.user)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=_utcnow)
    updated_at = Column(DateTime, nullable=False, default=_utcnow, onupdate=_utcnow)

    @property
    def state(self) -> RecordState:
        return RecordState.ACTIVE if self.is_active else RecordState.DELETED

    def to_public_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "role": self.role.value,
            "isActive": bool(self.is_active),
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }
