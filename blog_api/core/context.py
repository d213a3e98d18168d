# blog_api/core/context.py
"""
访问控制门（Access Control Gate）：从请求里解析身份，再按角色放行/拒绝。

- authenticate()：没有 Authorization 头 → None（匿名）；有头但无效 → 抛 401 类异常
- authorize(ctx, roles)：admin 永远放行；否则角色必须在 roles 里。
  返回 None 表示放行，否则返回拒绝原因 Denial.unauthenticated / Denial.forbidden
- require_roles(*roles)：FastAPI 依赖，拒绝时打 access_denied 日志（审计用）并抛
  Unauthenticated(401) / Forbidden(403)
"""
from __future__ import annotations

from enum import Enum
from functools import lru_cache
from typing import Iterable, Optional, Union

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel
from sqlalchemy.orm import Session

from blog_api.core.config import get_settings
from blog_api.core.errors import Forbidden, InvalidTokenError, Unauthenticated
from blog_api.core.models_user import UserRole
from blog_api.core.security import TokenService
from blog_api.infra.db import get_db
from blog_api.infra.logger import emit_warning

_bearer = HTTPBearer(auto_error=False)


class Context(BaseModel):
    user_id: int
    username: Optional[str] = None
    role: UserRole = UserRole.user

    def serialize(self) -> dict:
        return {"id": self.user_id, "username": self.username, "role": self.role.value}

    @classmethod
    def from_payload(cls, data: dict) -> "Context":
        try:
            role = UserRole(data.get("role") or UserRole.user.value)
        except ValueError:
            raise InvalidTokenError("Invalid token")
        return cls(user_id=int(data["id"]), username=data.get("username"), role=role)


class Denial(str, Enum):
    unauthenticated = "unauthenticated"
    forbidden = "forbidden"


RoleSpec = Union[UserRole, str, Iterable[Union[UserRole, str]]]


def _normalize_roles(required: RoleSpec) -> set:
    if isinstance(required, (UserRole, str)):
        required = [required]
    return {UserRole(r) for r in required}


@lru_cache
def get_token_service() -> TokenService:
    settings = get_settings()
    return TokenService(settings.secret_key, settings.access_token_expire_minutes)


def authenticate(
    request: Request,
    creds: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
) -> Optional[Context]:
    if creds is None or not creds.credentials:
        if request.headers.get("authorization"):
            # 有头但不是 Bearer：属于“凭证无效”，不是匿名
            emit_warning("auth_bad_scheme", path=str(request.url.path))
            raise Unauthenticated("Unauthorized. Bearer token required.")
        return None
    payload = tokens.verify(creds.credentials, db)
    return Context.from_payload(payload)


def authorize(ctx: Optional[Context], required_roles: RoleSpec) -> Optional[Denial]:
    if ctx is None:
        return Denial.unauthenticated
    if ctx.role == UserRole.admin:
        return None
    if ctx.role in _normalize_roles(required_roles):
        return None
    return Denial.forbidden


def require_roles(*roles: Union[UserRole, str]):
    required = _normalize_roles(roles)

    def dependency(
        request: Request,
        ctx: Optional[Context] = Depends(authenticate),
    ) -> Context:
        denial = authorize(ctx, required)
        if denial is None:
            return ctx
        emit_warning(
            "access_denied",
            actor=ctx.username if ctx else "anonymous",
            user_id=ctx.user_id if ctx else None,
            role=ctx.role.value if ctx else None,
            method=request.method,
            path=str(request.url.path),
            reason=denial.value,
        )
        if denial is Denial.unauthenticated:
            raise Unauthenticated()
        raise Forbidden()

    return dependency


require_admin = require_roles(UserRole.admin)
require_editor = require_roles(UserRole.editor, UserRole.admin)
