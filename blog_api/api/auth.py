# blog_api/api/auth.py
"""
登录 / 注册 / 当前身份（挂载在 /auth）

- POST /auth/login     公开：口令登录，返回 {"token", "user"}
- POST /auth/register  admin：注册新用户（201），不回传口令哈希
- GET  /auth/me        已登录即可：返回 token 解析出的身份

日志事件：
- auth_login_attempt：收到登录请求（不记录明文密码）
- auth_login_failed / auth_login_success：见 services.users
"""
from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from pydantic import BaseModel, EmailStr, Field, field_validator
from sqlalchemy.orm import Session

from blog_api.core.context import Context, get_token_service, require_admin, require_roles
from blog_api.core.models_user import UserRole
from blog_api.core.security import TokenService
from blog_api.infra.db import get_db
from blog_api.infra.logger import emit
from blog_api.services import users as user_svc

router = APIRouter()

require_any_user = require_roles(UserRole.user, UserRole.editor, UserRole.admin)


class LoginInput(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class RegisterInput(BaseModel):
    username: str = Field(min_length=3, max_length=30)
    email: EmailStr
    password: str = Field(min_length=6, max_length=100)
    role: Optional[UserRole] = UserRole.user

    @field_validator("username", mode="before")
    @classmethod
    def _strip_username(cls, v):
        # 先去空白再校验长度
        return v.strip() if isinstance(v, str) else v


@router.post("/login")
def login(
    body: LoginInput,
    request: Request,
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
):
    emit(
        "auth_login_attempt",
        username=body.username,
        ip=str(request.client.host) if request.client else None,
        ua=request.headers.get("user-agent"),
    )
    return user_svc.authenticate_by_password(db, tokens, body.username.strip(), body.password)


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(
    body: RegisterInput,
    db: Session = Depends(get_db),
    ctx: Context = Depends(require_admin),
):
    user = user_svc.register_user(
        db, body.username, str(body.email), body.password, body.role or UserRole.user,
    )
    emit("api_auth_register", actor=ctx.user_id, user_id=user.id)
    return user.to_public_dict()


@router.get("/me")
def whoami(ctx: Context = Depends(require_any_user)):
    return ctx.serialize()
