# blog_api/api/users.py
# -*- coding: utf-8 -*-
"""
用户管理 API（挂载在 /users，全部 admin）
------------------------------------
- GET    /users/all?inactive=true  列表（inactive=true 时包含已停用用户）
- GET    /users/{id}
- DELETE /users/{id}               停用（is_active=False），不能停用自己
- POST   /users/{id}/restore       恢复

返回体一律不含 password_hash。
"""
from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session

from blog_api.core.context import Context, require_admin
from blog_api.core.errors import Forbidden, NotFound
from blog_api.infra.db import get_db
from blog_api.infra.logger import emit, emit_warning
from blog_api.services import users as user_svc

router = APIRouter()


@router.get("/all")
def list_users(
    inactive: bool = Query(default=False),
    db: Session = Depends(get_db),
    ctx: Context = Depends(require_admin),
):
    rows = user_svc.list_users(db, include_inactive=inactive, requester_role=ctx.role)
    emit("api_users_list", actor=ctx.user_id, include_inactive=inactive, count=len(rows))
    return [u.to_public_dict() for u in rows]


@router.get("/{user_id}")
def get_user(
    user_id: int = Path(ge=1),
    db: Session = Depends(get_db),
    ctx: Context = Depends(require_admin),
):
    user = user_svc.get_user(db, user_id)
    if not user:
        raise NotFound("User not found")
    return user.to_public_dict()


@router.delete("/{user_id}")
def delete_user(
    user_id: int = Path(ge=1),
    db: Session = Depends(get_db),
    ctx: Context = Depends(require_admin),
):
    if user_id == ctx.user_id:
        emit_warning("api_users_delete_self", actor=ctx.user_id)
        raise Forbidden("Cannot delete your own account")
    if not user_svc.soft_delete_user(db, user_id):
        raise NotFound("User not found or already deleted")
    emit("api_users_delete", actor=ctx.user_id, user_id=user_id)
    return {"message": "User deleted successfully"}


@router.post("/{user_id}/restore")
def restore_user(
    user_id: int = Path(ge=1),
    db: Session = Depends(get_db),
    ctx: Context = Depends(require_admin),
):
    if not user_svc.restore_user(db, user_id):
        raise NotFound("User not found or not deleted")
    emit("api_users_restore", actor=ctx.user_id, user_id=user_id)
    return {"message": "User restored successfully"}
