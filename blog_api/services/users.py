"""
模块职能：
- 凭证存储的全部写操作：注册、口令登录、改口令、停用/恢复用户、列表与查询。
- 口令哈希在这里显式计算（_apply_password），不依赖 ORM 钩子；返回给调用方的
  永远是 to_public_dict()，不带 password_hash。
- “不能停用自己”由路由层判断，这里没有“当前用户”的概念。

日志：
- user_register / user_register_duplicate
- auth_login_failed / auth_login_success（不记录口令与 token）
- user_deactivate / user_restore / user_password_update
"""
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from blog_api.core.errors import AuthenticationError, DuplicateCredentialError
from blog_api.core.models_user import User, UserRole
from blog_api.core.security import TokenService, dummy_verify, hash_password, verify_password
from blog_api.core.state_machine import RecordState, can_transit
from blog_api.infra.logger import emit, emit_error, emit_warning


def _apply_password(user: User, plain: str) -> None:
    user.password_hash = hash_password(plain)


def register_user(
    db: Session,
    username: str,
    email: str,
    password: str,
    role: UserRole = UserRole.user,
) -> User:
    user = User(username=username, email=email, role=UserRole(role), is_active=True)
    _apply_password(user, password)
    try:
        db.add(user); db.commit(); db.refresh(user)
    except IntegrityError:
        db.rollback()
        emit_warning("user_register_duplicate", username=username)
        raise DuplicateCredentialError()
    except SQLAlchemyError as e:
        db.rollback()
        emit_error("user_register_error", username=username, error=str(e))
        raise
    emit("user_register", user_id=user.id, username=user.username, role=user.role.value)
    return user


def authenticate_by_password(
    db: Session, tokens: TokenService, username: str, password: str
) -> Dict[str, Any]:
    """
    只查 active 用户；不存在/已停用/口令错误统一抛 AuthenticationError。
    成功返回 {"token", "user"}（user 不含哈希）。
    """
    user = (db.query(User)
              .filter(User.username == username, User.is_active.is_(True))
              .first())
    if user is None:
        dummy_verify()
        emit_warning("auth_login_failed", username=username, reason="not_found_or_inactive")
        raise AuthenticationError()
    if not verify_password(password, user.password_hash):
        emit_warning("auth_login_failed", username=username, reason="bad_password")
        raise AuthenticationError()

    token = tokens.issue(user)
    emit("auth_login_success", user_id=user.id, username=user.username, role=user.role.value)
    return {"token": token, "user": user.to_public_dict()}


def update_password(db: Session, user_id: int, new_password: str) -> bool:
    user = db.get(User, user_id)
    if not user:
        return False
    _apply_password(user, new_password)
    try:
        db.add(user); db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        emit_error("user_password_update_error", user_id=user_id, error=str(e))
        raise
    emit("user_password_update", user_id=user_id)
    return True


def _set_state(db: Session, user_id: int, target: RecordState, event: str) -> bool:
    try:
        user = db.get(User, user_id)
        if not user or not can_transit(user.state, target):
            return False
        user.is_active = target is RecordState.ACTIVE
        db.add(user); db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        emit_error(f"{event}_error", user_id=user_id, error=str(e))
        raise
    emit(event, user_id=user_id, username=user.username)
    return True


def soft_delete_user(db: Session, user_id: int) -> bool:
    return _set_state(db, user_id, RecordState.DELETED, "user_deactivate")


def restore_user(db: Session, user_id: int) -> bool:
    return _set_state(db, user_id, RecordState.ACTIVE, "user_restore")


def get_user(db: Session, user_id: int) -> Optional[User]:
    return db.get(User, user_id)


def list_users(
    db: Session,
    include_inactive: bool = False,
    requester_role: Optional[UserRole] = None,
) -> List[User]:
    """include_inactive 只对 admin 调用方生效。"""
    q = db.query(User)
    if not (include_inactive and requester_role == UserRole.admin):
        q = q.filter(User.is_active.is_(True))
    try:
        return q.order_by(User.id.asc()).all()
    except SQLAlchemyError as e:
        emit_error("user_list_error", error=str(e))
        raise
