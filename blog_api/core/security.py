# blog_api/core/security.py
""""封装口令哈希/校验（passlib[bcrypt]）与 JWT 签发/校验（TokenService）。

TokenService.issue() 把 sub/username/role/iat/exp 写入 JWT 负载，有效期默认 24h；
TokenService.verify() 校验签名与过期后，再回库确认用户仍存在且 is_active，
所以停用用户后，之前签发的 token 立即失效，不用等过期。

签名秘钥只从构造函数注入（见 core.config.get_settings），不在这里读环境变量。"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt  # PyJWT
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from blog_api.core.errors import ConfigurationError, InactiveUserError, InvalidTokenError
from blog_api.core.models_user import User
from blog_api.infra.logger import emit_error, emit_warning

ALGORITHM = "HS256"
DEFAULT_EXPIRE_MINUTES = 24 * 60
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(plain: str) -> str:
    return pwd_context.hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def dummy_verify() -> None:
    # 用户不存在时也消耗一次哈希时间，避免按响应耗时枚举用户名
    pwd_context.dummy_verify()


class TokenService:
    def __init__(
        self,
        secret_key: Optional[str],
        expire_minutes: int = DEFAULT_EXPIRE_MINUTES,
        algorithm: str = ALGORITHM,
    ) -> None:
        self._secret_key = secret_key or ""
        self._expire_minutes = expire_minutes
        self._algorithm = algorithm

    @property
    def expire_minutes(self) -> int:
        return self._expire_minutes

    def _require_secret(self) -> str:
        if not self._secret_key:
            emit_error("token_secret_missing")
            raise ConfigurationError("Token signing secret is not configured")
        return self._secret_key

    def issue(self, user: User) -> str:
        secret = self._require_secret()
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user.id),
            "username": user.username,
            "role": user.role.value,
            "iat": now,
            "exp": now + timedelta(minutes=self._expire_minutes),
        }
        return jwt.encode(payload, secret, algorithm=self._algorithm)

    def decode(self, token: str) -> Dict[str, Any]:
        """只校验签名与过期，不查库。"""
        secret = self._require_secret()
        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[self._algorithm],
                options={"require": ["sub", "exp"]},
            )
        except jwt.ExpiredSignatureError:
            emit_warning("auth_token_expired")
            raise InvalidTokenError("Token expired")
        except jwt.PyJWTError as e:
            emit_warning("auth_token_invalid", error=str(e))
            raise InvalidTokenError("Invalid token")

        try:
            payload["id"] = int(payload["sub"])
        except (TypeError, ValueError):
            emit_warning("auth_token_bad_sub")
            raise InvalidTokenError("Invalid token")
        return payload

    def verify(self, token: str, db: Session) -> Dict[str, Any]:
        """
        校验 token 并回库确认用户状态。
        返回负载 {id, sub, username, role, iat, exp}；
        签名/格式/过期问题 → InvalidTokenError，用户不存在或已停用 → InactiveUserError。
        """
        payload = self.decode(token)
        user = db.get(User, payload["id"])
        if not user or not user.is_active:
            emit_warning("auth_token_inactive_user", user_id=payload["id"])
            raise InactiveUserError()
        return payload
