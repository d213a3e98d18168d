# blog_api/core/config.py
"""
集中读取运行配置（环境变量 → Settings），进程内只加载一次。

- SECRET_KEY：JWT 签名秘钥（兼容老变量名 JWT_SECRET）；缺失时启动阶段直接拒绝服务
- ACCESS_TOKEN_EXPIRE_MINUTES：令牌有效期，默认 24h
- DATABASE_URL：SQLAlchemy 连接串，默认本地 SQLite 文件
- DEFAULT_PAGE_SIZE / MAX_PAGE_SIZE：列表分页默认值与上限
- ADMIN_USERNAME / ADMIN_EMAIL / ADMIN_PASSWORD：scripts/seed.py 初始化管理员用

秘钥只通过 TokenService 构造函数注入，业务代码不要再直接读环境变量。
"""
import os
from functools import lru_cache
from typing import Optional

from blog_api.core.errors import ConfigurationError


class Settings:
    def __init__(self) -> None:
        self.secret_key = os.getenv("SECRET_KEY") or os.getenv("JWT_SECRET") or ""
        self.access_token_expire_minutes = self._get_int("ACCESS_TOKEN_EXPIRE_MINUTES", 24 * 60)
        self.database_url = os.getenv("DATABASE_URL", "sqlite:///./blog.db")
        self.default_page_size = self._get_int("DEFAULT_PAGE_SIZE", 10)
        self.max_page_size = self._get_int("MAX_PAGE_SIZE", 100)
        self.admin_username = os.getenv("ADMIN_USERNAME", "admin")
        self.admin_email = os.getenv("ADMIN_EMAIL", "admin@blogapi.dev")
        self.admin_password = os.getenv("ADMIN_PASSWORD", "admin123")

    @staticmethod
    def _get_int(key: str, default: Optional[int] = None) -> int:
        value = os.getenv(key)
        if value is None or value == "":
            if default is None:
                raise ConfigurationError(f"Missing required environment variable: {key}")
            return default
        try:
            return int(value)
        except ValueError as exc:
            raise ConfigurationError(f"Environment variable {key} must be an integer") from exc

    def require_secret(self) -> str:
        if not self.secret_key:
            raise ConfigurationError("SECRET_KEY is not set in environment")
        return self.secret_key


@lru_cache
def get_settings() -> Settings:
    return Settings()
