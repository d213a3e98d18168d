""""根据 .env 或默认值创建/更新管理员账号（口令哈希存储）。

注册接口本身要求 admin 身份，所以第一个 admin 只能由这个脚本写入。
可作为脚本执行，也可被测试直接导入调用（提供 run() 函数）"""
# scripts/seed.py
import os
import sys

os.environ.setdefault("LOG_TO_FILE", "false")
os.environ.setdefault("PYTHONUNBUFFERED", "1")

from sqlalchemy.orm import Session  # noqa: E402

from blog_api.core.config import get_settings  # noqa: E402
from blog_api.core.models_user import User, UserRole  # noqa: E402
from blog_api.infra.db import SessionLocal, init_db  # noqa: E402
from blog_api.infra.logger import emit  # noqa: E402
from blog_api.services import users as user_svc  # noqa: E402


def upsert_admin(db: Session, username: str, email: str, password: str) -> User:
    u = db.query(User).filter(User.username == username).first()
    if u is None:
        u = user_svc.register_user(db, username, email, password, UserRole.admin)
        action = "created"
    else:
        u.role = UserRole.admin
        u.is_active = True
        db.add(u); db.commit()
        user_svc.update_password(db, u.id, password)
        action = "updated"

    emit("seed_user_upsert", username=username, role=UserRole.admin.value, action=action)
    print(f"[seed] {action} admin: {username}", flush=True)
    return u


def run():
    settings = get_settings()
    emit("seed_begin", database_url=settings.database_url)
    init_db()
    with SessionLocal() as db:
        upsert_admin(db, settings.admin_username, settings.admin_email, settings.admin_password)
    emit("seed_done", status="ok")


if __name__ == "__main__":
    try:
        run()
        sys.exit(0)
    except Exception as e:
        emit("seed_error", error=str(e))
        print(f"[seed] ERROR: {e}", file=sys.stderr, flush=True)
        sys.exit(1)
