# tests/conftest.py
# 先设环境变量，再导入 app（确保 engine 绑定到独立测试库）
import os
import tempfile

_TMP_DIR = tempfile.mkdtemp(prefix="blog_api_tests_")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["LOG_TO_FILE"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["SECRET_KEY"] = "test-secret"
os.environ.pop("JWT_SECRET", None)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from blog_api.main import app  # noqa: E402
from blog_api.core.models_user import UserRole  # noqa: E402
from blog_api.core.security import TokenService  # noqa: E402
from blog_api.infra.db import Base, SessionLocal, engine, init_db  # noqa: E402
from blog_api.services import users as user_svc  # noqa: E402

TEST_SECRET = "test-secret"
DEFAULT_PASSWORD = "secret123"


@pytest.fixture(autouse=True)
def reset_db():
    with engine.begin() as conn:
        conn.exec_driver_sql("DROP TABLE IF EXISTS blog_posts_staging")
    Base.metadata.drop_all(bind=engine)
    init_db()
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def tokens() -> TokenService:
    return TokenService(TEST_SECRET)


@pytest.fixture(scope="module")
def client():
    with TestClient(app) as c:
        yield c


def create_user(username: str, role: UserRole = UserRole.user, password: str = DEFAULT_PASSWORD) -> int:
    """用独立的短 Session 写入用户，避免测试里长时间持有 SQLite 读锁。"""
    with SessionLocal() as s:
        user = user_svc.register_user(s, username, f"{username}@blogmail.com", password, role)
        return user.id


def login(client: TestClient, username: str, password: str = DEFAULT_PASSWORD) -> dict:
    r = client.post("/auth/login", json={"username": username, "password": password})
    assert r.status_code == 200, r.text
    return {"Authorization": f"Bearer {r.json()['token']}"}
