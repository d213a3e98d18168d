# blog_api/infra/db.py
"""
模块职能：

- 读取 DATABASE_URL，创建 SQLAlchemy 引擎与 SessionLocal
- get_db()：FastAPI 依赖，每请求一个 Session，用后关闭
- init_db()：启动时统一建表

SQLite 说明：pysqlite 默认只在 DML 前隐式 BEGIN，DDL 会落在自动提交里。
这里按 SQLAlchemy 文档的做法关掉驱动的事务管理，由 begin 事件显式发 BEGIN，
这样 ID 重排里的建表/删表/改名都能和数据一起回滚。
"""
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker, Session

from blog_api.core.config import get_settings

DATABASE_URL = get_settings().database_url
IS_SQLITE = DATABASE_URL.startswith("sqlite")

Base = declarative_base()

engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False} if IS_SQLITE else {},
)

if IS_SQLITE:
    @event.listens_for(engine, "connect")
    def _sqlite_on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _sqlite_on_begin(conn):
        conn.exec_driver_sql("BEGIN")


SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


def init_db():
    # 导入以注册到 Base
    from blog_api.core import models, models_user  # noqa: F401

    Base.metadata.create_all(bind=engine)


def get_db() -> Generator[Session, None, None]:
    """FastAPI 依赖函数：yield 一个 Session，用后自动关闭。"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
