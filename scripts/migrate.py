# scripts/migrate.py
"""
迁移脚本：创建 users / blog_posts 表（若不存在）。
安全：不会修改已有表结构与数据。
可作为脚本执行（python -m scripts.migrate），也可被测试直接导入调用 run()。
"""

import os
import sys

# 确保脚本在控制台有输出；不影响主服务的日志设置
os.environ.setdefault("LOG_TO_FILE", "false")
os.environ.setdefault("PYTHONUNBUFFERED", "1")

from blog_api.core.config import get_settings  # noqa: E402
from blog_api.infra.db import init_db  # noqa: E402
from blog_api.infra.logger import emit  # noqa: E402


def run():
    emit("migrate_begin", database_url=get_settings().database_url)
    print("[migrate] creating tables if not exists ...", flush=True)
    init_db()
    emit("migrate_done", status="ok")
    print("[migrate] done.", flush=True)


if __name__ == "__main__":
    try:
        run()
        sys.exit(0)
    except Exception as e:
        emit("migrate_error", error=str(e))
        print(f"[migrate] ERROR: {e}", file=sys.stderr, flush=True)
        sys.exit(1)
