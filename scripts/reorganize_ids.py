# scripts/reorganize_ids.py
"""
维护脚本：在命令行执行一次 blog_posts 的 ID 重排（与 POST /reorganize-ids 相同）。
失败时事务已回滚，数据保持原样，退出码 1。
"""
import os
import sys

os.environ.setdefault("LOG_TO_FILE", "false")
os.environ.setdefault("PYTHONUNBUFFERED", "1")

from blog_api.core.errors import TransactionError  # noqa: E402
from blog_api.infra.db import SessionLocal  # noqa: E402
from blog_api.infra.logger import emit  # noqa: E402
from blog_api.services.reorganize import reorganize_ids  # noqa: E402


def run() -> bool:
    with SessionLocal() as db:
        return reorganize_ids(db)


if __name__ == "__main__":
    try:
        run()
        print("[reorganize_ids] done.", flush=True)
        sys.exit(0)
    except TransactionError as e:
        emit("reorganize_script_error", error=str(e))
        print(f"[reorganize_ids] ERROR: {e}", file=sys.stderr, flush=True)
        sys.exit(1)
