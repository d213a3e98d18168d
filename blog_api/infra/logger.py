"""
统一日志配置（控制台 + 文件），结构化输出（JSON 一行）。
- configure_logging(): 根据环境变量设置等级与落盘，uvicorn 日志也合流到同一套 handler。
- emit / emit_warning / emit_error: 输出结构化事件，方便检索。

约定：口令、口令哈希、token、签名秘钥一律不进日志。
"""
import json
import logging
import os
import pathlib
from datetime import datetime
from logging.handlers import TimedRotatingFileHandler


LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_TO_FILE = os.getenv("LOG_TO_FILE", "true").lower() == "true"
LOG_DIR = os.getenv("LOG_DIR", "logs")
LOG_FILE = os.getenv("LOG_FILE", "blog_api.log")
LOG_ROTATE_WHEN = os.getenv("LOG_ROTATE_WHEN", "midnight")
LOG_BACKUP_COUNT = int(os.getenv("LOG_BACKUP_COUNT", "7"))

_configured = False


def configure_logging():
    global _configured
    if _configured:
        return

    level = getattr(logging, LEVEL, logging.INFO)
    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    ))
    root.addHandler(console)

    if LOG_TO_FILE:
        pathlib.Path(LOG_DIR).mkdir(parents=True, exist_ok=True)
        fileh = TimedRotatingFileHandler(
            os.path.join(LOG_DIR, LOG_FILE),
            when=LOG_ROTATE_WHEN, backupCount=LOG_BACKUP_COUNT, encoding="utf-8",
        )
        fileh.setLevel(level)
        # 文件里只写 message（纯 JSON）
        fileh.setFormatter(logging.Formatter("%(message)s"))
        root.addHandler(fileh)

    root.setLevel(level)

    for ln in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        lg = logging.getLogger(ln)
        lg.handlers = []
        lg.propagate = True

    _configured = True


_app_logger = logging.getLogger("blog_api")


def _now_iso():
    return datetime.now().astimezone().isoformat(timespec="milliseconds")


def _record(event: str, level: str, fields: dict) -> str:
    rec = {"ts": _now_iso(), "level": level, "event": event, **fields}
    try:
        return json.dumps(rec, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return str(rec)


def emit(event: str, **kwargs):
    """
    结构化日志（INFO）。
    用法：emit("blog_create", post_id=1)
    """
    _app_logger.info(_record(event, "INFO", kwargs))


def emit_warning(event: str, **kwargs):
    _app_logger.warning(_record(event, "WARNING", kwargs))


def emit_error(event: str, **kwargs):
    """
    错误日志（ERROR），同样带 ts。
    用法：emit_error("blog_update_error", post_id=3, error=str(e))
    """
    _app_logger.error(_record(event, "ERROR", kwargs))
