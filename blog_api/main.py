"""
应用入口：
- 加载 .env（先 .env.example 作默认，再用 .env 覆盖）
- lifespan 启动阶段：配置日志 → 检查签名秘钥（缺失则拒绝启动）→ 初始化数据库
- 装载请求日志中间件、全局异常处理、路由（/ 博客，/auth 登录注册，/users 用户管理）
- 提供 /health
"""
from pathlib import Path
from dotenv import load_dotenv

# 1) 先加载 .env，务必在导入 config/logger 之前
ROOT = Path(__file__).resolve().parents[1]
ENV = ROOT / ".env"
ENV_EXAMPLE = ROOT / ".env.example"
if ENV_EXAMPLE.exists():
    load_dotenv(ENV_EXAMPLE, override=False)
if ENV.exists():
    load_dotenv(ENV, override=True)

# 2) 正常导入
from contextlib import asynccontextmanager  # noqa: E402
from fastapi import FastAPI, Request, status  # noqa: E402
from fastapi.exceptions import RequestValidationError  # noqa: E402
from fastapi.responses import JSONResponse  # noqa: E402

from blog_api.api import auth as auth_api  # noqa: E402
from blog_api.api import blogs as blogs_api  # noqa: E402
from blog_api.api import users as users_api  # noqa: E402
from blog_api.core.config import get_settings  # noqa: E402
from blog_api.core.errors import BlogApiError  # noqa: E402
from blog_api.infra.db import init_db  # noqa: E402
from blog_api.infra.logger import (  # noqa: E402
    configure_logging, emit, emit_error, emit_warning,
    LOG_TO_FILE, LOG_DIR, LOG_FILE, LOG_ROTATE_WHEN, LOG_BACKUP_COUNT,
)
from blog_api.middleware.logging import RequestLoggingMiddleware  # noqa: E402


@asynccontextmanager
async def lifespan(app: FastAPI):
    # startup
    configure_logging()
    emit(
        "logger_config",
        to_file=LOG_TO_FILE, dir=LOG_DIR, file=LOG_FILE,
        when=LOG_ROTATE_WHEN, backup=LOG_BACKUP_COUNT,
    )
    # 没有签名秘钥时直接失败，进程不对外服务
    get_settings().require_secret()
    init_db()
    emit("db_init_done")
    yield
    # shutdown
    emit("app_shutdown")


app = FastAPI(title="Blog API", lifespan=lifespan)
app.add_middleware(RequestLoggingMiddleware)


@app.exception_handler(BlogApiError)
async def blog_api_error_handler(request: Request, exc: BlogApiError):
    if exc.status_code >= 500:
        emit_error("api_error", code=exc.code, path=str(request.url.path), error=exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_response())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            "field": ".".join(str(loc) for loc in e["loc"]),
            "message": e["msg"],
            "type": e["type"],
        }
        for e in exc.errors()
    ]
    emit_warning("api_validation_error", path=str(request.url.path), errors=errors)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": "Validation error", "code": "validation_error", "errors": errors},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    emit_error("api_unhandled_error", path=str(request.url.path), error=repr(exc))
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Internal server error", "code": "internal_error"},
    )


@app.get("/health")
def health():
    return {"ok": True}


# 路由：/auth、/users 先挂，根路径的博客路由最后
app.include_router(auth_api.router, prefix="/auth", tags=["auth"])
app.include_router(users_api.router, prefix="/users", tags=["users"])
app.include_router(blogs_api.router, tags=["blogs"])
