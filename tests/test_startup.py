# tests/test_startup.py
"""启动阶段：缺签名秘钥时拒绝启动。"""
import pytest
from fastapi.testclient import TestClient

from blog_api.core.config import get_settings
from blog_api.core.errors import ConfigurationError
from blog_api.main import app


def test_app_refuses_to_start_without_secret(monkeypatch):
    monkeypatch.delenv("SECRET_KEY", raising=False)
    monkeypatch.delenv("JWT_SECRET", raising=False)
    get_settings.cache_clear()
    try:
        with pytest.raises(ConfigurationError):
            with TestClient(app):
                pass
    finally:
        monkeypatch.undo()
        get_settings.cache_clear()

    assert get_settings().require_secret() == "test-secret"


def test_legacy_secret_name_is_accepted(monkeypatch):
    monkeypatch.delenv("SECRET_KEY", raising=False)
    monkeypatch.setenv("JWT_SECRET", "legacy-secret")
    get_settings.cache_clear()
    try:
        with TestClient(app) as c:
            assert c.get("/health").json() == {"ok": True}
    finally:
        monkeypatch.undo()
        get_settings.cache_clear()
