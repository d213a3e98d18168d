# tests/test_security.py
from datetime import datetime, timezone

import jwt
import pytest

from blog_api.core.errors import ConfigurationError, InactiveUserError, InvalidTokenError
from blog_api.core.models_user import User, UserRole
from blog_api.core.security import TokenService, hash_password, verify_password
from blog_api.services import users as user_svc

from conftest import TEST_SECRET


def test_password_hash_is_salted_and_verifiable():
    h1 = hash_password("senha123")
    h2 = hash_password("senha123")
    assert h1 != "senha123"
    assert h1 != h2
    assert verify_password("senha123", h1)
    assert not verify_password("senha124", h1)


def test_issue_embeds_identity_and_24h_expiry(db, tokens):
    user = user_svc.register_user(db, "alice", "alice@blogmail.com", "secret123", UserRole.editor)
    token = tokens.issue(user)

    payload = jwt.decode(token, TEST_SECRET, algorithms=["HS256"])
    assert payload["sub"] == str(user.id)
    assert payload["username"] == "alice"
    assert payload["role"] == "editor"
    assert payload["exp"] - payload["iat"] == 24 * 60 * 60


def test_issue_without_secret_is_configuration_error(db):
    user = user_svc.register_user(db, "bob", "bob@blogmail.com", "secret123")
    with pytest.raises(ConfigurationError):
        TokenService("").issue(user)
    with pytest.raises(ConfigurationError):
        TokenService(None).verify("whatever", db)


def test_verify_returns_identity(db, tokens):
    user = user_svc.register_user(db, "carol", "carol@blogmail.com", "secret123", UserRole.admin)
    payload = tokens.verify(tokens.issue(user), db)
    assert payload["id"] == user.id
    assert payload["username"] == "carol"
    assert payload["role"] == "admin"


def test_verify_rejects_bad_signature_and_garbage(db, tokens):
    user = user_svc.register_user(db, "dave", "dave@blogmail.com", "secret123")
    forged = TokenService("another-secret").issue(user)
    with pytest.raises(InvalidTokenError):
        tokens.verify(forged, db)
    with pytest.raises(InvalidTokenError):
        tokens.verify("not.a.jwt", db)


def test_verify_rejects_expired_token(db):
    user = user_svc.register_user(db, "erin", "erin@blogmail.com", "secret123")
    expired = TokenService(TEST_SECRET, expire_minutes=-1).issue(user)
    with pytest.raises(InvalidTokenError) as exc:
        TokenService(TEST_SECRET).verify(expired, db)
    assert exc.value.message == "Token expired"


def test_deactivation_invalidates_existing_token(db, tokens):
    user = user_svc.register_user(db, "frank", "frank@blogmail.com", "secret123")
    token = tokens.issue(user)
    assert tokens.verify(token, db)["id"] == user.id

    assert user_svc.soft_delete_user(db, user.id) is True
    with pytest.raises(InactiveUserError):
        tokens.verify(token, db)

    # 恢复后同一个 token 重新可用（仍在有效期内）
    assert user_svc.restore_user(db, user.id) is True
    assert tokens.verify(token, db)["id"] == user.id


def test_token_for_unknown_user_is_rejected(db, tokens):
    ghost = User(id=999, username="ghost", role=UserRole.admin)
    token = tokens.issue(ghost)
    with pytest.raises(InactiveUserError):
        tokens.verify(token, db)


def test_token_without_sub_is_invalid(db, tokens):
    token = jwt.encode(
        {"username": "x", "exp": datetime.now(timezone.utc).timestamp() + 60},
        TEST_SECRET, algorithm="HS256",
    )
    with pytest.raises(InvalidTokenError):
        tokens.verify(token, db)
