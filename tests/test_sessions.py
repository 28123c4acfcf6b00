from datetime import timedelta

import jwt
import pytest

from models.user import User
from services.sessions import REPLAYED_MESSAGE
from utils.errors import InvalidInput, NotFound, Unauthorized
from utils.security import TokenService


@pytest.fixture
def alice(make_user):
    return make_user("alice")


def _stored_refresh_token(storage, user_id):
    storage.get_session().expire_all()
    return storage.get(User, user_id).refresh_token


def test_login_requires_username_or_email(sessions, alice) -> None:
    with pytest.raises(InvalidInput) as excinfo:
        sessions.login(password="password123")
    assert excinfo.value.message == "Username or Email is required."


def test_login_requires_password(sessions, alice) -> None:
    with pytest.raises(InvalidInput) as excinfo:
        sessions.login(username="alice")
    assert excinfo.value.message == "Password is required."


def test_login_unknown_user(sessions, alice) -> None:
    with pytest.raises(NotFound):
        sessions.login(username="nobody", password="password123")


def test_login_wrong_password(sessions, alice) -> None:
    with pytest.raises(Unauthorized):
        sessions.login(username="alice", password="not-the-password")


def test_login_by_username_stores_refresh_token(sessions, storage, tokens, alice) -> None:
    result = sessions.login(username="Alice", password="password123")

    assert tokens.verify_access(result.access_token) == alice["id"]
    assert tokens.verify_refresh(result.refresh_token) == alice["id"]
    assert _stored_refresh_token(storage, alice["id"]) == result.refresh_token
    assert "password_hash" not in result.user
    assert "refresh_token" not in result.user
    assert result.user["username"] == "alice"


def test_login_by_email(sessions, alice) -> None:
    result = sessions.login(email="ALICE@example.com", password="password123")

    assert result.user["id"] == alice["id"]


def test_new_login_revokes_previous_refresh_token(sessions, alice) -> None:
    first = sessions.login(username="alice", password="password123")
    sessions.login(username="alice", password="password123")

    with pytest.raises(Unauthorized) as excinfo:
        sessions.refresh(first.refresh_token)
    assert excinfo.value.message == REPLAYED_MESSAGE


def test_refresh_is_single_use(sessions, storage, tokens, alice) -> None:
    login = sessions.login(username="alice", password="password123")

    pair = sessions.refresh(login.refresh_token)
    assert tokens.verify_access(pair.access_token) == alice["id"]
    assert pair.refresh_token != login.refresh_token
    assert _stored_refresh_token(storage, alice["id"]) == pair.refresh_token

    with pytest.raises(Unauthorized) as excinfo:
        sessions.refresh(login.refresh_token)
    assert excinfo.value.message == REPLAYED_MESSAGE

    # the rotated-in token still works exactly once
    sessions.refresh(pair.refresh_token)


def test_refresh_without_token(sessions) -> None:
    with pytest.raises(Unauthorized):
        sessions.refresh(None)
    with pytest.raises(Unauthorized):
        sessions.refresh("")


def test_refresh_rejects_access_token_and_garbage(sessions, alice) -> None:
    login = sessions.login(username="alice", password="password123")

    for presented in (login.access_token, "garbage"):
        with pytest.raises(Unauthorized) as excinfo:
            sessions.refresh(presented)
        assert excinfo.value.message == REPLAYED_MESSAGE


def test_refresh_for_vanished_user(sessions, storage, tokens) -> None:
    pair = tokens.issue("5b0c2f8e-3c1a-4d0e-9a57-6f3f2d1c0b9a")

    with pytest.raises(Unauthorized) as excinfo:
        sessions.refresh(pair.refresh_token)
    assert excinfo.value.message == REPLAYED_MESSAGE


def test_refresh_failures_share_one_message(sessions, alice) -> None:
    first = sessions.login(username="alice", password="password123")
    sessions.refresh(first.refresh_token)

    stale = TokenService(
        access_secret="access-secret",
        refresh_secret="refresh-secret",
        access_expires=timedelta(seconds=-10),
        refresh_expires=timedelta(seconds=-10),
    )
    expired = stale.create_refresh_token(alice["id"])
    forged = jwt.encode(
        {"sub": alice["id"], "type": "refresh", "iat": 0, "exp": 4102444800, "iss": "videotube-api"},
        "not-the-refresh-secret",
        algorithm="HS256",
    )

    messages = set()
    for presented in (first.refresh_token, expired, forged):
        with pytest.raises(Unauthorized) as excinfo:
            sessions.refresh(presented)
        messages.add(excinfo.value.message)

    assert messages == {REPLAYED_MESSAGE}


def test_refresh_loses_race_against_concurrent_rotation(sessions, storage, monkeypatch, alice) -> None:
    login = sessions.login(username="alice", password="password123")
    real_issue = sessions._issue

    def issue_after_someone_else_rotated(user):
        # another request swaps the stored token between our check and our write
        storage.get_session().query(User).filter(User.id == user.id).update(
            {User.refresh_token: "rotated-elsewhere"}, synchronize_session=False
        )
        return real_issue(user)

    monkeypatch.setattr(sessions, "_issue", issue_after_someone_else_rotated)

    with pytest.raises(Unauthorized) as excinfo:
        sessions.refresh(login.refresh_token)
    assert excinfo.value.message == REPLAYED_MESSAGE


def test_logout_clears_token_and_is_idempotent(sessions, storage, alice) -> None:
    login = sessions.login(username="alice", password="password123")

    sessions.logout(alice["id"])
    sessions.logout(alice["id"])

    assert _stored_refresh_token(storage, alice["id"]) is None
    with pytest.raises(Unauthorized) as excinfo:
        sessions.refresh(login.refresh_token)
    assert excinfo.value.message == REPLAYED_MESSAGE


def test_change_password(sessions, alice) -> None:
    sessions.change_password(alice["id"], "password123", "new-password-456")

    with pytest.raises(Unauthorized):
        sessions.login(username="alice", password="password123")
    assert sessions.login(username="alice", password="new-password-456").user["id"] == alice["id"]


def test_change_password_keeps_refresh_token(sessions, storage, alice) -> None:
    login = sessions.login(username="alice", password="password123")

    sessions.change_password(alice["id"], "password123", "new-password-456")

    assert _stored_refresh_token(storage, alice["id"]) == login.refresh_token


def test_change_password_rejects_wrong_old_password(sessions, alice) -> None:
    with pytest.raises(Unauthorized) as excinfo:
        sessions.change_password(alice["id"], "wrong-password", "new-password-456")
    assert excinfo.value.message == "Invalid old password"


def test_change_password_validates_input(sessions, alice) -> None:
    with pytest.raises(InvalidInput):
        sessions.change_password(alice["id"], "password123", None)
    with pytest.raises(InvalidInput):
        sessions.change_password(alice["id"], "password123", "short")
