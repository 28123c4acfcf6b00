"""Pytest configuration shared across the suite."""

import os

# must be set before `models` is imported anywhere: the storage singleton
# builds its engine at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["APP_ENV"] = "test"

from datetime import timedelta

import pytest
from argon2 import PasswordHasher

from models import storage as _storage
from services import AccountService, SessionController, SubscriptionGraph, ProfileAggregator, TweetService
from utils.security import PasswordManager, TokenService


@pytest.fixture(autouse=True)
def storage():
    """Fresh schema for every test."""
    _storage.reset()
    yield _storage
    _storage.close()


@pytest.fixture
def passwords() -> PasswordManager:
    return PasswordManager(PasswordHasher(time_cost=1, memory_cost=8, parallelism=1))


@pytest.fixture
def tokens() -> TokenService:
    return TokenService(
        access_secret="access-secret",
        refresh_secret="refresh-secret",
        access_expires=timedelta(minutes=15),
        refresh_expires=timedelta(days=7),
    )


@pytest.fixture
def accounts(storage, passwords) -> AccountService:
    return AccountService(storage, passwords)


@pytest.fixture
def sessions(storage, tokens, passwords) -> SessionController:
    return SessionController(storage, tokens, passwords)


@pytest.fixture
def graph(storage) -> SubscriptionGraph:
    return SubscriptionGraph(storage)


@pytest.fixture
def profiles(storage, graph) -> ProfileAggregator:
    return ProfileAggregator(storage, graph)


@pytest.fixture
def tweets(storage) -> TweetService:
    return TweetService(storage)


@pytest.fixture
def make_user(accounts):
    """Register a user and return its public projection."""
    def _make(username: str, password: str = "password123", **extra) -> dict:
        payload = {
            "username": username,
            "email": f"{username.lower()}@example.com",
            "full_name": f"{username.title()} Example",
            "password": password,
            "avatar": f"https://cdn.example.com/{username.lower()}.png",
        }
        payload.update(extra)
        return accounts.register(payload)

    return _make


@pytest.fixture
def app():
    from api import create_app

    app = create_app("testing")
    yield app


@pytest.fixture
def client(app):
    # tokens travel explicitly in headers/bodies; Set-Cookie is asserted on the response
    return app.test_client(use_cookies=False)
