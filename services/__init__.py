"""
Application services. Each one is constructed with its collaborators
(storage, token service, password manager) and works on explicit identity ids;
none of them touches Flask.
"""
from services.identity import AuthenticatedIdentity
from services.accounts import AccountService
from services.sessions import SessionController, LoginResult
from services.subscriptions import SubscriptionGraph, ToggleResult
from services.profiles import ProfileAggregator
from services.tweets import TweetService

__all__ = [
    "AuthenticatedIdentity",
    "AccountService",
    "SessionController",
    "LoginResult",
    "SubscriptionGraph",
    "ToggleResult",
    "ProfileAggregator",
    "TweetService",
]
