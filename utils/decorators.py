from __future__ import annotations
from functools import wraps
from flask import request, current_app
from models import storage
from models.user import User
from services.identity import AuthenticatedIdentity
from utils.errors import Unauthorized

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"


def _presented_access_token() -> str | None:
    auth = request.headers.get("Authorization", "")
    if auth.startswith("Bearer "):
        return auth.split(" ", 1)[1].strip() or None
    return request.cookies.get(ACCESS_COOKIE) or None


def jwt_required(optional: bool = False):
    """
    Verify the access token (Bearer header or accessToken cookie) and pass the
    caller to the view as ``identity=AuthenticatedIdentity(...)``.

    With optional=True an anonymous request gets ``identity=None``; a token
    that is present but invalid is still rejected.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            token = _presented_access_token()
            if not token:
                if optional:
                    return fn(*args, identity=None, **kwargs)
                raise Unauthorized("Unauthorized request")

            tokens = current_app.extensions["token_service"]
            user_id = tokens.verify_access(token)

            user = storage.get(User, user_id)
            if not user:
                raise Unauthorized("Invalid access token")
            identity = AuthenticatedIdentity(id=user.id, username=user.username)
            return fn(*args, identity=identity, **kwargs)

        return wrapper

    return decorator
