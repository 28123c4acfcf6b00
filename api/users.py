"""
Users blueprint (mounted under /api/v1/users):
- POST  /register
- POST  /login
- POST  /logout
- POST  /refresh-token
- POST  /change-password
- GET   /current-user
- PATCH /update-account
- PATCH /update-avatar
- PATCH /update-cover-image
- GET   /c/<username>
- GET   /history
- POST  /history/<video_id>

Tokens are returned in the body and also set as httpOnly cookies so both
browser and non-cookie (mobile) clients work.
"""
from __future__ import annotations

from flask import Blueprint, request, current_app

from services import AccountService, ProfileAggregator, SessionController
from utils.decorators import jwt_required, ACCESS_COOKIE, REFRESH_COOKIE
from utils.security import TokenPair
from .errors import success_response

bp = Blueprint("users", __name__)


def _accounts() -> AccountService:
    return current_app.extensions["accounts"]


def _sessions() -> SessionController:
    return current_app.extensions["sessions"]


def _profiles() -> ProfileAggregator:
    return current_app.extensions["profiles"]


def _cookie_options() -> dict:
    return {"httponly": True, "secure": current_app.config.get("COOKIE_SECURE", True)}


def set_session_cookies(response, pair: TokenPair):
    options = _cookie_options()
    response.set_cookie(ACCESS_COOKIE, pair.access_token,
                        max_age=current_app.config["ACCESS_TOKEN_EXPIRES"], **options)
    response.set_cookie(REFRESH_COOKIE, pair.refresh_token,
                        max_age=current_app.config["REFRESH_TOKEN_EXPIRES"], **options)
    return response


def clear_session_cookies(response):
    options = _cookie_options()
    response.delete_cookie(ACCESS_COOKIE, **options)
    response.delete_cookie(REFRESH_COOKIE, **options)
    return response


@bp.post("/register")
def register():
    """Register a new user. Media fields are URLs of already-uploaded files."""
    payload = request.get_json(silent=True) or {}
    user = _accounts().register(payload)
    return success_response(user, "User registered successfully.", 201)


@bp.post("/login")
def login():
    """Login with username or email plus password."""
    payload = request.get_json(silent=True) or {}
    result = _sessions().login(
        username=payload.get("username"),
        email=payload.get("email"),
        password=payload.get("password"),
    )
    response, status = success_response(
        {
            "user": result.user,
            "access_token": result.access_token,
            "refresh_token": result.refresh_token,
        },
        "User logged in successfully.",
    )
    set_session_cookies(response, TokenPair(result.access_token, result.refresh_token))
    return response, status


@bp.post("/logout")
@jwt_required()
def logout(identity):
    _sessions().logout(identity.id)
    response, status = success_response({}, "User logged out")
    clear_session_cookies(response)
    return response, status


@bp.post("/refresh-token")
def refresh_token():
    """Rotate the refresh token (cookie first, then body field refresh_token)."""
    payload = request.get_json(silent=True) or {}
    presented = request.cookies.get(REFRESH_COOKIE) or payload.get("refresh_token")
    pair = _sessions().refresh(presented)
    response, status = success_response(
        {"access_token": pair.access_token, "refresh_token": pair.refresh_token},
        "Access token refreshed",
    )
    set_session_cookies(response, pair)
    return response, status


@bp.post("/change-password")
@jwt_required()
def change_password(identity):
    payload = request.get_json(silent=True) or {}
    _sessions().change_password(identity.id, payload.get("old_password"), payload.get("new_password"))
    return success_response({}, "Password changed successfully")


@bp.get("/current-user")
@jwt_required()
def current_user(identity):
    return success_response(_accounts().current_user(identity.id), "User fetched successfully")


@bp.patch("/update-account")
@jwt_required()
def update_account(identity):
    payload = request.get_json(silent=True) or {}
    user = _accounts().update_account(identity.id, payload)
    return success_response(user, "Account details updated successfully")


@bp.patch("/update-avatar")
@jwt_required()
def update_avatar(identity):
    payload = request.get_json(silent=True) or {}
    user = _accounts().update_avatar(identity.id, payload.get("avatar"))
    return success_response(user, "Avatar image updated successfully")


@bp.patch("/update-cover-image")
@jwt_required()
def update_cover_image(identity):
    payload = request.get_json(silent=True) or {}
    user = _accounts().update_cover_image(identity.id, payload.get("cover_image"))
    return success_response(user, "Cover image updated successfully")


@bp.get("/c/<username>")
@jwt_required(optional=True)
def channel_profile(username: str, identity):
    viewer_id = identity.id if identity else None
    channel = _profiles().channel_profile(username, viewer_id)
    return success_response(channel, "User channel fetched successfully")


@bp.get("/history")
@jwt_required()
def watch_history(identity):
    history = _profiles().watch_history(identity.id)
    return success_response(history, "Watch history fetched successfully")


@bp.post("/history/<video_id>")
@jwt_required()
def record_view(video_id: str, identity):
    """Record that the caller watched a video."""
    _profiles().record_view(identity.id, video_id)
    history = _profiles().watch_history(identity.id)
    return success_response(history, "Watch history updated successfully")
