from __future__ import annotations

from flask import Blueprint, request, current_app

from services import TweetService
from utils.decorators import jwt_required
from .errors import success_response

bp = Blueprint("tweets", __name__)


def _tweets() -> TweetService:
    return current_app.extensions["tweets"]


@bp.post("")
@jwt_required()
def create_tweet(identity):
    payload = request.get_json(silent=True) or {}
    tweet = _tweets().create(identity.id, payload)
    return success_response(tweet, "Tweet created successfully", 201)


@bp.get("/user/<identifier>")
@jwt_required()
def user_tweets(identifier: str, identity):
    """Paginated with ?page=&limit= (defaults 1 and 5, limit at most 100)."""
    result = _tweets().list_for_user(
        identifier, request.args.get("page"), request.args.get("limit")
    )
    total = result["pagination"]["total_tweets"]
    return success_response(result, f"{total} tweets found for user {result['user_info']['username']}")


@bp.patch("/<tweet_id>")
@jwt_required()
def update_tweet(tweet_id: str, identity):
    payload = request.get_json(silent=True) or {}
    tweet = _tweets().update(identity.id, tweet_id, payload)
    return success_response(tweet, "Tweet updated successfully")


@bp.delete("/<tweet_id>")
@jwt_required()
def delete_tweet(tweet_id: str, identity):
    deleted = _tweets().delete(identity.id, tweet_id)
    return success_response(deleted, "Tweet deleted successfully")
