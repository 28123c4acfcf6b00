"""
Subscriptions blueprint (mounted under /api/v1/subscriptions), all routes
require an access token:
- POST /c/<channel_id>       toggle; channel_id may be an id or a username
- GET  /c/<channel_id>       subscribers of a channel
- GET  /u/<subscriber_id>    channels a user subscribes to
"""
from __future__ import annotations

from flask import Blueprint, current_app

from services import SubscriptionGraph
from services.subscriptions import SUBSCRIBED
from utils.decorators import jwt_required
from .errors import success_response

bp = Blueprint("subscriptions", __name__)


def _graph() -> SubscriptionGraph:
    return current_app.extensions["subscriptions"]


@bp.post("/c/<channel_id>")
@jwt_required()
def toggle_subscription(channel_id: str, identity):
    # channel_id may also be a username here
    result = _graph().toggle(identity.id, channel_id)
    message = (
        "Channel subscribed successfully" if result.action == SUBSCRIBED
        else "Channel unsubscribed successfully"
    )
    return success_response({"action": result.action, "subscription": result.edge}, message)


@bp.get("/c/<channel_id>")
@jwt_required()
def channel_subscribers(channel_id: str, identity):
    subscribers = _graph().list_subscribers(channel_id)
    return success_response(subscribers, "Subscribers fetched successfully")


@bp.get("/u/<subscriber_id>")
@jwt_required()
def subscribed_channels(subscriber_id: str, identity):
    channels = _graph().list_subscriptions(subscriber_id)
    return success_response(channels, "Subscribed channels fetched successfully")
