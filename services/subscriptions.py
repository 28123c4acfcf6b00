"""
Subscription graph: directed subscriber -> channel edges between users.

toggle() is check-then-act; the UNIQUE(subscriber_id, channel_id) constraint
on the table is what actually keeps the pair count at 0 or 1 when two calls
race.
"""
from __future__ import annotations

import logging
from typing import List, NamedTuple, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from models.base_model import is_valid_id
from models.subscription import Subscription
from models.user import User
from models.schemas.user import UserCondensedSchema
from services.accounts import find_by_identifier
from utils.errors import InternalError, InvalidInput, NotFound

logger = logging.getLogger(__name__)

SUBSCRIBED = "subscribed"
UNSUBSCRIBED = "unsubscribed"

condensed_many = UserCondensedSchema(many=True)


class ToggleResult(NamedTuple):
    action: str
    edge: dict


def _edge_dict(edge: Subscription) -> dict:
    return {
        "id": edge.id,
        "subscriber_id": edge.subscriber_id,
        "channel_id": edge.channel_id,
    }


class SubscriptionGraph:
    def __init__(self, storage):
        self.storage = storage

    def _find_edge(self, subscriber_id: str, channel_id: str) -> Optional[Subscription]:
        session = self.storage.get_session()
        return (
            session.query(Subscription)
            .filter(Subscription.subscriber_id == subscriber_id, Subscription.channel_id == channel_id)
            .first()
        )

    def toggle(self, viewer_id: str, channel_identifier: str) -> ToggleResult:
        session = self.storage.get_session()
        channel = find_by_identifier(session, channel_identifier)
        if not channel:
            raise NotFound("Channel not found")

        if channel.id == viewer_id:
            raise InvalidInput("Cannot subscribe to yourself")

        existing = self._find_edge(viewer_id, channel.id)
        if existing:
            edge = _edge_dict(existing)
            deleted = (
                session.query(Subscription)
                .filter(Subscription.id == existing.id)
                .delete(synchronize_session="fetch")
            )
            if deleted == 0:
                self.storage.rollback()
                raise InternalError("Unable to unsubscribe")
            self.storage.save()
            logger.info("User %s unsubscribed from %s", viewer_id, channel.id)
            return ToggleResult(UNSUBSCRIBED, edge)

        created = Subscription(subscriber_id=viewer_id, channel_id=channel.id)
        self.storage.new(created)
        try:
            self.storage.save()
        except IntegrityError:
            # a concurrent toggle inserted the same pair first
            winner = self._find_edge(viewer_id, channel.id)
            if winner is None:
                raise
            logger.info("Concurrent subscribe of %s to %s already stored", viewer_id, channel.id)
            return ToggleResult(SUBSCRIBED, _edge_dict(winner))

        logger.info("User %s subscribed to %s", viewer_id, channel.id)
        return ToggleResult(SUBSCRIBED, _edge_dict(created))

    def list_subscribers(self, channel_id: str) -> List[dict]:
        if not is_valid_id(channel_id):
            raise InvalidInput("Invalid channel id")
        session = self.storage.get_session()
        rows = (
            session.query(User)
            .join(Subscription, Subscription.subscriber_id == User.id)
            .filter(Subscription.channel_id == channel_id)
            .all()
        )
        return condensed_many.dump(rows)

    def list_subscriptions(self, subscriber_id: str) -> List[dict]:
        if not is_valid_id(subscriber_id):
            raise InvalidInput("Invalid subscriber id")
        session = self.storage.get_session()
        rows = (
            session.query(User)
            .join(Subscription, Subscription.channel_id == User.id)
            .filter(Subscription.subscriber_id == subscriber_id)
            .all()
        )
        return condensed_many.dump(rows)

    def subscriber_count(self, channel_id: str) -> int:
        session = self.storage.get_session()
        return (
            session.query(func.count(Subscription.id))
            .filter(Subscription.channel_id == channel_id)
            .scalar()
        ) or 0

    def subscribed_to_count(self, subscriber_id: str) -> int:
        session = self.storage.get_session()
        return (
            session.query(func.count(Subscription.id))
            .filter(Subscription.subscriber_id == subscriber_id)
            .scalar()
        ) or 0

    def is_subscribed(self, subscriber_id: Optional[str], channel_id: str) -> bool:
        if not subscriber_id:
            return False
        session = self.storage.get_session()
        query = session.query(Subscription.id).filter(
            Subscription.subscriber_id == subscriber_id, Subscription.channel_id == channel_id
        )
        return bool(session.query(query.exists()).scalar())
