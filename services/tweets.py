"""
Tweets: short text posts owned by a user.
"""
from __future__ import annotations

import logging
import math
from typing import Optional

from sqlalchemy.orm import joinedload

from models.tweet import Tweet
from models.schemas.common import load_or_raise
from models.schemas.tweet import TweetContentSchema, TweetOutSchema
from models.schemas.user import UserCondensedSchema
from services.accounts import find_by_identifier
from utils.errors import Forbidden, InternalError, InvalidInput, NotFound

logger = logging.getLogger(__name__)

MAX_LIMIT = 100
DEFAULT_LIMIT = 5

tweet_content_schema = TweetContentSchema()
tweet_out_schema = TweetOutSchema()
tweets_out_schema = TweetOutSchema(many=True)
condensed_schema = UserCondensedSchema()


def parse_pagination(page, limit):
    try:
        page = int(page) if page not in (None, "") else 1
        limit = int(limit) if limit not in (None, "") else DEFAULT_LIMIT
    except (TypeError, ValueError):
        raise InvalidInput("Invalid pagination parameters")
    if page < 1 or limit < 1 or limit > MAX_LIMIT:
        raise InvalidInput("Invalid pagination parameters")
    return page, limit


class TweetService:
    def __init__(self, storage):
        self.storage = storage

    def _owned(self, identity_id: str, tweet_id: str) -> Tweet:
        tweet = self.storage.get(Tweet, tweet_id)
        if not tweet:
            raise NotFound("Tweet not found.")
        if tweet.owner_id != identity_id:
            raise Forbidden("You are not authorized to modify this tweet.")
        return tweet

    def create(self, owner_id: str, payload: dict) -> dict:
        data = load_or_raise(tweet_content_schema, payload)
        tweet = Tweet(content=data["content"], owner_id=owner_id)
        self.storage.new(tweet)
        self.storage.save()
        return tweet_out_schema.dump(tweet)

    def list_for_user(self, identifier: str, page=None, limit=None) -> dict:
        session = self.storage.get_session()
        user = find_by_identifier(session, identifier)
        if not user:
            raise NotFound("User not found")
        page, limit = parse_pagination(page, limit)

        query = session.query(Tweet).filter(Tweet.owner_id == user.id)
        total = query.count()
        rows = (
            query.options(joinedload(Tweet.owner))
            .order_by(Tweet.created_at.desc(), Tweet.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        total_pages = math.ceil(total / limit) if total else 0
        return {
            "tweets": tweets_out_schema.dump(rows),
            "user_info": condensed_schema.dump(user),
            "pagination": {
                "current_page": page,
                "total_pages": total_pages,
                "total_tweets": total,
                "tweets_per_page": limit,
                "has_next_page": page < total_pages,
                "has_prev_page": page > 1,
            },
        }

    def update(self, identity_id: str, tweet_id: str, payload: dict) -> dict:
        data = load_or_raise(tweet_content_schema, payload)
        tweet = self._owned(identity_id, tweet_id)
        tweet.content = data["content"]
        self.storage.new(tweet)
        self.storage.save()
        return tweet_out_schema.dump(tweet)

    def delete(self, identity_id: str, tweet_id: Optional[str]) -> dict:
        tweet = self._owned(identity_id, tweet_id)
        session = self.storage.get_session()
        deleted = (
            session.query(Tweet)
            .filter(Tweet.id == tweet.id, Tweet.owner_id == identity_id)
            .delete(synchronize_session="fetch")
        )
        if deleted != 1:
            self.storage.rollback()
            raise InternalError("Tweet deletion failed")
        self.storage.save()
        logger.info("User %s deleted tweet %s", identity_id, tweet_id)
        return {"id": tweet_id}
