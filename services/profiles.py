"""
Derived, per-request views: channel profile and watch history.

Nothing here is cached; each call reads the current edges and videos.
"""
from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.orm import joinedload
from sqlalchemy.orm.attributes import flag_modified

from models.user import User
from models.video import Video
from models.schemas.user import ChannelProfileSchema
from models.schemas.video import VideoOutSchema
from services.subscriptions import SubscriptionGraph
from utils.errors import InvalidInput, NotFound

logger = logging.getLogger(__name__)

channel_profile_schema = ChannelProfileSchema()
videos_out_schema = VideoOutSchema(many=True)


class ProfileAggregator:
    def __init__(self, storage, graph: Optional[SubscriptionGraph] = None):
        self.storage = storage
        self.graph = graph or SubscriptionGraph(storage)

    def channel_profile(self, username: Optional[str], viewer_id: Optional[str] = None) -> dict:
        if not username or not username.strip():
            raise InvalidInput("Username is missing")

        session = self.storage.get_session()
        channel = session.query(User).filter(User.username == username.strip().lower()).first()
        if not channel:
            raise NotFound("Channel does not exist")

        return channel_profile_schema.dump(
            {
                "id": channel.id,
                "username": channel.username,
                "email": channel.email,
                "full_name": channel.full_name,
                "avatar": channel.avatar,
                "cover_image": channel.cover_image,
                "subscribers_count": self.graph.subscriber_count(channel.id),
                "channels_subscribed_to_count": self.graph.subscribed_to_count(channel.id),
                "is_subscribed": self.graph.is_subscribed(viewer_id, channel.id),
            }
        )

    def watch_history(self, viewer_id: str) -> List[dict]:
        """
        Videos from the viewer's history in stored order, each with its owner.

        One IN query joined to the owners; the result is re-ordered to match
        the stored id list. Ids whose video is gone are skipped.
        """
        viewer = self.storage.get(User, viewer_id)
        if not viewer:
            raise NotFound("User not found")

        ids = list(viewer.watch_history or [])
        if not ids:
            return []

        session = self.storage.get_session()
        videos = (
            session.query(Video)
            .options(joinedload(Video.owner))
            .filter(Video.id.in_(ids))
            .all()
        )
        by_id = {video.id: video for video in videos}
        ordered = [by_id[video_id] for video_id in ids if video_id in by_id]
        return videos_out_schema.dump(ordered)

    def record_view(self, viewer_id: str, video_id: str) -> None:
        """Move video_id to the front of the viewer's history and bump its view count."""
        viewer = self.storage.get(User, viewer_id)
        if not viewer:
            raise NotFound("User not found")
        video = self.storage.get(Video, video_id)
        if not video:
            raise NotFound("Video not found")

        history = [v for v in (viewer.watch_history or []) if v != video_id]
        history.insert(0, video_id)
        viewer.watch_history = history
        flag_modified(viewer, "watch_history")

        video.views = (video.views or 0) + 1
        self.storage.new(viewer)
        self.storage.new(video)
        self.storage.save()
        logger.debug("User %s watched video %s", viewer_id, video_id)
