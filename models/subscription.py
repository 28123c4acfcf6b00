"""
Subscription edge: subscriber -> channel.

The pair is unique and a user can not subscribe to themselves. Both rules live
in the table itself so concurrent toggles can not create duplicates.
"""
from sqlalchemy import Column, String, ForeignKey, UniqueConstraint, CheckConstraint, Index
from sqlalchemy.orm import relationship

from models.base_model import BaseModel, Base


class Subscription(BaseModel, Base):
    __tablename__ = "subscriptions"

    subscriber_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    channel_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    subscriber = relationship("User", foreign_keys=[subscriber_id])
    channel = relationship("User", foreign_keys=[channel_id])

    __table_args__ = (
        UniqueConstraint("subscriber_id", "channel_id", name="uq_subscriptions_subscriber_channel"),
        CheckConstraint("subscriber_id <> channel_id", name="ck_subscriptions_no_self"),
        Index("ix_subscriptions_channel_id", "channel_id"),
    )
