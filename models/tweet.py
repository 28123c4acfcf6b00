from sqlalchemy import Column, String, ForeignKey, CheckConstraint, Index
from sqlalchemy.orm import relationship

from models.base_model import BaseModel, Base

MAX_TWEET_LENGTH = 300


class Tweet(BaseModel, Base):
    __tablename__ = "tweets"

    content = Column(String(MAX_TWEET_LENGTH), nullable=False)
    owner_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    owner = relationship("User", back_populates="tweets")

    __table_args__ = (
        CheckConstraint("length(content) >= 1", name="ck_tweets_content_not_empty"),
        Index("ix_tweets_owner_created", "owner_id", "created_at"),
    )
