from models.base_model import Base, BaseModel
from sqlalchemy import Column, String, JSON, Text
from sqlalchemy.orm import relationship


class User(BaseModel, Base):
    __tablename__ = "users"
    username = Column(String(64), nullable=False, unique=True, index=True)  # always stored lower-case
    email = Column(String(255), nullable=False, unique=True, index=True)
    full_name = Column(String(255), nullable=False)
    password_hash = Column(String(255), nullable=False)
    avatar = Column(String(1024), nullable=False)
    cover_image = Column(String(1024), nullable=False, default="")
    # the single live refresh token; NULL when logged out
    refresh_token = Column(Text, nullable=True)
    # video ids, most recent first
    watch_history = Column(JSON, nullable=False, default=list)

    videos = relationship("Video", back_populates="owner", passive_deletes=True)
    tweets = relationship("Tweet", back_populates="owner", passive_deletes=True)

    @property
    def password(self):
        raise AttributeError("Password: Write-only field")
