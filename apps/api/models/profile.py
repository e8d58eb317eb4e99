"""Profile model for publishing identities."""

from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.orm import relationship

from database import Base


class Profile(Base):
    """Publishing channel with its own daily push budget."""

    __tablename__ = "profiles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    channel_name = Column(String, nullable=False)
    channel_link = Column(String, nullable=False)
    daily_push_count = Column(Integer, nullable=False, default=0)
    last_push_reset = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    videos = relationship(
        "Video",
        back_populates="profile",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
