"""Video model for scheduled upload jobs."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from database import Base


VIDEO_STATUS_PENDING = "pending"
VIDEO_STATUS_COMPLETED = "completed"
VIDEO_STATUS_MISSED = "missed-schedule"
VIDEO_STATUSES = (VIDEO_STATUS_PENDING, VIDEO_STATUS_COMPLETED, VIDEO_STATUS_MISSED)


class Video(Base):
    """One scheduled upload owned by a profile."""

    __tablename__ = "videos"

    id = Column(Integer, primary_key=True, autoincrement=True)
    profile_id = Column(
        Integer,
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    file_path = Column(String, nullable=True)
    file_name = Column(String, nullable=True)
    file_size = Column(Integer, nullable=True)  # in bytes
    original_file_path = Column(String, nullable=True)
    original_file_size = Column(Integer, nullable=True)  # in bytes
    thumbnail_path = Column(String, nullable=True)
    duration = Column(String, nullable=True)
    schedule_date = Column(DateTime, nullable=False, index=True)  # local wall-clock time
    status = Column(String, nullable=False, default=VIDEO_STATUS_PENDING)
    uploaded_date = Column(DateTime(timezone=True), nullable=True)
    youtube_link = Column(String, nullable=True)
    is_file_uploaded = Column(Boolean, nullable=False, default=False)
    is_placeholder = Column(Boolean, nullable=False, default=False)

    # Relationships
    profile = relationship("Profile", back_populates="videos")
