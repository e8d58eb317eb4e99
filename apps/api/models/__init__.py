"""Models package."""

from .profile import Profile
from .video import Video
