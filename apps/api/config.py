"""
Application configuration using Pydantic Settings.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Literal


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App
    APP_NAME: str = "YouTube Schedule Manager"
    APP_VERSION: str = "1.0.0"
    # android/ios/desktop run the embedded store from disk; web is browser-hosted
    APP_PLATFORM: Literal["android", "ios", "desktop", "web"] = "android"

    # Local storage
    DATA_DIR: str = "./planner_data"
    DATABASE_NAME: str = "youtube_planner.db"
    DATABASE_URL: str = ""  # Overrides the file database when set
    DATABASE_ECHO: bool = False
    FILES_DIR_NAME: str = "files"
    PREFERENCES_FILE_NAME: str = "preferences.json"

    # Remote API (online mode)
    REMOTE_API_URL: str = "http://localhost:5000"
    REMOTE_API_TIMEOUT_SECONDS: float = 15.0

    # API
    API_HOST: str = "127.0.0.1"
    API_PORT: int = 8000
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "capacitor://localhost"]

    # First-run seeding
    DEFAULT_PROFILE_NAME: str = "My YouTube Channel"
    DEFAULT_PROFILE_CHANNEL_NAME: str = "@mychannel"
    DEFAULT_PROFILE_CHANNEL_LINK: str = "https://youtube.com/@mychannel"

    # Push limits
    DEFAULT_DAILY_PUSH_LIMIT: int = 10
    PUSH_RESET_WINDOW_HOURS: int = 24

    # Media
    MAX_VIDEO_FILE_SIZE: int = 2 * 1024 * 1024 * 1024
    USE_PLACEHOLDER_FILES: bool = True
    MAX_PLACEHOLDER_SIZE: int = 5 * 1024 * 1024
    SUPPORTED_VIDEO_FORMATS: List[str] = ["mp4", "mov", "avi", "webm", "mkv"]
    ENABLE_FFMPEG_THUMBNAILS: bool = True
    THUMBNAIL_OFFSET_SECONDS: float = 1.0
    FILE_OPENER_COMMAND: str = ""  # e.g. "xdg-open"; empty picks the platform default

    # Lifecycle
    CLOSE_STORE_ON_BACKGROUND: bool = False

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True)


settings = Settings()


def validate_runtime_settings() -> None:
    """Fail fast when limits or storage settings cannot work."""
    if int(settings.PUSH_RESET_WINDOW_HOURS) <= 0:
        raise ValueError("PUSH_RESET_WINDOW_HOURS must be greater than 0.")
    if int(settings.DEFAULT_DAILY_PUSH_LIMIT) <= 0:
        raise ValueError("DEFAULT_DAILY_PUSH_LIMIT must be greater than 0.")
    if int(settings.MAX_PLACEHOLDER_SIZE) > int(settings.MAX_VIDEO_FILE_SIZE):
        raise ValueError("MAX_PLACEHOLDER_SIZE cannot exceed MAX_VIDEO_FILE_SIZE.")
    if not (settings.DATA_DIR or "").strip():
        raise ValueError("DATA_DIR is not configured.")
