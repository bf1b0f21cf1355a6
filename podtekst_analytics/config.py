"""Application configuration and environment settings"""
from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = Field("sqlite:///./podtekst.db", description="SQLAlchemy URL of the analysis store")
    DB_PASSWORD: Optional[str] = Field(default=None, description="Password injected into DATABASE_URL when it has none")

    # Directories
    INPUT_DIR: str = Field("/input", description="Directory containing the normalized conversation JSON")
    OUTPUT_DIR: str = Field("/output", description="Directory for results.json")

    # Aggregation
    TIMEZONE: str = Field("UTC", description="IANA zone used for hour/day bucketing (heatmap, late night)")
    SESSION_GAP_HOURS: float = Field(6.0, description="Silence that ends one session and starts the next")
    LATE_NIGHT_START_HOUR: int = Field(22, description="First hour counted as late night")
    LATE_NIGHT_END_HOUR: int = Field(4, description="First hour no longer counted as late night")

    # Group chat award thresholds
    AWARD_MIN_PARTICIPANTS: int = Field(3, description="Awards are only built for group chats of this size")
    AWARD_SIMP_MIN_REACTIONS: int = Field(5)  # reactions given must exceed this
    AWARD_EMOJI_MIN_COUNT: int = Field(20)  # emoji sent must exceed this
    AWARD_NIGHT_OWL_MIN_MESSAGES: int = Field(10)  # late night messages must exceed this
    AWARD_GHOST_MIN_DAYS: int = Field(1)  # full days of silence, inclusive

    # Badge thresholds
    BADGE_EMOJI_MONARCH_MIN_COUNT: int = Field(20)
    BADGE_MENTION_MAGNET_MIN: int = Field(5)
    BADGE_REPLY_KING_MIN: int = Field(10)
    BADGE_EDIT_LORD_MIN: int = Field(5)

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=True,
        extra='ignore'
    )

settings = Settings()
