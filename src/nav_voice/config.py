"""Runtime configuration for nav-voice."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from nav_voice.voice.intents import AFFIRMATIVE_PATTERNS, NEGATIVE_PATTERNS


class Settings(BaseSettings):
    """Environment-driven runtime settings."""

    model_config = SettingsConfigDict(env_prefix="NAV_VOICE_", env_file=".env", extra="ignore")

    app_name: str = "nav-voice"
    log_level: str = "INFO"
    voice_enabled: bool = True
    auto_recognition: bool = False
    recognition_language: str = Field(default="ko-KR", description="BCP-47 tag passed to the recognizer.")
    phrase_time_limit: float = Field(default=5.0, description="Per-utterance capture limit in seconds.")
    listen_timeout: float = Field(default=5.0, description="Seconds to wait for speech before reporting no-speech.")
    affirmative_patterns: list[str] = Field(default_factory=lambda: list(AFFIRMATIVE_PATTERNS))
    negative_patterns: list[str] = Field(default_factory=lambda: list(NEGATIVE_PATTERNS))


settings = Settings()
