from typing import ClassVar
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path


def _split_comma_list(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    app_name: ClassVar[str] = "StudyPace"
    version: ClassVar[str] = "0.3.0"

    database_url: str = "sqlite:///./storage/database/studypace.db"

    # --- ALLOWED ORIGINS ---
    # Comma-separated list of domains (e.g., "http://localhost:5173,http://localhost:3000")
    allowed_origins_raw: str = Field(default="*", alias="ALLOWED_ORIGINS")

    @property
    def allowed_origins(self) -> list[str]:
        return _split_comma_list(self.allowed_origins_raw)

    # --- SECURITY SETTINGS ---
    # Tokens are issued by the auth service; we only verify them.
    # Must match the signing key of the issuer.
    secret_key: str = "CHANGE_THIS_TO_A_SECURE_RANDOM_KEY"
    algorithm: str = "HS256"

    # Storage paths
    log_dir: Path = Path("storage/logs")
    log_level: str = "INFO"

    # --- READING ENGINE ---
    # Fallback per-page time when a user has no history yet
    default_page_seconds: float = 120.0

    # Completion date projection
    default_daily_study_seconds: int = 3600
    daily_study_lookback_days: int = 30

    # Blending of observed pace into page estimates.
    # remaining *= weight * ratio + (1 - weight), only when min < ratio < max
    estimate_blend_weight: float = 0.7
    speed_ratio_min: float = 0.1
    speed_ratio_max: float = 10.0

    # Per-difficulty time multipliers (1 = easiest, 5 = hardest)
    difficulty_multipliers: dict[int, float] = {1: 0.8, 2: 0.9, 3: 1.0, 4: 1.2, 5: 1.4}

    # Focus thresholds used by the achievement metrics
    high_focus_threshold: float = 0.9
    ultra_focus_threshold: float = 0.95

    # Sprint sizing default (30 minutes)
    preferred_session_seconds: int = 1800

    # Rough words-per-page figure for the WPM estimate
    words_per_page: int = 250

    model_config = SettingsConfigDict(env_file=".env",
                                      extra="ignore",
                                      env_ignore_empty=True,
                                      case_sensitive=False,
                                      env_nested_delimiter=None
                                      )


settings = Settings()
