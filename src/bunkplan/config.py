"""Attendance engine configuration loaded from environment variables.

The engine functions themselves take explicit parameters; only the
convenience layers (store, today view) fall back to these settings.
"""

from pydantic import Field
from pydantic_settings import BaseSettings


class BunkPlanConfig(BaseSettings):
    """Engine configuration loaded from environment variables.

    Settings are loaded from BUNKPLAN_* environment variables with sensible
    defaults. For local development, create a .env file in the project root.
    """

    # Attendance policy
    min_attendance_percent: float = Field(
        default=75.0,
        gt=0,
        le=100,
        description="Default minimum attendance percent for new semesters",
    )
    warning_safe_skips: int = Field(
        default=2,
        ge=0,
        description="Risk level is WARNING when the tightest subject has at most this many safe skips",
    )

    # Logging
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format (for production)",
    )
    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    model_config = {
        "env_prefix": "BUNKPLAN_",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


# Singleton pattern
_config: BunkPlanConfig | None = None


def get_config() -> BunkPlanConfig:
    """Get the engine configuration singleton.

    Returns:
        BunkPlanConfig: Engine configuration instance
    """
    global _config
    if _config is None:
        _config = BunkPlanConfig()
    return _config


def reset_config() -> None:
    """Drop the cached configuration so the next get_config() re-reads the environment."""
    global _config
    _config = None
