from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from lifehooks.types import CleanupFailureMode


class HooksSettings(BaseSettings):
    """
    Library configuration loaded from multiple sources.

    Priority (highest to lowest):
    1. Init arguments
    2. Environment variables (LIFEHOOKS_ prefix)
    3. .env file
    4. Default values
    """

    model_config = SettingsConfigDict(
        env_prefix="LIFEHOOKS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Policy applied by runners when a cleanup handler raises
    CLEANUP_FAILURE_MODE: CleanupFailureMode = CleanupFailureMode.ABORT

    # Library logs are disabled unless explicitly turned on
    LOG_ENABLED: bool = False

    @field_validator("CLEANUP_FAILURE_MODE", mode="before")
    @classmethod
    def normalize_mode(cls, v):
        """Accept the failure mode in any letter case."""
        if isinstance(v, str):
            return v.strip().lower()
        return v


config = HooksSettings()
