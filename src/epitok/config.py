"""Configuration loaded from environment variables.

The intranet URL doubles as the autologin prefix, so the credential shape is
derived from it rather than hard-coded where credentials are checked.
"""

import re

from pydantic import Field
from pydantic_settings import BaseSettings


class EpitokConfig(BaseSettings):
    """epitok configuration loaded from environment variables.

    Settings are loaded from environment variables with sensible defaults.
    For local development, create a .env file in the project root.
    """

    # Intranet settings
    intra_url: str = Field(
        default="https://intra.epitech.eu",
        description="Intranet base URL, also the prefix of every autologin link",
    )
    intra_autologin: str = Field(
        default="",
        description="Autologin link used when none is given on the command line",
    )
    intra_timeout_seconds: float = Field(
        default=30.0,
        description="Timeout for a single intranet request",
    )
    intra_max_attempts: int = Field(
        default=1,
        ge=1,
        description="Attempts for read requests on transient failures (1 disables retries)",
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
        "env_prefix": "",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def autologin_pattern(self) -> re.Pattern[str]:
        """Shape of a valid autologin link for the configured intranet."""
        base = re.escape(self.intra_url.rstrip("/"))
        return re.compile(rf"^{base}/auth-[a-z0-9]{{40}}$")


# Singleton pattern
_config: EpitokConfig | None = None


def get_config() -> EpitokConfig:
    """Get the epitok configuration singleton.

    Returns:
        EpitokConfig: Configuration instance
    """
    global _config
    if _config is None:
        _config = EpitokConfig()
    return _config
