from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

AlgorithmName = Literal[
    "bubble",
    "selection",
    "insertion",
    "quick",
    "merge",
    "heap",
    "radix",
    "counting",
]


class AppSettings(BaseSettings):
    """
    Global application-level configuration.

    This class is the single source of truth for:
    - logging behavior
    - step pacing defaults for sort runs
    """

    model_config = SettingsConfigDict(
        env_prefix="SORTLAB_",
        env_file=".env",
        extra="ignore",
    )

    # ---- Logging -----------------------------------------------------

    log_level: str = "INFO"

    # ---- Step pacing -------------------------------------------------

    # Pause applied after every snapshot emission
    default_delay_ms: float = Field(
        default=500.0,
        ge=0,
        description="Default inter-step delay in milliseconds",
    )

    # Upper bound on a single wait while paused or waiting for a step release
    pause_poll_interval_ms: float = Field(
        default=100.0,
        gt=0,
        description="Wake-up interval while a run is paused",
    )

    default_algorithm: AlgorithmName = Field(
        default="bubble",
        description="Algorithm used when the embedder does not pick one",
    )


# Singleton settings object
settings = AppSettings()
