"""
Configuration for the workflow engine service.

Values come from environment variables (prefixed with WORKFLOW_) and a local
`.env` file if one exists. Tests can pass `_env_file=None` to ignore it.
"""

from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    log_level: str = Field(default="INFO", description="Root logging level")

    default_max_steps: Optional[int] = Field(
        default=None,
        ge=1,
        description="Step budget applied when a run does not ask for one; unset means unbounded",
    )

    checkpoint_dir: Optional[Path] = Field(
        default=None,
        description="Directory for JSON checkpoint files. Unset keeps checkpoints in memory",
    )

    checkpoint_id_prefix: str = Field(default="cp", description="Prefix of generated checkpoint ids")

    cors_origins: str = Field(
        default="*",
        description="Comma-separated origins allowed to call the API",
    )

    model_config = SettingsConfigDict(
        env_prefix="WORKFLOW_",
        env_file=".env",
        extra="ignore",
    )

    def parsed_cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> EngineSettings:
    return EngineSettings()
