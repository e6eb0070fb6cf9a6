"""
Runtime configuration.

Values come from the environment (SELFBUILD_ prefix) or a local .env file.
List-valued settings are given as JSON, e.g. SELFBUILD_CFLAGS='["-Wall", "-O2"]'.
"""
from typing import List, Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SELFBUILD_",
        env_file=".env",
        extra="ignore",
    )

    # Toolchain
    CC: str = "cc"
    CFLAGS: List[str] = []
    SOURCE_EXT: str = ".c"
    OBJECT_EXT: str = ".o"

    # Logging
    LOG_COMMANDS: bool = True
    LOG_LEVEL: str = "INFO"

    # Self-rebuild
    BACKUP_SUFFIX: str = ".old"
    RELAUNCH_MODE: Literal["auto", "exec", "spawn"] = "auto"

    @field_validator("SOURCE_EXT", "OBJECT_EXT", "BACKUP_SUFFIX")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("LOG_LEVEL")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()


settings = Settings()
