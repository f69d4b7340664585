from pathlib import Path
from typing import Literal, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Deploy settings loaded from environment variables.

    Every field can be set as ELPA_DEPLOY_<FIELD> in the environment or in a
    local `.env` file. Command-line flags override these values.
    """

    model_config = SettingsConfigDict(
        env_prefix="ELPA_DEPLOY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Default archive directory when none is given on the command line.
    target_dir: Optional[Path] = None

    # Archive backend: "tar" shells out to GNU tar, "tarfile" builds the
    # archive in-process.
    archiver: Literal["tar", "tarfile"] = "tar"
    tar_command: str = "tar"
    archive_timeout: int = 120

    # Logging
    debug: bool = False
    json_logs: bool = False

    @field_validator("target_dir", mode="before")
    @classmethod
    def expand_target_dir(cls, v: object) -> object:
        if isinstance(v, str):
            if not v.strip():
                return None
            return Path(v).expanduser()
        if isinstance(v, Path):
            return v.expanduser()
        return v

    @field_validator("tar_command")
    @classmethod
    def tar_command_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("tar_command must not be empty")
        return v.strip()

    @field_validator("archive_timeout")
    @classmethod
    def timeout_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("archive_timeout must be positive")
        return v


def get_settings() -> Settings:
    return Settings()
