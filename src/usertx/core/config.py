import logging
from pathlib import Path
from typing import Annotated, Literal, Optional, Union

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

log_format = logging.Formatter("%(asctime)s : %(levelname)s - %(message)s")

logger = logging.getLogger(__name__)

# Load .env file from the working directory when present
env_path = Path("./.env")
if env_path.exists():
    load_dotenv(dotenv_path=env_path)
    logger.info(f"Loaded environment from {env_path}")


class Settings(BaseSettings):
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "usertx"

    # Database Configuration
    DATABASE_URL: str = Field(
        default="sqlite+aiosqlite:///./usertx.db",
        description="SQLAlchemy async database URL"
    )
    DB_ECHO: bool = Field(default=False, description="Echo every SQL statement to the log")
    BACKEND: Literal["orm", "core", "driver"] = Field(
        default="orm",
        description="Storage backend used by the user repository"
    )
    STATEMENT_TIMEOUT: Optional[float] = Field(
        default=None,
        gt=0,
        description="Per-operation deadline in seconds"
    )
    ASSUME_CONTIGUOUS_IDS: bool = Field(
        default=False,
        description="Recover bulk insert ids from lastrowid/rowcount when RETURNING is unavailable"
    )
    SCHEMA_RESET: bool = Field(
        default=False,
        description="Drop and recreate every table on bootstrap (destroys data)"
    )

    # Demo Configuration
    DEMO_TIMEOUT: float = 2.0

    # Server Configuration
    SERVER_PORT: int = 8001
    BACKEND_CORS_ORIGINS: Annotated[list[str], NoDecode] = ["http://localhost:3000"]

    LOG_LEVEL: str = "INFO"

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: Union[str, list[str]]) -> list[str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",")]
        elif isinstance(v, list):
            return v
        elif isinstance(v, str):
            return [i.strip().strip("\"'") for i in v.strip("[]").split(",") if i.strip()]
        raise ValueError(v)

    model_config = SettingsConfigDict(extra="ignore")


def configure_logging(settings: Settings) -> None:
    """Configure the root logger once for the process."""
    root_logger = logging.getLogger()
    root_logger.setLevel(settings.LOG_LEVEL.upper())
    if not root_logger.handlers:
        # standard stream handler
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(log_format)
        root_logger.addHandler(stream_handler)


settings = Settings()
