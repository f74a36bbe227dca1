"""
Runtime configuration read from environment variables.

Uses Pydantic Settings; every variable carries the ``EXCEL_UPLOADER_`` prefix
(``EXCEL_UPLOADER_MAX_ROWS``, ``EXCEL_UPLOADER_CORS_ORIGINS`` ...). Unset
variables fall back to the defaults below.
"""
import os
from typing import Annotated, List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
ENV_PREFIX = "EXCEL_UPLOADER_"


class Settings(BaseSettings):
    """
    Application settings.

    Attributes:
        database_url: SQLAlchemy URL of the record store
        log_dir: Directory receiving the daily log file
        log_level: Root logging level name
        max_rows: Maximum number of data rows accepted per upload
        export_file_name: File name offered for the records export
        cors_origins: Origins allowed by the CORS middleware, comma separated in the environment
    """
    # Storage
    database_url: str = "sqlite:///" + os.path.join(BASE_DIR, "records.db")

    # Logging
    log_dir: str = os.path.join(BASE_DIR, "logs")
    log_level: str = "INFO"

    # Upload and export
    max_rows: int = Field(10000, gt=0)
    export_file_name: str = "User_Data.xlsx"

    # HTTP
    cors_origins: Annotated[List[str], NoDecode] = ["*"]

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        extra="ignore",
        frozen=True,
    )

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, value):
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value


settings = Settings()
