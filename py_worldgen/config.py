"""Configuration management."""

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings pulled from environment variables."""

    # API
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")

    # Generation
    max_cells: int = Field(
        default=60000, description="Maximum map partition size accepted by the API"
    )
    max_maps: int = Field(
        default=8, description="Generated maps kept in memory by the API"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    log_format: str = Field(default="json", description="Log format (json or console)")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
