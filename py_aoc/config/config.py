from pathlib import Path
from dotenv import dotenv_values
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

import os

# Explicitly load .env for local/dev environments only if values are missing from the environment
BASE_DIR = Path(__file__).resolve().parent.parent.parent
env_file = BASE_DIR / ".env"

if env_file.exists():
    file_env = dotenv_values(env_file)
    missing_keys = {k: v for k, v in file_env.items() if k not in os.environ and v is not None}
    for k, v in missing_keys.items():
        os.environ[k] = v


class Settings(BaseSettings):
    """Application settings pulled from AOC_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="AOC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # API Configuration
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")
    debug: bool = Field(default=False, description="Enable debug mode")
    allowed_origins: str = Field(default="*", description="Comma separated CORS allowed origins")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Logging format (json or console)")

    # Game Generation Configuration
    default_map_width: int = Field(default=160, description="Default map width in tiles")
    default_map_height: int = Field(default=96, description="Default map height in tiles")
    max_map_width: int = Field(default=1024, description="Max allowed map width")
    max_map_height: int = Field(default=1024, description="Max allowed map height")
    default_factions_count: int = Field(default=8, description="Default number of factions")
    default_region_count: int = Field(default=80, description="Default number of regions")
    initial_cities: int = Field(default=10, description="Neutral towns placed at start")

    # Simulation Configuration
    max_turns_per_request: int = Field(default=500, description="Max turns advanced by one API call")

    @property
    def cors_origins(self) -> list:
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]


# Instantiate singleton settings object
settings = Settings()
