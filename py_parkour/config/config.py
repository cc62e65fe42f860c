from pathlib import Path
from dotenv import dotenv_values
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

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
    """Course generation settings pulled from PARKOUR_* environment variables."""

    # Course anchor
    anchor_x: int = Field(default=0, description="Anchor x of the first segment")
    anchor_y: int = Field(default=100, description="Anchor y; also the centre of the height band")
    anchor_z: int = Field(default=0, description="Anchor z of the first segment")
    height_band: int = Field(default=10, ge=3, description="Allowed drift from the anchor height")

    @property
    def anchor(self) -> tuple:
        """Anchor as an (x, y, z) tuple."""
        return self.anchor_x, self.anchor_y, self.anchor_z

    # Retry limits
    max_landing_attempts: int = Field(default=1000, ge=1, description="Headings tried per landing search")
    max_generation_attempts: int = Field(default=10, ge=1, description="Generators tried per landing")
    max_platform_attempts: int = Field(default=100, ge=1, description="Headings tried per cave/indoor platform")
    max_search_restarts: int = Field(default=50, ge=0, description="Restarts of snake and maze searches")

    # Course Configuration
    lookahead_segments: int = Field(default=10, ge=1, description="Segments kept ahead of the agent")
    default_theme: str = Field(default="overworld", description="Theme used when none is requested")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Logging format (json or console)")

    @field_validator("log_format")
    @classmethod
    def check_log_format(cls, value: str) -> str:
        if value not in ("json", "console"):
            raise ValueError(f"log_format must be 'json' or 'console', got {value!r}")
        return value

    class Config:
        env_prefix = "PARKOUR_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


# Instantiate singleton settings object
settings = Settings()
