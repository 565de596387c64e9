"""Application configuration via environment variables."""

from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Server
    port: int = 8080
    cors_origins: List[str] = ["*"]
    log_level: str = "INFO"

    # Sweep cadence
    sweep_interval_ms: int = Field(3000, gt=0)

    # Simulated processing: required = min + random() * max_extra
    min_processing_ms: int = Field(3000, ge=0)
    max_extra_processing_ms: int = Field(5000, ge=0)
    failure_probability: float = Field(0.0, ge=0.0, le=1.0)
    resample_required_duration: bool = False  # draw a new duration on every check

    # Upload limits
    max_payload_bytes: int = Field(10 * 1024 * 1024, gt=0)
    max_batch_bytes: int = Field(500 * 1024 * 1024, gt=0)

    model_config = {
        "env_prefix": "PHOTOFLOW_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }
