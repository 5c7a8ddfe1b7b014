"""Logging configuration."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class LoggingConfig(BaseSettings):
    """Log level and output format."""

    log_level: str = Field(default="INFO")
    log_format: Literal["console", "json"] = Field(default="console")

    class Config:
        env_prefix = "RESALLOC_"
        extra = "ignore"
