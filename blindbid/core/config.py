"""
Protocol configuration parameters for BlindBid.

Defines input limits and operational paths. Values can be overridden with
BLINDBID_* environment variables or a .env file.
"""

import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

ENV_PREFIX = "BLINDBID_"


class ProtocolConfig(BaseModel):
    """Protocol-wide configuration parameters"""

    model_config = ConfigDict(frozen=True)

    # Auction input limits
    max_item_name_length: int = Field(default=64, gt=0)
    max_description_length: int = Field(default=256, ge=0)

    # Storage
    data_dir: Path = Path("data")
    db_name: str = "auctions.db"
    evaluator_key_file: str = "evaluator.json"

    # Logging
    log_dir: Path = Path("logs")
    log_level: str = "INFO"
    log_to_file: bool = False

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        value = value.upper()
        if value not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level {value}")
        return value

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_name

    @property
    def evaluator_key_path(self) -> Path:
        return self.data_dir / self.evaluator_key_file

    @property
    def logging_level(self) -> int:
        return getattr(logging, self.log_level)

    def ensure_dirs(self) -> None:
        """Create necessary directories"""
        self.data_dir.mkdir(exist_ok=True, parents=True)
        self.log_dir.mkdir(exist_ok=True, parents=True)


def load_config(env_file: Optional[str] = None, **overrides) -> ProtocolConfig:
    """
    Load configuration from the environment.

    Args:
        env_file: Optional .env file, loaded without overriding variables
            that are already set
        **overrides: Explicit values that win over the environment

    Returns:
        ProtocolConfig instance
    """
    if env_file:
        load_dotenv(env_file, override=False)

    values = {}
    for name in ProtocolConfig.model_fields:
        env_value = os.environ.get(ENV_PREFIX + name.upper())
        if env_value is not None:
            values[name] = env_value

    values.update({k: v for k, v in overrides.items() if v is not None})
    return ProtocolConfig(**values)
