"""
Configuration for ledgerbid.

Defines storage locations and logging options.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


ENV_PREFIX = "LEDGERBID_"


@dataclass
class ContractConfig:
    """Node-wide configuration parameters"""

    # Storage
    data_dir: Path = Path("data")
    db_name: str = "world_state.db"

    # Logging
    log_dir: Path = Path("logs")
    log_level: int = logging.INFO
    log_to_file: bool = False

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_name

    def ensure_dirs(self) -> None:
        """Create necessary directories"""
        self.data_dir.mkdir(exist_ok=True, parents=True)
        if self.log_to_file:
            self.log_dir.mkdir(exist_ok=True, parents=True)


def _env(name: str) -> Optional[str]:
    value = os.environ.get(ENV_PREFIX + name)
    if value is None or value.strip() == "":
        return None
    return value.strip()


def _parse_level(value: str) -> int:
    if value.isdigit():
        return int(value)
    level = logging.getLevelName(value.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {value}")
    return level


def _parse_bool(value: str) -> bool:
    return value.lower() in ("1", "true", "yes", "on")


def load_config(env_file: Optional[str] = None) -> ContractConfig:
    """
    Load configuration from the environment.

    Values come from ``LEDGERBID_*`` environment variables. If ``env_file``
    is given (or a ``.env`` exists in the working directory) it is loaded
    first; variables already set in the environment take precedence.

    Args:
        env_file: Optional path to a dotenv file

    Returns:
        ContractConfig instance
    """
    if env_file:
        load_dotenv(env_file, override=False)
    else:
        load_dotenv(override=False)

    config = ContractConfig()

    if _env("DATA_DIR"):
        config.data_dir = Path(_env("DATA_DIR")).expanduser()
    if _env("DB_NAME"):
        config.db_name = _env("DB_NAME")
    if _env("LOG_DIR"):
        config.log_dir = Path(_env("LOG_DIR")).expanduser()
    if _env("LOG_LEVEL"):
        config.log_level = _parse_level(_env("LOG_LEVEL"))
    if _env("LOG_TO_FILE"):
        config.log_to_file = _parse_bool(_env("LOG_TO_FILE"))

    return config
