"""Global configuration storage for Checkmate.

Stores user preferences in ``~/.checkmate/config.json``. The directory can
be moved with ``CHECKMATE_HOME`` and the data directory overridden with
``CHECKMATE_DATA_DIR``.
"""

import json
import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

HOME_ENV = "CHECKMATE_HOME"
DATA_DIR_ENV = "CHECKMATE_DATA_DIR"
CONFIG_FILE = "config.json"


class Settings(BaseModel):
    """User preferences."""

    data_dir: Optional[str] = None
    log_level: str = "WARNING"
    default_tag_capacity: int = Field(default=10, gt=0)
    active_routine_override: Optional[str] = None


def get_config_dir() -> Path:
    """Get the Checkmate config directory, creating it if needed."""
    override = os.environ.get(HOME_ENV)
    config_dir = Path(override).expanduser() if override else Path.home() / ".checkmate"
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def get_settings() -> Settings:
    """Load settings, falling back to defaults when the file is unusable."""
    config_file = get_config_dir() / CONFIG_FILE
    if config_file.exists():
        try:
            data = json.loads(config_file.read_text(encoding="utf-8"))
            return Settings(**data)
        except (json.JSONDecodeError, ValidationError, TypeError) as e:
            logger.warning("Ignoring invalid config %s: %s", config_file, e)
    return Settings()


def save_settings(settings: Settings) -> None:
    config_file = get_config_dir() / CONFIG_FILE
    config_file.write_text(
        json.dumps(settings.model_dump(), indent=2),
        encoding="utf-8",
    )


def get_data_dir(settings: Settings | None = None) -> Path:
    """Directory holding the JSON data files.

    Resolution order: ``CHECKMATE_DATA_DIR``, ``settings.data_dir``, then
    ``<config dir>/data``.
    """
    env_dir = os.environ.get(DATA_DIR_ENV)
    if env_dir:
        return Path(env_dir).expanduser()
    settings = settings or get_settings()
    if settings.data_dir:
        return Path(settings.data_dir).expanduser()
    return get_config_dir() / "data"
