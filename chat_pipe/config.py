"""Pipe configuration stored as a JSON file.

load_config() merges stored values over the defaults and writes the merged
result back, so a fresh install ends up with a complete file to edit.
Unknown keys are ignored and dropped on write-back.
"""

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from chat_pipe.models import PipeConfig

logger = logging.getLogger(__name__)

_CONFIG_KEYS = tuple(PipeConfig.model_fields)


class ConfigError(ValueError):
    """Raised when the config file cannot be parsed or fails validation."""


def default_config() -> dict[str, Any]:
    return PipeConfig().model_dump(mode="json")


def load_config(path: Path) -> PipeConfig:
    """Read config from `path`, returning defaults merged with stored values."""
    data = default_config()
    if path.is_file():
        try:
            stored = json.loads(path.read_text())
        except json.JSONDecodeError as e:
            raise ConfigError(f"Config file {path} is not valid JSON: {e}") from e
        if not isinstance(stored, dict):
            raise ConfigError(f"Config file {path} must hold a JSON object")
        for key in _CONFIG_KEYS:
            if key in stored:
                data[key] = stored[key]

    try:
        config = PipeConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config in {path}: {e}") from e

    save_config(path, config)
    logger.debug("config loaded from %s", path)
    return config


def save_config(path: Path, config: PipeConfig) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(config.model_dump(mode="json"), indent=2))
