"""Configuration loading utilities."""

import json
import os
from pathlib import Path

from loguru import logger
from pydantic import ValidationError

from golem.config.schema import GolemConfig
from golem.errors import ConfigError

CONFIG_ENV_VAR = "GOLEM_CONFIG"
SASL_ENV_VAR = "SASL_PASSWORD"


def get_config_path() -> Path:
    """Return $GOLEM_CONFIG, or ~/.golem/config.json."""
    env = os.environ.get(CONFIG_ENV_VAR)
    if env:
        return Path(env).expanduser()
    return Path.home() / ".golem" / "config.json"


def load_config(config_path: Path | str | None = None) -> GolemConfig:
    """
    Load and validate the configuration file.

    The SASL password falls back to the SASL_PASSWORD environment variable
    when the file does not set one.

    Raises:
        ConfigError: if the file is missing, not JSON, or fails validation.
    """
    path = Path(config_path).expanduser() if config_path else get_config_path()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ConfigError(f"No config file at {path}") from e
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Cannot parse golem config at {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Cannot parse golem config at {path}: top level must be an object")

    if not data.get("sasl_password") and os.environ.get(SASL_ENV_VAR):
        data["sasl_password"] = os.environ[SASL_ENV_VAR]

    try:
        config = GolemConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid golem config at {path}:\n{e}") from e

    logger.debug("Loaded config from {} ({} plugins)", path, len(config.plugins))
    return config
