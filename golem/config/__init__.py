"""Configuration module for golem."""

from golem.config.loader import get_config_path, load_config
from golem.config.schema import GolemConfig

__all__ = ["GolemConfig", "load_config", "get_config_path"]
