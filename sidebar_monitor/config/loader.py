import logging
from pathlib import Path
from typing import Any, Iterator, Optional, Type, TypeVar

import yaml
from pydantic import BaseModel, ValidationError

from sidebar_monitor.config.schema import MonitorConfig
from sidebar_monitor.errors import ConfigError
from sidebar_monitor.utils import expand_env_vars

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

DEFAULT_CONFIG_PATH = Path("~/.sidebar-monitor/config.yml")


def _unknown_keys(model: BaseModel, prefix: str = "root") -> Iterator[tuple[str, list[str]]]:
    """Yield (section, keys) for every section carrying keys the schema does not know."""
    if model.model_extra:
        yield prefix, sorted(model.model_extra)
    for name, value in model.__dict__.items():
        if isinstance(value, BaseModel):
            yield from _unknown_keys(value, f"{prefix}.{name}")


def _read_yaml(path: Path) -> Optional[Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Failed to read config file %s: %s", path, e)
        return None


def load_config(path: Path, model_class: Type[ModelT]) -> ModelT:
    """Load and validate configuration from a YAML file.

    A missing or unreadable file yields the defaults. A file that parses but
    fails validation is an error: a broken selector table would silently turn
    the monitor blind.

    Args:
        path: YAML file to read; ${VAR} references are expanded from the environment.
        model_class: Pydantic model the file is validated against.

    Raises:
        ConfigError: If the file content does not validate.
    """
    if not path.exists():
        logger.debug("No config file at %s, using defaults", path)
        return model_class()

    raw = _read_yaml(path)
    if raw is None:
        return model_class()
    if not isinstance(raw, dict):
        raise ConfigError(f"Config file {path} must contain a mapping, got {type(raw).__name__}")

    try:
        config = model_class.model_validate(expand_env_vars(raw))
    except ValidationError as e:
        raise ConfigError(f"Invalid config in {path}: {e}") from e

    for section, keys in _unknown_keys(config):
        logger.warning("Unknown keys in %s at %s: %s", section, path, keys)
    return config


def load_monitor_config(path: Optional[Path] = None) -> MonitorConfig:
    """Load the monitor configuration (defaults when no file exists)."""
    if path is None:
        path = DEFAULT_CONFIG_PATH.expanduser()
    return load_config(path, MonitorConfig)
