"""
Job configuration loading for the osm2s3 pipeline.

The job file lists the tables to export with their ISO3 codes and the
source database connection:

    [tables]
    roads = ["KEN"]

    [connection]
    host = "localhost"
    user = "osm"
    password = "secret"
    name = "osm"
    port = 5432
    schema = "public"

TOML is the default format; a YAML file with the same shape is accepted too.
"""

import logging
import tomllib
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .config.settings import ConfigurationError
from .domain.models import JobConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("osm.toml")
YAML_SUFFIXES = (".yml", ".yaml")


def _parse(text: str, config_path: Path) -> Any:
    if config_path.suffix.lower() in YAML_SUFFIXES:
        try:
            return yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Failed parsing config {config_path}: {e}")
    try:
        return tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"Failed parsing config {config_path}: {e}")


def load_config(config_path: Path | str = DEFAULT_CONFIG_PATH) -> JobConfig:
    """
    Load and validate the job configuration file.

    Args:
        config_path: Path to the TOML (or YAML) job configuration

    Returns:
        Immutable JobConfig

    Raises:
        ConfigurationError: If the file is missing, unreadable, malformed or
            missing any required connection field
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    try:
        text = config_path.read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"Could not read configuration file {config_path}: {e}")

    raw = _parse(text, config_path)
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Configuration file {config_path} must contain a table of settings")

    missing = [key for key in ("tables", "connection") if key not in raw]
    if missing:
        raise ConfigurationError(f"Configuration file {config_path} is missing: {', '.join(missing)}")

    try:
        config = JobConfig(tables=raw["tables"], connection=raw["connection"])
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration in {config_path}:\n{e}")

    logger.info(f"Loaded {len(config.tables)} table(s) from {config_path}")
    logger.debug(f"Connection: {config.connection.redacted_string}")
    return config
