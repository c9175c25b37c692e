"""Loading of the declarative project configuration (directories and patches)."""

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .models import ProjectConfig

# Environment variable pointing at a user configuration file
CUBEKIT_CONFIG_ENV = "CUBEKIT_CONFIG"

RESOURCES_PATH = Path(__file__).parent / "resources"

# Built-in configuration shipped with cubekit
DEFAULT_CONFIG_PATH = RESOURCES_PATH / "config.yml"


def parse_yaml(input_path: Path | str) -> dict[str, Any]:
    """Parse a YAML file and return the data as a dictionary."""
    log = logging.getLogger("cubekit")

    input_path = Path(input_path).resolve()
    if not input_path.exists():
        raise FileNotFoundError(f"Input file {input_path} does not exist")
    elif not input_path.is_file():
        raise FileNotFoundError(f"Input file {input_path} is not a file")
    elif input_path.suffix not in [".yml", ".yaml"]:
        raise FileNotFoundError(f"Input file {input_path} is not a YAML file")

    log.debug(f"Loading YAML file from {input_path.as_posix()}")
    try:
        with open(input_path, "r", encoding="utf-8") as file:
            data = yaml.safe_load(file)
    except Exception as e:
        raise RuntimeError("Failed to load YAML file") from e

    return data or {}


def config_path(explicit: Path | str | None = None) -> Path:
    """Select the configuration file.

    Order: explicit path, then `CUBEKIT_CONFIG`, then the built-in default.
    """
    if explicit:
        return Path(explicit)
    if os.environ.get(CUBEKIT_CONFIG_ENV):
        return Path(os.environ[CUBEKIT_CONFIG_ENV])
    return DEFAULT_CONFIG_PATH


def load_config(path: Path | str | None = None) -> ProjectConfig:
    """Load and validate a project configuration.

    Args:
        path: Configuration file. Resolved with `config_path` when omitted.

    Returns:
        The validated configuration.

    Raises:
        FileNotFoundError: If the file does not exist or is not YAML.
        RuntimeError: If the file cannot be parsed or validated.
    """
    log = logging.getLogger("cubekit")

    path = config_path(path)
    data = parse_yaml(path)

    try:
        config = ProjectConfig.model_validate(data)
    except ValidationError as e:
        log.error(f"Invalid configuration {path}: {e}")
        raise RuntimeError(f"Failed to validate configuration {path}") from e

    log.debug(
        f"Loaded {len(config.directories)} directories and "
        f"{len(config.patches)} patches from {path.as_posix()}"
    )
    return config
