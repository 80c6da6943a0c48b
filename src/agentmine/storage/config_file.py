"""Reading and writing ``.agentmine/config.yaml``."""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from agentmine.exceptions import ConfigNotFoundError, InvalidConfigError
from agentmine.models.config import AgentmineConfig

logger = logging.getLogger(__name__)

AGENTMINE_DIR = ".agentmine"
CONFIG_FILENAME = "config.yaml"
DB_FILENAME = "data.db"
SKILLS_DIRNAME = "skills"


def agentmine_dir(root: str | Path) -> Path:
    return Path(root) / AGENTMINE_DIR


def config_path(root: str | Path) -> Path:
    return agentmine_dir(root) / CONFIG_FILENAME


def default_db_path(root: str | Path) -> Path:
    return agentmine_dir(root) / DB_FILENAME


def skills_dir(root: str | Path) -> Path:
    return agentmine_dir(root) / SKILLS_DIRNAME


def parse_config(text: str) -> AgentmineConfig:
    """Parse YAML text into a validated AgentmineConfig.

    An empty document yields the default configuration.

    Raises:
        InvalidConfigError: If the text is not valid YAML, is not a mapping,
            or fails model validation.
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise InvalidConfigError(f"YAML parse error: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise InvalidConfigError("config must be a mapping")

    try:
        return AgentmineConfig.model_validate(data)
    except ValidationError as e:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in e.errors()
        )
        raise InvalidConfigError(errors) from e


def load_config(root: str | Path) -> AgentmineConfig:
    """Load the project config under *root*.

    Raises:
        ConfigNotFoundError: If ``.agentmine/config.yaml`` does not exist.
        InvalidConfigError: If the file cannot be parsed or validated.
    """
    path = config_path(root)
    if not path.is_file():
        raise ConfigNotFoundError(str(path))
    logger.debug("Loading config from %s", path)
    return parse_config(path.read_text(encoding="utf-8"))


def save_config(config: AgentmineConfig, root: str | Path) -> Path:
    """Write *config* to ``.agentmine/config.yaml`` and return the path."""
    path = config_path(root)
    path.parent.mkdir(parents=True, exist_ok=True)
    text = yaml.safe_dump(
        config.to_yaml_dict(),
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True,
    )
    path.write_text(text, encoding="utf-8")
    logger.debug("Wrote config to %s", path)
    return path
