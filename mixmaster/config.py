"""Configuration loading: settings plus per-project target tables."""

import configparser
import logging
from pathlib import Path
from typing import Dict, Mapping
from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict
from .models import Settings

logger = logging.getLogger(__name__)

# Name of the reserved group holding process-wide settings.
SETTINGS_GROUP = "_"

TargetTable = Dict[str, str]
ProjectTable = Dict[str, TargetTable]


class ConfigurationMissing(Exception):
    """The configuration file does not exist."""

    def __init__(self, path: Path):
        super().__init__(f"Configuration file {path} not found")
        self.path = path


class Environment(BaseSettings):
    """Process environment for the gateway."""
    model_config = SettingsConfigDict(env_prefix="MIXMASTER_")

    config: Path = Path("/etc/mixmaster.ini")
    log_level: str = "INFO"


class Configuration(BaseModel):
    """Everything loaded from the configuration file."""
    settings: Settings = Settings()
    projects: ProjectTable = {}

    class Config:
        frozen = True

    def targets_for(self, project: str) -> Mapping[str, str]:
        """Return the target table of a project, empty if unknown."""
        return self.projects.get(project, {})


def _new_parser() -> configparser.ConfigParser:
    # No section header can contain a newline, so [DEFAULT] is an ordinary
    # group and nothing leaks into project target tables
    parser = configparser.ConfigParser(interpolation=None, default_section="\n")
    # Target names are case sensitive
    parser.optionxform = str
    return parser


def parse_config(text: str) -> Configuration:
    """Parse configuration text into settings and project tables."""
    parser = _new_parser()
    parser.read_string(text)

    settings = Settings()
    if parser.has_section(SETTINGS_GROUP):
        values = {k: v for k, v in parser.items(SETTINGS_GROUP) if v != ""}
        settings = Settings(**{k: values[k] for k in Settings.model_fields if k in values})

    projects: ProjectTable = {}
    for section in parser.sections():
        if section == SETTINGS_GROUP:
            continue
        projects[section] = dict(parser.items(section))

    return Configuration(settings=settings, projects=projects)


def load_config(path: Path) -> Configuration:
    """Load the configuration file, failing hard if it is absent."""
    path = Path(path)
    if not path.is_file():
        raise ConfigurationMissing(path)
    config = parse_config(path.read_text())
    logger.debug("Loaded %d project(s) from %s", len(config.projects), path)
    return config
