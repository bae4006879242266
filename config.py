import logging
import os
import yaml

from settings_schema import EngineSettings, validate_settings

APP_VERSION = "1.0.0"

logger = logging.getLogger(__name__)


class YamlConfig:
    """Load and save settings to a YAML file."""

    def __init__(self, path: str = "settings.yaml") -> None:
        self.path = path

    def load(self) -> dict:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} must contain a mapping")
        return data

    def save(self, data: dict) -> None:
        with open(self.path, "w", encoding="utf-8") as f:
            yaml.safe_dump(dict(data), f)


def load_engine_settings(path: str = "settings.yaml") -> EngineSettings:
    """Return validated engine settings, falling back to defaults."""
    data = YamlConfig(path).load()
    if not data:
        logger.debug("no settings at %s, using defaults", path)
        return EngineSettings()
    known = {k: data[k] for k in ("weight_unit", "overload", "deload", "forecast") if k in data}
    settings = validate_settings(known)
    logger.debug("loaded engine settings from %s", path)
    return settings


def save_engine_settings(settings: EngineSettings, path: str = "settings.yaml") -> None:
    YamlConfig(path).save(settings.model_dump())
