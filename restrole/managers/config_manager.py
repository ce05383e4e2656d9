"""
RestRole - Configuration Manager

Reads and writes the role manager's JSON settings file (restrole.json).
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from restrole.models.config import ManagerSettings

logger = logging.getLogger(__name__)


# Settings written to a fresh restrole.json
DEFAULT_CONFIG = ManagerSettings().model_dump()


class ConfigManager:
    """
    Role manager settings file

    Missing keys fall back to DEFAULT_CONFIG; a missing file is written out
    with the defaults. Values are validated only when GetSettings() builds
    ManagerSettings.
    """

    def __init__(self, config_file: Optional[Path] = None):
        """
        Initialize configuration manager

        Args:
            config_file: Path to the JSON file (default: ./restrole.json)
        """
        self.config_file = Path(config_file) if config_file else Path.cwd() / "restrole.json"
        self.config: Dict[str, Any] = {}

    def LoadConfig(self) -> Dict[str, Any]:
        """
        Read the settings file, writing defaults first if it is missing

        Returns:
            Dict[str, Any]: Defaults overlaid with the stored values

        Raises:
            ValueError: File is not a JSON object
        """
        if not self.config_file.exists():
            logger.info(f"No settings at {self.config_file}; writing defaults")
            self.config = dict(DEFAULT_CONFIG)
            self.SaveConfig()
            return self.config

        try:
            stored = json.loads(self.config_file.read_text(encoding='utf-8'))
        except json.JSONDecodeError as e:
            raise ValueError(f"Settings file {self.config_file} is not valid JSON: {e}") from e
        if not isinstance(stored, dict):
            raise ValueError(f"Settings file {self.config_file} must hold a JSON object")

        unknown = sorted(set(stored) - set(DEFAULT_CONFIG))
        if unknown:
            logger.warning(f"Ignoring unknown settings in {self.config_file}: {', '.join(unknown)}")

        self.config = {**DEFAULT_CONFIG, **{key: stored[key] for key in stored if key in DEFAULT_CONFIG}}
        logger.debug(f"Loaded settings from {self.config_file}")
        return self.config

    def SaveConfig(self) -> None:
        """Write the current settings to the file"""
        self.config_file.parent.mkdir(parents=True, exist_ok=True)
        self.config_file.write_text(json.dumps(self.config, indent=2), encoding='utf-8')
        logger.debug(f"Saved settings to {self.config_file}")

    def Get(self, key: str, default=None) -> Any:
        return self.config.get(key, default)

    def Set(self, key: str, value: Any) -> None:
        """Change one setting and persist the file"""
        self.config[key] = value
        self.SaveConfig()

    def GetSettings(self) -> ManagerSettings:
        """
        Validated settings from the loaded configuration

        Returns:
            ManagerSettings

        Raises:
            pydantic.ValidationError: A value has the wrong type or range
        """
        if not self.config:
            self.LoadConfig()
        return ManagerSettings(**self.config)
