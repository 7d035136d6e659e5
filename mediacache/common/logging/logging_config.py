"""
Logging configuration from logging-config.yaml.

File layout:

    default_level: INFO
    json_format: false
    components:
      cache: {level: DEBUG, json_format: true}
      codec: WARNING
    modules:
      mediacache.core.data: WARNING

Environment overrides (highest priority): LOG_LEVEL_<COMPONENT> and
LOG_JSON_<COMPONENT>, then LOG_LEVEL and LOG_JSON for the default component.
"""

import os
import yaml
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

CONFIG_FILENAME = "logging-config.yaml"

_TRUE_VALUES = ('true', '1', 'yes')


@dataclass(frozen=True)
class ComponentLogging:
    """Resolved logging settings of one component."""
    level: str = "INFO"
    json_format: bool = False


def _find_config_file() -> Optional[Path]:
    current = Path(__file__).parent
    for _ in range(5):  # package dirs up to the project root
        candidate = current / CONFIG_FILENAME
        if candidate.exists():
            return candidate
        current = current.parent
    return None


def _env_suffix(component: str) -> str:
    return component.upper().replace('-', '_').replace('.', '_')


class LoggingConfig:
    """Component and module log levels, from YAML plus environment."""

    _instance: Optional['LoggingConfig'] = None

    def __init__(self, config_path: Optional[str] = None):
        """
        Args:
            config_path: YAML file. If None, logging-config.yaml is searched
                upwards from this package
        """
        path = Path(config_path) if config_path else _find_config_file()
        self._config: Dict = {}
        if path is not None and path.exists():
            with open(path) as f:
                self._config = yaml.safe_load(f) or {}

    @classmethod
    def get_instance(cls) -> 'LoggingConfig':
        """Get singleton instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def _component_entry(self, component: str) -> Dict:
        entry = self._config.get('components', {}).get(component)
        if isinstance(entry, str):
            return {'level': entry}
        return entry if isinstance(entry, dict) else {}

    def for_component(self, component: str = 'default') -> ComponentLogging:
        """Resolve level and format for a component."""
        return ComponentLogging(
            level=self.get_level(component),
            json_format=self.get_json_format(component),
        )

    def get_level(self, component: str = 'default') -> str:
        """Log level (DEBUG, INFO, WARNING, ERROR) for a component."""
        env_level = os.getenv(f"LOG_LEVEL_{_env_suffix(component)}")
        if not env_level and component == 'default':
            env_level = os.getenv("LOG_LEVEL")
        if env_level:
            return env_level.upper()

        level = self._component_entry(component).get('level')
        if level:
            return level.upper()
        return self._config.get('default_level', 'INFO').upper()

    def get_json_format(self, component: str = 'default') -> bool:
        """Whether a component logs JSON."""
        env_json = os.getenv(f"LOG_JSON_{_env_suffix(component)}")
        if not env_json and component == 'default':
            env_json = os.getenv("LOG_JSON")
        if env_json:
            return env_json.lower() in _TRUE_VALUES

        entry = self._component_entry(component)
        if 'json_format' in entry:
            return bool(entry['json_format'])
        return bool(self._config.get('json_format', False))

    def module_levels(self) -> Dict[str, str]:
        """Configured per-module levels."""
        return {name: level.upper()
                for name, level in self._config.get('modules', {}).items()}

    def get_module_level(self, module_name: str) -> Optional[str]:
        """Level configured for a fully qualified module name, if any."""
        return self.module_levels().get(module_name)


def get_logging_config() -> LoggingConfig:
    """Get singleton logging configuration instance."""
    return LoggingConfig.get_instance()
