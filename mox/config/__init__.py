from typing import Optional

from mox.config.models import ConfigModel, LoggingConfig


class ConfigurationService:
    """Configuration service that manages config loading without global state."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration service with optional config path."""
        self.config_path = config_path
        self._config = self._load_config()

    def _load_config(self) -> ConfigModel:
        """Load configuration from file."""
        return ConfigModel.load(self.config_path)

    def get_config(self) -> ConfigModel:
        """Get the configuration instance."""
        return self._config

    def reload_config(self) -> ConfigModel:
        """Reload configuration from file."""
        self._config = self._load_config()
        return self._config


__all__ = ['ConfigModel', 'ConfigurationService', 'LoggingConfig']
