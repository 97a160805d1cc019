from typing import Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field

from mox.config.yaml_utils import safe_load_with_env
from mox.utils import get_app_dir


class LoggingConfig(BaseModel):
    """Logging configuration model."""

    level: str = Field(default='INFO', description='Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)')
    console_enabled: bool = Field(default=True, description='Enable console logging')
    file_enabled: bool = Field(default=False, description='Enable file logging')
    log_file_dir: Optional[str] = Field(default=None, description='Log directory (defaults to ~/.mox/logs)')
    max_file_size: str = Field(default='10MB', description='Maximum log file size before rotation')
    backup_count: int = Field(default=4, description='Number of backup files to keep')


class ConfigModel(BaseModel):
    """Configuration model with validation."""

    model_config = ConfigDict(extra='allow')

    version: str = Field(default='1', description='Config version')
    target_url: str = Field(default='http://localhost:3000', description='Upstream base URL')
    host: str = Field(default='0.0.0.0')
    port: int = Field(default=3005, ge=1, le=65535)
    proxy_unmatched_routes: bool = Field(default=True, description='Forward requests without a mox route to the upstream')
    disable_etag: bool = Field(default=True, description='Strip etag headers so clients never get 304 on proxy through')
    dev: bool = Field(default=False)
    routes: Optional[str] = Field(default=None, description="Route initializer as 'package.module:function'")
    upstream_timeout: Optional[float] = Field(default=60.0, gt=0, description='Timeout in seconds for each upstream call')
    execution_timeout: Optional[float] = Field(default=None, gt=0, description='Deadline in seconds for a whole intercepted request')
    verify_upstream_tls: bool = Field(default=False)
    ssl_certfile: Optional[str] = Field(default=None)
    ssl_keyfile: Optional[str] = Field(default=None)
    admin_prefix: str = Field(default='/_mox', description='Prefix for mox own endpoints such as health')
    logging: LoggingConfig = Field(default_factory=LoggingConfig, description='Logging configuration')

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> 'ConfigModel':
        """Load configuration from YAML file.

        Tries multiple locations in order:
        1. Explicit config_path if provided
        2. ~/.mox/config.yaml in user home directory
        3. ./mox.yaml in current directory
        """

        config_paths = []
        if config_path:
            config_paths.append(config_path)
        else:
            home_config = get_app_dir() / 'config.yaml'
            if home_config.exists():
                config_paths.append(str(home_config))
            config_paths.append('mox.yaml')

        # Later files override earlier ones
        data = {}
        for path in config_paths:
            try:
                with open(path, 'r') as f:
                    file_data = safe_load_with_env(f) or {}
                    data.update(file_data)
            except FileNotFoundError:
                continue
            except yaml.YAMLError as e:
                raise ValueError(f'Invalid YAML in config file {path}: {e}')
            except Exception as e:
                raise ValueError(f'Error reading config file {path}: {e}')

        return cls(**data)

    def save(self, config_path: str) -> None:
        """Save configuration to YAML file."""
        with open(config_path, 'w') as f:
            yaml.dump(self.model_dump(), f, default_flow_style=False, sort_keys=False, indent=2)
