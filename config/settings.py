#!/usr/bin/env python3
"""
Configuration Manager for TreeIndex
Reads settings from the environment (and an optional .env file) centrally
"""

import os
from pathlib import Path
from typing import Dict, Any, Optional
from dataclasses import dataclass

from treeindex.errors import ConfigurationError


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}", {'variable': name}) from e


@dataclass
class TreeIndexConfig:
    """TreeIndex configuration settings"""

    # Base paths - use environment or defaults
    base_dir: Path = None
    seed_file: Optional[Path] = None

    # Runtime settings
    debug_mode: bool = False
    log_level: str = "INFO"

    # Search settings
    default_max_distance: int = 2

    # Service settings
    host: str = "127.0.0.1"
    port: int = 8080

    # Profile settings
    profile: str = "dev"  # dev, demo, prod

    def __post_init__(self):
        """Initialize paths and load environment variables"""
        self.profile = os.environ.get('TREEINDEX_PROFILE', self.profile)

        if self.base_dir is None:
            default_root = Path(__file__).parent.parent
            self.base_dir = Path(os.environ.get('TREEINDEX_HOME', default_root))
        else:
            self.base_dir = Path(self.base_dir)

        seed = os.environ.get('TREEINDEX_SEED_FILE')
        if seed:
            self.seed_file = Path(seed)
        elif self.seed_file is not None:
            self.seed_file = Path(self.seed_file)
        if self.seed_file is not None and not self.seed_file.is_absolute():
            self.seed_file = self.base_dir / self.seed_file

        self.debug_mode = os.environ.get('TREEINDEX_DEBUG', str(self.debug_mode)).lower() == 'true'
        self.log_level = os.environ.get('TREEINDEX_LOG_LEVEL', self.log_level).upper()

        self.default_max_distance = _env_int('TREEINDEX_MAX_DISTANCE', self.default_max_distance)
        if self.default_max_distance < 0:
            raise ConfigurationError("TREEINDEX_MAX_DISTANCE must not be negative")

        self.host = os.environ.get('TREEINDEX_HOST', self.host)
        self.port = _env_int('TREEINDEX_PORT', self.port)

        # Apply profile defaults if not overridden
        if self.profile == 'prod':
            self.debug_mode = False
            self.log_level = 'WARNING'
        elif self.profile == 'demo':
            self.debug_mode = True
            self.log_level = 'INFO'

    def get_safe_dict(self) -> Dict[str, Any]:
        """Get configuration as a printable dict"""
        return {
            'base_dir': str(self.base_dir),
            'seed_file': str(self.seed_file) if self.seed_file else None,
            'debug_mode': self.debug_mode,
            'log_level': self.log_level,
            'default_max_distance': self.default_max_distance,
            'host': self.host,
            'port': self.port,
            'profile': self.profile,
        }


class ConfigManager:
    """Singleton configuration manager"""

    _instance: Optional['ConfigManager'] = None
    _config: Optional[TreeIndexConfig] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if self._config is None:
            self.load_config()

    def load_config(self):
        """Load configuration from the environment.

        Priority (highest to lowest):
        1. Environment variables (TREEINDEX_*)
        2. .env file (loaded into os.environ before config creation)
        3. TreeIndexConfig dataclass defaults
        """
        default_base = Path(__file__).parent.parent
        base_dir = Path(os.environ.get('TREEINDEX_HOME', default_base))
        env_file = base_dir / '.env'
        if env_file.exists():
            self._load_env_file(env_file)

        self._config = TreeIndexConfig()

    def _load_env_file(self, env_file: Path):
        """Load environment variables from .env file.

        Only sets values for keys not already in os.environ,
        ensuring exported env vars take precedence over .env file.
        """
        with open(env_file, 'r') as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith('#') and '=' in line:
                    key, value = line.split('=', 1)
                    key = key.strip()
                    if key not in os.environ:
                        os.environ[key] = value.strip()

    @property
    def config(self) -> TreeIndexConfig:
        """Get the current configuration"""
        if self._config is None:
            self.load_config()
        return self._config

    @classmethod
    def reset(cls) -> None:
        """Forget the cached configuration (next access reloads it)"""
        cls._instance = None
        cls._config = None


def get_config() -> TreeIndexConfig:
    """Get the global configuration instance"""
    return ConfigManager().config


if __name__ == "__main__":
    config = get_config()
    print("TreeIndex Configuration Status:")
    print("-" * 40)
    for key, value in config.get_safe_dict().items():
        print(f"{key}: {value}")
