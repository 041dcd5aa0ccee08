"""
Configuration management for txntail.

Handles loading and merging configuration from:
- Built-in defaults
- An optional YAML configuration file
- Environment variables
- Command-line arguments (applied by the caller via ``set``)
"""

import copy
import os
from typing import Any, Dict, Optional

import yaml

DEFAULT_CONFIG: Dict[str, Any] = {
    "tail": {
        "poll_interval_ms": 500,
        "verbose_poll_interval_ms": 5000,
    },
    "log": {
        "checksum": "adler32",
        "max_frame_size": 0xFFFFF + 1024,
    },
    "logging": {
        "level": "WARNING",
        "format": "console",
    },
}

CONFIG_FILE_ENV = "TXNTAIL_CONFIG"


class Config:
    """Configuration manager for txntail."""
    
    def __init__(self, config_file: Optional[str] = None):
        """
        Initialize configuration.
        
        Args:
            config_file: Path to a YAML configuration file. If None, the
                ``TXNTAIL_CONFIG`` environment variable is consulted.
        """
        self._config: Dict[str, Any] = copy.deepcopy(DEFAULT_CONFIG)
        
        config_file = config_file or os.getenv(CONFIG_FILE_ENV)
        if config_file:
            self._load_config_file(config_file)
        
        self._apply_env_overrides()
    
    def _load_config_file(self, config_file: str) -> None:
        """
        Load configuration from YAML file.
        
        Args:
            config_file: Path to YAML configuration file
        """
        with open(config_file, "r") as f:
            file_config = yaml.safe_load(f)
        if file_config is None:
            return
        if not isinstance(file_config, dict):
            raise ValueError(
                f"Configuration file {config_file} must contain a mapping, "
                f"got {type(file_config).__name__}"
            )
        self._merge_config(file_config)
    
    def _merge_config(self, new_config: Dict[str, Any]) -> None:
        """Deep merge new configuration into existing configuration."""
        self._config = self._deep_merge(self._config, new_config)
    
    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """
        Deep merge two dictionaries.
        
        Args:
            base: Base dictionary
            override: Override dictionary
        
        Returns:
            Merged dictionary
        """
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value
        return result
    
    def _apply_env_overrides(self) -> None:
        """Apply environment variable overrides."""
        if poll_interval := os.getenv("TXNTAIL_POLL_INTERVAL_MS"):
            self.set("tail.poll_interval_ms", int(poll_interval))
        
        if verbose_interval := os.getenv("TXNTAIL_VERBOSE_POLL_INTERVAL_MS"):
            self.set("tail.verbose_poll_interval_ms", int(verbose_interval))
        
        if checksum := os.getenv("TXNTAIL_CHECKSUM"):
            self.set("log.checksum", checksum)
        
        if log_level := os.getenv("TXNTAIL_LOG_LEVEL"):
            self.set("logging.level", log_level)
        
        if log_format := os.getenv("TXNTAIL_LOG_FORMAT"):
            self.set("logging.format", log_format)
    
    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation.
        
        Args:
            key: Configuration key in dot notation (e.g., "tail.poll_interval_ms")
            default: Default value if key not found
        
        Returns:
            Configuration value
        """
        keys = key.split(".")
        value = self._config
        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value
    
    def set(self, key: str, value: Any) -> None:
        """
        Set configuration value using dot notation.
        
        Args:
            key: Configuration key in dot notation
            value: Value to set
        """
        keys = key.split(".")
        config = self._config
        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]
        config[keys[-1]] = value
    
    def to_dict(self) -> Dict[str, Any]:
        """Get entire configuration as dictionary."""
        return copy.deepcopy(self._config)
