"""
Configuration management for covidmath.

This module provides functionality for managing configuration,
including loading from environment variables, files and default values.
"""

import os
import json
import logging
import threading
from typing import Dict, Optional, Any
from copy import deepcopy
import yaml

# Set up logging
logger = logging.getLogger(__name__)


def to_int(value: Any) -> Optional[int]:
    """
    Convert a value to an integer.

    Args:
        value: Value to convert

    Returns:
        Integer value, or None if conversion failed
    """
    if value is None:
        return None

    try:
        return int(value)
    except (ValueError, TypeError):
        return None


def to_bool(value: Any) -> Optional[bool]:
    """
    Convert a value to a boolean.

    Args:
        value: Value to convert

    Returns:
        Boolean value, or None if conversion failed
    """
    if value is None:
        return None

    if isinstance(value, bool):
        return value

    if isinstance(value, (int, float)):
        return bool(value)

    if isinstance(value, str):
        value = value.lower().strip()
        if value in ('true', 'yes', 'y', '1', 't'):
            return True
        if value in ('false', 'no', 'n', '0', 'f'):
            return False

    return None


def _env_int(name: str, current: int) -> int:
    """Read an integer environment variable, keeping the current value if unset or invalid."""
    parsed = to_int(os.environ.get(name))
    return current if parsed is None else parsed


class Config:
    """
    Configuration manager for covidmath.
    """

    def __init__(self, overrides: Optional[Dict[str, Any]] = None):
        """
        Initialize configuration.

        Args:
            overrides: Optional configuration overrides
        """
        self._lock = threading.RLock()
        self._config = {}
        self._initialized = False

        # Load configuration
        self.load_config(overrides)

    def load_config(self, overrides: Optional[Dict[str, Any]] = None) -> None:
        """
        Load configuration from all sources.

        Args:
            overrides: Optional configuration overrides
        """
        with self._lock:
            config = self._get_defaults()
            config = self._apply_env_vars(config)

            if overrides:
                config = self._apply_overrides(config, overrides)

            config = self._apply_inferred_values(config)

            self._config = config
            self._initialized = True

            logger.info("Configuration loaded")

    def _get_defaults(self) -> Dict[str, Any]:
        """
        Get default configuration values.

        Returns:
            Default configuration
        """
        return {
            # K-means
            'clustering': {
                'k-default': 4,
                'k-min': 2,
                'k-max': 8,          # resource ceiling, not a mathematical limit
                'max-iters': 100
            },

            # PCA
            'pca': {
                'iters': 100,        # fixed power iteration steps
                'canonicalize-sign': False
            },

            # Feature engineering
            'features': {
                'log-offset': 1e-9,
                'defaults': {
                    'total_cases': 0.0,
                    'population': 1.0,
                    'gdp_per_capita': 1000.0,
                    'stringency_index': 0.0,
                    'life_expectancy': 70.0
                }
            },

            # Outlier detection
            'outliers': {
                'default-metric': 'death_rate',
                'iqr-multiplier': 1.5,
                'z-threshold': 3.0,
                'min-iqr-samples': 4,
                'min-z-samples': 2
            },

            # Result cache
            'cache': {
                'enabled': True,
                'dir': os.path.join('data', 'cache', 'clustering')
            },

            # Logging
            'logging': {
                'level': 'warning'
            }
        }

    def _apply_env_vars(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply environment variables to configuration.

        Args:
            config: Current configuration

        Returns:
            Updated configuration
        """
        config = deepcopy(config)

        # Clustering
        clustering = config['clustering']
        clustering['k-default'] = _env_int('CLUSTER_K_DEFAULT', clustering['k-default'])
        clustering['k-min'] = _env_int('CLUSTER_K_MIN', clustering['k-min'])
        clustering['k-max'] = _env_int('CLUSTER_K_MAX', clustering['k-max'])
        clustering['max-iters'] = _env_int('CLUSTER_MAX_ITERS', clustering['max-iters'])

        # PCA
        config['pca']['iters'] = _env_int('PCA_ITERS', config['pca']['iters'])

        # Cache
        config['cache']['dir'] = os.environ.get('CACHE_DIR', config['cache']['dir'])
        cache_enabled = to_bool(os.environ.get('CACHE_ENABLED'))
        if cache_enabled is not None:
            config['cache']['enabled'] = cache_enabled

        # Logging
        config['logging']['level'] = os.environ.get('LOG_LEVEL', config['logging']['level']).lower()

        return config

    def _apply_overrides(self, config: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply configuration overrides.

        Args:
            config: Current configuration
            overrides: Configuration overrides

        Returns:
            Updated configuration
        """
        config = deepcopy(config)

        def deep_update(d, u):
            for k, v in u.items():
                if isinstance(v, dict) and k in d and isinstance(d[k], dict):
                    d[k] = deep_update(d[k], v)
                else:
                    d[k] = v
            return d

        return deep_update(config, overrides)

    def _apply_inferred_values(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply inferred configuration values.

        Keeps the k bounds ordered and the default k inside them.

        Args:
            config: Current configuration

        Returns:
            Updated configuration
        """
        config = deepcopy(config)

        clustering = config['clustering']
        if clustering['k-min'] < 1:
            logger.warning(f"clustering.k-min={clustering['k-min']} raised to 1")
            clustering['k-min'] = 1
        if clustering['k-max'] < clustering['k-min']:
            logger.warning(f"clustering.k-max={clustering['k-max']} raised to k-min={clustering['k-min']}")
            clustering['k-max'] = clustering['k-min']
        clustering['k-default'] = max(clustering['k-min'], min(clustering['k-max'], clustering['k-default']))

        return config

    def get(self, path: str, default: Any = None) -> Any:
        """
        Get a configuration value.

        Args:
            path: Configuration path (dot-separated)
            default: Default value if not found

        Returns:
            Configuration value, or default if not found
        """
        if not self._initialized:
            self.load_config()

        value = self._config
        for component in path.split('.'):
            if isinstance(value, dict) and component in value:
                value = value[component]
            else:
                return default

        return value

    def set(self, path: str, value: Any) -> None:
        """
        Set a configuration value.

        Args:
            path: Configuration path (dot-separated)
            value: Configuration value
        """
        with self._lock:
            if not self._initialized:
                self.load_config()

            components = path.split('.')
            config = self._config
            for component in components[:-1]:
                if component not in config:
                    config[component] = {}
                config = config[component]

            config[components[-1]] = value

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert configuration to a dictionary.

        Returns:
            Configuration dictionary
        """
        if not self._initialized:
            self.load_config()

        return deepcopy(self._config)

    def save_to_file(self, filepath: str) -> None:
        """
        Save configuration to a file.

        Args:
            filepath: Path to save configuration (.json, .yaml or .yml)
        """
        if not self._initialized:
            self.load_config()

        if filepath.endswith('.json'):
            with open(filepath, 'w') as f:
                json.dump(self._config, f, indent=2)
        elif filepath.endswith('.yaml') or filepath.endswith('.yml'):
            with open(filepath, 'w') as f:
                yaml.dump(self._config, f, default_flow_style=False)
        else:
            raise ValueError(f"Unsupported file format: {filepath}")

    def load_from_file(self, filepath: str) -> None:
        """
        Load configuration from a file.

        Args:
            filepath: Path to load configuration from
        """
        self.load_config(load_config_file(filepath))


def load_config_file(filepath: str) -> Dict[str, Any]:
    """
    Load configuration overrides from a JSON or YAML file.

    Args:
        filepath: Path to configuration file

    Returns:
        Configuration dictionary
    """
    if filepath.endswith('.json'):
        with open(filepath, 'r') as f:
            return json.load(f)
    elif filepath.endswith('.yaml') or filepath.endswith('.yml'):
        with open(filepath, 'r') as f:
            return yaml.safe_load(f) or {}
    else:
        raise ValueError(f"Unsupported configuration file format: {filepath}")


class ConfigManager:
    """
    Singleton manager for configuration.
    """

    _instance = None
    _lock = threading.RLock()

    @classmethod
    def get_config(cls, overrides: Optional[Dict[str, Any]] = None) -> Config:
        """
        Get the configuration instance.

        Args:
            overrides: Optional configuration overrides

        Returns:
            Config instance
        """
        with cls._lock:
            if cls._instance is None:
                cls._instance = Config(overrides)
            elif overrides:
                cls._instance.load_config(overrides)

            return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Drop the shared instance so the next call reloads from scratch."""
        with cls._lock:
            cls._instance = None
