"""
Configuration management for the Lychee Meta Tool
"""

import copy
import json
import os
import re
from pathlib import Path
from typing import Dict, Any, Optional, Union
from urllib.parse import urlparse
import logging

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config.yaml")

DATABASE_MYSQL = "mysql"
DATABASE_POSTGRES = "postgres"
DATABASE_SQLITE = "sqlite"
SUPPORTED_DATABASES = (DATABASE_MYSQL, DATABASE_POSTGRES, DATABASE_SQLITE)

DEFAULT_PORTS = {
    DATABASE_MYSQL: 3306,
    DATABASE_POSTGRES: 5432,
}

MIN_PORT = 1
MAX_PORT = 65535


class ConfigError(ValueError):
    """Raised when the configuration file is missing or invalid."""
    pass


def _expand_env_vars(obj: Union[Dict, Any]) -> Union[Dict, Any]:
    """
    Recursively expand environment variables in config values.
    Supports ${VAR_NAME} syntax.
    """
    if isinstance(obj, dict):
        return {key: _expand_env_vars(value) for key, value in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(item) for item in obj]
    elif isinstance(obj, str):
        pattern = r'\$\{([^}]+)\}'
        def replace_var(match):
            var_name = match.group(1)
            return os.getenv(var_name, match.group(0))  # Return original if not found
        return re.sub(pattern, replace_var, obj)
    else:
        return obj


def get_default_config() -> Dict[str, Any]:
    """
    Get default configuration values

    Returns:
        Default configuration dictionary
    """
    return {
        'database': {
            'type': None,
            'host': None,
            'port': None,
            'user': None,
            'password': '',
            'database': None,
            'path': None,
            'pool_size': 10,
            'max_overflow': 5,
            'pool_timeout': 10,
            'pool_recycle': 3600,
            'statement_timeout_ms': 5000,
        },
        'server': {
            'host': '0.0.0.0',
            'port': 8080,
            'cors': {
                'allowed_origins': [],
            },
            'frontend_dist': None,
        },
        'lychee_base_url': None,
        'pagination': {
            'default_limit': 50,
            'max_limit': 100,
        },
        'logging': {
            'level': 'INFO',
            'file': None,
            'color': True,
        },
    }


def _merge_defaults(defaults: Dict[str, Any], config: Dict[str, Any]) -> Dict[str, Any]:
    """Deep-merge a loaded config over the defaults."""
    merged = copy.deepcopy(defaults)
    for key, value in config.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge_defaults(merged[key], value)
        else:
            merged[key] = value
    return merged


def _apply_env_overrides(config: Dict[str, Any]) -> None:
    if os.getenv('LOG_LEVEL'):
        config['logging']['level'] = os.environ['LOG_LEVEL'].upper()
    if os.getenv('PORT'):
        try:
            config['server']['port'] = int(os.environ['PORT'])
        except ValueError:
            raise ConfigError(f"PORT must be an integer, got {os.environ['PORT']!r}")


def load_config(config_path: Optional[Union[str, Path]] = None, validate: bool = True) -> Dict[str, Any]:
    """
    Load configuration from a YAML or JSON file

    Args:
        config_path: Path to config file. Falls back to $CONFIG_PATH, then config.yaml
        validate: Apply defaults and validate the result

    Returns:
        Configuration dictionary

    Raises:
        ConfigError: If the file is missing, unreadable or invalid
    """
    if config_path is None:
        config_path = os.getenv('CONFIG_PATH') or DEFAULT_CONFIG_PATH
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with open(config_path, 'r') as f:
            if config_path.suffix in ('.yaml', '.yml'):
                raw = yaml.safe_load(f)
            elif config_path.suffix == '.json':
                raw = json.load(f)
            else:
                raise ConfigError(f"Unsupported config file format: {config_path.suffix}")
    except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigError(f"Failed to parse config {config_path}: {e}") from e

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Config {config_path} must contain a mapping at the top level")

    config = _merge_defaults(get_default_config(), _expand_env_vars(raw))
    _apply_env_overrides(config)

    if validate:
        validate_config(config)

    logger.info(f"Configuration loaded from {config_path}")
    return config


def validate_config(config: Dict[str, Any]) -> None:
    """
    Validate a merged configuration in place, filling dialect defaults.

    Raises:
        ConfigError: Describing the first problem found
    """
    _validate_database(config['database'])
    _validate_server(config['server'])
    _validate_base_url(config.get('lychee_base_url'))
    _validate_pagination(config['pagination'])


def _validate_database(db: Dict[str, Any]) -> None:
    db_type = db.get('type')
    if not db_type:
        raise ConfigError("database.type is required (supported: mysql, postgres, sqlite)")
    if db_type not in SUPPORTED_DATABASES:
        raise ConfigError(f"unsupported database type: {db_type} (supported: mysql, postgres, sqlite)")

    if db_type == DATABASE_SQLITE:
        if not db.get('path'):
            raise ConfigError("database.path is required for sqlite database")
        if db['path'] != ':memory:':
            directory = Path(db['path']).parent
            if str(directory) not in ('', '.') and not directory.exists():
                raise ConfigError(f"directory for sqlite database does not exist: {directory}")
        return

    if not db.get('port'):
        db['port'] = DEFAULT_PORTS[db_type]
    for key in ('host', 'user', 'database'):
        if not db.get(key):
            raise ConfigError(f"database.{key} is required for {db_type} database")
    if not isinstance(db['port'], int) or not MIN_PORT <= db['port'] <= MAX_PORT:
        raise ConfigError(f"database.port must be between {MIN_PORT} and {MAX_PORT}, got {db['port']}")


def _validate_server(server: Dict[str, Any]) -> None:
    port = server.get('port')
    if not isinstance(port, int) or not MIN_PORT <= port <= MAX_PORT:
        raise ConfigError(f"server.port must be between {MIN_PORT} and {MAX_PORT}, got {port}")

    origins = server['cors'].get('allowed_origins') or []
    for i, origin in enumerate(origins):
        if not origin:
            raise ConfigError(f"server.cors.allowed_origins[{i}] cannot be empty")
        parsed = urlparse(origin)
        if not parsed.scheme or not parsed.netloc:
            raise ConfigError(f"server.cors.allowed_origins[{i}] has invalid URL format {origin!r}")
    server['cors']['allowed_origins'] = list(origins)


def _validate_base_url(base_url: Optional[str]) -> None:
    if not base_url:
        raise ConfigError("lychee_base_url is required")
    parsed = urlparse(base_url)
    if parsed.scheme not in ('http', 'https'):
        raise ConfigError(f"lychee_base_url must use http or https scheme: {base_url!r}")
    if not parsed.netloc:
        raise ConfigError(f"lychee_base_url must include host: {base_url!r}")


def _validate_pagination(pagination: Dict[str, Any]) -> None:
    default_limit = pagination.get('default_limit')
    max_limit = pagination.get('max_limit')
    if not isinstance(max_limit, int) or max_limit < 1:
        raise ConfigError(f"pagination.max_limit must be a positive integer, got {max_limit}")
    if not isinstance(default_limit, int) or not 1 <= default_limit <= max_limit:
        raise ConfigError(
            f"pagination.default_limit must be between 1 and {max_limit}, got {default_limit}"
        )


def get_config_value(config: Dict[str, Any], key_path: str, default: Any = None) -> Any:
    """
    Get a nested configuration value using dot notation

    Args:
        config: Configuration dictionary
        key_path: Dot-separated key path (e.g., 'server.cors.allowed_origins')
        default: Default value if key not found

    Returns:
        Configuration value or default
    """
    keys = key_path.split('.')
    value = config

    try:
        for key in keys:
            value = value[key]
        return value
    except (KeyError, TypeError):
        return default
