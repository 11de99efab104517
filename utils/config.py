"""
Settings Module - utils/config.py

Priority: Environment variables (.env included) > config/settings.yaml > defaults

USAGE PATTERN:
-------------
    from utils.config import load_settings

    settings = load_settings()
    settings.score_maps_dir      # Path to the score tables
    settings.database['host']
"""

import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).parent.parent
DEFAULT_SETTINGS_PATH = PROJECT_ROOT / 'config' / 'settings.yaml'

DEFAULT_DATABASE = {
    'host': 'localhost',
    'port': 5432,
    'database': 'skills_testing',
    'user': 'readonly_user',
    'password': '',
    'pool_size': 2,
    'max_overflow': 5,
}

# env var -> database key
DATABASE_ENV = {
    'DB_HOST': 'host',
    'DB_PORT': 'port',
    'DB_NAME': 'database',
    'DB_USER': 'user',
    'DB_PASSWORD': 'password',
}


@dataclass
class Settings:
    """Resolved application settings."""
    database: Dict[str, Any] = field(default_factory=lambda: dict(DEFAULT_DATABASE))
    score_maps_dir: Path = PROJECT_ROOT / 'config' / 'scoremaps'
    use_s1_csv: bool = True
    use_s4_csv: bool = True
    use_s6_csv: bool = True
    log_level: str = 'INFO'
    json_logs: bool = False
    log_file: Optional[str] = None


def env_flag(value: Optional[str], default: bool = True) -> bool:
    """
    Read an on/off switch. Only '0' and 'false' switch off.

    Example:
        >>> env_flag('false')
        False
        >>> env_flag('yes')
        True
        >>> env_flag(None)
        True
    """
    if value is None:
        return default
    return str(value).strip().lower() not in ('0', 'false')


def _read_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        logger.debug(f"No settings file at {path}, using defaults")
        return {}

    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Settings file {path} must contain a mapping, got {type(data).__name__}")
    return data


def _resolve_path(value, base: Path) -> Path:
    path = Path(value)
    return path if path.is_absolute() else base / path


def build_settings(file_settings: Dict[str, Any], environ: Dict[str, str]) -> Settings:
    """
    Merge settings from a parsed YAML mapping and an environment mapping.

    Pure function so the merge rules can be tested without touching the
    real environment.
    """
    settings = Settings()

    database = dict(DEFAULT_DATABASE)
    database.update(file_settings.get('database') or {})
    for env_key, key in DATABASE_ENV.items():
        if env_key in environ:
            database[key] = environ[env_key]
    database['port'] = int(database['port'])
    settings.database = database

    score_maps = file_settings.get('score_maps') or {}
    if environ.get('SCORE_MAPS_DIR'):
        settings.score_maps_dir = _resolve_path(environ['SCORE_MAPS_DIR'], PROJECT_ROOT)
    elif score_maps.get('directory'):
        settings.score_maps_dir = _resolve_path(score_maps['directory'], PROJECT_ROOT)

    for table in ('s1', 's4', 's6'):
        attribute = f'use_{table}_csv'
        file_value = score_maps.get(attribute)
        default = True if file_value is None else env_flag(str(file_value))
        setattr(settings, attribute, env_flag(environ.get(attribute.upper()), default))

    log_settings = file_settings.get('logging') or {}
    settings.log_level = environ.get('LOG_LEVEL') or log_settings.get('level') or 'INFO'
    settings.json_logs = env_flag(
        environ.get('JSON_LOGS'),
        default=bool(log_settings.get('json_logs', False))
    )
    settings.log_file = log_settings.get('log_file')

    return settings


@lru_cache(maxsize=1)
def load_settings(settings_path: Optional[str] = None) -> Settings:
    """
    Load settings once per process.

    Args:
        settings_path: Alternative YAML file (default: config/settings.yaml)

    Returns:
        Settings
    """
    load_dotenv()
    path = Path(settings_path) if settings_path else DEFAULT_SETTINGS_PATH
    settings = build_settings(_read_yaml(path), dict(os.environ))

    if not settings.database.get('password'):
        logger.warning("Database password not set! Project queries will likely fail.")

    return settings


def reload_settings():
    """Clear the cached settings (after editing settings.yaml or .env)."""
    load_settings.cache_clear()
    logger.info("Settings cache cleared")
