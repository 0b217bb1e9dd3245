"""Configuration loader for secretstore."""
import os
import logging
from pathlib import Path
from typing import Dict, Any

import yaml

from .preferences import get_preference

logger = logging.getLogger(__name__)

SUPPORTED_BACKENDS = ("memory", "gcp")


class ConfigError(Exception):
    """Configuration error exception."""
    pass


def default_config_path() -> Path:
    return Path.home() / ".config" / "secretstore" / "config.yml"


def _get_config_path() -> str:
    """
    Get config file path.

    Priority order:
    1. User preference (stored in ~/.config/secretstore/preferences.json)
    2. Default location: ~/.config/secretstore/config.yml

    Raises:
        FileNotFoundError: If config file doesn't exist in any location
    """
    config_path_pref = get_preference("config_path")
    if config_path_pref:
        config_path = Path(config_path_pref)
        if config_path.exists():
            logger.info(f"Using config from preference: {config_path}")
            return str(config_path)
        logger.warning(f"Config path from preference doesn't exist: {config_path}")

    default_config = default_config_path()
    if default_config.exists():
        logger.info(f"Using default config location: {default_config}")
        return str(default_config)

    raise FileNotFoundError(
        "Configuration file not found. Please set up your config file using one of these methods:\n\n"
        "1. Use the default location:\n"
        f"   mkdir -p {default_config.parent}\n"
        f"   cp /path/to/your/config.yml {default_config}\n\n"
        "2. Point to an existing config file:\n"
        "   secretstore config set-path /path/to/your/config.yml\n"
    )


def _validate_gcp_sections(config: Dict[str, Any], config_path: str) -> None:
    if not isinstance(config.get('authentication'), dict):
        raise ConfigError(
            f"Missing or empty 'authentication' section in config at {config_path}\n"
            f"Required format:\n"
            f"authentication:\n"
            f"  type: service_account\n"
            f"  service_account_path: /path/to/service-account.json"
        )

    auth = config['authentication']

    if 'type' not in auth:
        raise ConfigError("Missing 'authentication.type' in config")

    if auth['type'] != 'service_account':
        raise ConfigError(
            f"Unsupported authentication type: {auth['type']}\n"
            f"Only 'service_account' is supported."
        )

    if 'service_account_path' not in auth:
        raise ConfigError(
            "Missing 'authentication.service_account_path' in config\n"
            "Please specify the absolute path to your service account JSON file."
        )

    service_account_path = auth['service_account_path']
    if not os.path.isfile(service_account_path):
        raise ConfigError(
            f"Service account file not found at: {service_account_path}\n"
            f"Please ensure the file exists or update the path in {config_path}"
        )

    if not isinstance(config.get('gcp'), dict):
        raise ConfigError(
            f"Missing or empty 'gcp' section in config at {config_path}\n"
            f"Required format:\n"
            f"gcp:\n"
            f"  project_id: your-project-id"
        )

    if 'project_id' not in config['gcp']:
        raise ConfigError("Missing 'gcp.project_id' in config")

    if not config['storage'].get('prefix'):
        raise ConfigError("Missing 'storage.prefix' in config (required for the gcp backend)")


def load_config() -> Dict[str, Any]:
    """
    Load and validate configuration from YAML file.

    Returns:
        Dict containing configuration with keys:
        - storage: dict with backend and, for gcp, prefix
        - authentication: dict with type and service_account_path (gcp only)
        - gcp: dict with project_id (gcp only)

    Raises:
        FileNotFoundError: If no config file can be located
        ConfigError: If config file is invalid or the service account file doesn't exist
    """
    # Resolved on every call so preference changes apply without a restart
    config_path = _get_config_path()

    try:
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML config at {config_path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config file at {config_path}: {e}") from e

    if not config:
        raise ConfigError(f"Config file at {config_path} is empty")

    if not isinstance(config, dict):
        raise ConfigError(f"Config file at {config_path} must contain a mapping")

    storage = config.get('storage')
    if not isinstance(storage, dict) or 'backend' not in storage:
        raise ConfigError(
            f"Missing 'storage.backend' in config at {config_path}\n"
            f"Required format:\n"
            f"storage:\n"
            f"  backend: gcp  # or memory\n"
            f"  prefix: app/prod"
        )

    backend = storage['backend']
    if backend not in SUPPORTED_BACKENDS:
        raise ConfigError(
            f"Unsupported storage backend: {backend}\n"
            f"Supported backends: {', '.join(SUPPORTED_BACKENDS)}"
        )

    if backend == 'gcp':
        _validate_gcp_sections(config, config_path)
        logger.debug(f"Using service account: {config['authentication']['service_account_path']}")
        logger.debug(f"Using project ID: {config['gcp']['project_id']}")

    logger.info(f"Configuration loaded successfully from {config_path}")
    return config
