"""Build secret stores from configuration."""
import os
import logging
from typing import Any, Dict, Optional

from ..domains.config_loader import load_config
from ..domains.contract import SecretStorage
from ..domains.errors import InvalidConfigurationError
from ..domains.gcp_client import GCPSecretClient
from .remote_store import RemoteSecretStore
from .volatile_store import VolatileStore

logger = logging.getLogger(__name__)


def get_project_id(config: Dict[str, Any]) -> Optional[str]:
    """
    Get GCP project ID from environment variable or config.

    Priority order:
    1. GCP_PROJECT environment variable (allows override)
    2. Config file
    """
    gcp_project_env = os.getenv("GCP_PROJECT")
    if gcp_project_env:
        logger.debug(f"Using GCP_PROJECT from environment: {gcp_project_env}")
        return gcp_project_env
    return config.get('gcp', {}).get('project_id')


def build_store(config: Dict[str, Any]) -> SecretStorage:
    """
    Construct the store described by a loaded config.

    Args:
        config: Configuration as returned by load_config()

    Returns:
        VolatileStore for the memory backend, RemoteSecretStore over
        GCP Secret Manager for the gcp backend

    Raises:
        InvalidConfigurationError: If the backend is unknown or a required
            value is missing
    """
    storage = config.get('storage') or {}
    backend = storage.get('backend')

    if backend == 'memory':
        logger.info("Using in-memory secret store")
        return VolatileStore()

    if backend == 'gcp':
        auth = config.get('authentication') or {}
        if auth.get('service_account_path'):
            os.environ['GOOGLE_APPLICATION_CREDENTIALS'] = auth['service_account_path']
            logger.info(f"Set GOOGLE_APPLICATION_CREDENTIALS from config: {auth['service_account_path']}")

        client = GCPSecretClient(get_project_id(config))
        logger.info(f"Using GCP secret store in project {client.project_id} under '{storage.get('prefix')}'")
        return RemoteSecretStore(client, storage.get('prefix', ''))

    raise InvalidConfigurationError(f"Unsupported storage backend: {backend}")


def get_store() -> SecretStorage:
    """Load the config file and build the store it describes."""
    return build_store(load_config())
