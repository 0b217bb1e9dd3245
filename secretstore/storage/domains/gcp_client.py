"""GCP Secret Manager client wrapper."""
import logging
import re
from typing import Optional

from google.cloud import secretmanager

from .errors import InvalidConfigurationError

logger = logging.getLogger(__name__)

# Secret Manager ids allow only letters, digits, underscores and hyphens
SECRET_ID_PATTERN = re.compile(r'^[a-zA-Z0-9_-]+$')
SECRET_ID_MAX_LENGTH = 255
PATH_SEPARATOR_REPLACEMENT = "__"


def to_secret_id(identifier: str) -> str:
    """
    Map a path-style remote identifier onto a Secret Manager secret id.

    Args:
        identifier: Identifier such as "app/prod/api-key"

    Returns:
        Secret id such as "app__prod__api-key"

    Raises:
        ValueError: If the identifier can't be expressed as a secret id
    """
    secret_id = identifier.strip("/").replace("/", PATH_SEPARATOR_REPLACEMENT)
    if not secret_id or not SECRET_ID_PATTERN.match(secret_id):
        raise ValueError(
            f"Invalid secret identifier '{identifier}': "
            f"only letters, numbers, '_', '-' and '/' are allowed"
        )
    if len(secret_id) > SECRET_ID_MAX_LENGTH:
        raise ValueError(
            f"Secret identifier '{identifier}' exceeds {SECRET_ID_MAX_LENGTH} characters"
        )
    return secret_id


class GCPSecretClient:
    """
    Wrapper around GCP Secret Manager client.

    Exposes the four operations RemoteSecretStore consumes. Errors from the
    underlying client (google.api_core.exceptions) propagate unchanged.
    """

    def __init__(self, project_id: str, client: Optional[secretmanager.SecretManagerServiceClient] = None):
        if not project_id:
            raise InvalidConfigurationError("GCP project id cannot be empty")
        self.project_id = project_id
        self._client = client

    @property
    def client(self) -> secretmanager.SecretManagerServiceClient:
        """Lazy-initialize client."""
        if self._client is None:
            self._client = secretmanager.SecretManagerServiceClient()
        return self._client

    def _secret_path(self, identifier: str) -> str:
        return f"projects/{self.project_id}/secrets/{to_secret_id(identifier)}"

    def get_secret_value(self, identifier: str) -> bytes:
        """
        Fetch the latest version of a secret.

        Args:
            identifier: Remote identifier of the secret

        Returns:
            Secret payload bytes

        Raises:
            google.api_core.exceptions.NotFound: If the secret doesn't exist
        """
        name = f"{self._secret_path(identifier)}/versions/latest"
        logger.debug(f"Accessing secret version {name}")
        response = self.client.access_secret_version(request={"name": name})
        return response.payload.data

    def create_secret(self, identifier: str, payload: bytes) -> None:
        """
        Create a secret and store payload as its first version.

        The two calls are not atomic. If add_secret_version fails, the secret
        exists with no versions: reads report it as not found and the next
        write reaches it through update_secret.

        Raises:
            google.api_core.exceptions.AlreadyExists: If the secret exists
        """
        secret_id = to_secret_id(identifier)
        logger.debug(f"Creating secret {secret_id} in project {self.project_id}")
        self.client.create_secret(
            request={
                "parent": f"projects/{self.project_id}",
                "secret_id": secret_id,
                "secret": {"replication": {"automatic": {}}},
            }
        )
        self.client.add_secret_version(
            request={"parent": self._secret_path(identifier), "payload": {"data": payload}}
        )

    def update_secret(self, identifier: str, payload: bytes) -> None:
        """Add a new version holding payload to an existing secret."""
        parent = self._secret_path(identifier)
        logger.debug(f"Adding secret version to {parent}")
        self.client.add_secret_version(
            request={"parent": parent, "payload": {"data": payload}}
        )

    def delete_secret(self, identifier: str) -> None:
        """
        Delete a secret with all of its versions.

        Raises:
            google.api_core.exceptions.NotFound: If the secret doesn't exist
        """
        name = self._secret_path(identifier)
        logger.debug(f"Deleting secret {name}")
        self.client.delete_secret(request={"name": name})
