"""Secret store backed by a remote secret service with a local cache."""
import enum
import logging
import posixpath
import threading
from typing import Dict, Optional

from google.api_core import exceptions as google_exceptions

from ..domains.contract import RemoteSecretClient
from ..domains.errors import InvalidConfigurationError, RemoteOperationError

logger = logging.getLogger(__name__)


class RemoteErrorKind(enum.Enum):
    NOT_FOUND = "not_found"
    ALREADY_EXISTS = "already_exists"
    OTHER = "other"


def classify_remote_error(exc: Exception) -> RemoteErrorKind:
    """
    Classify a remote client failure by its structured error type.

    Message text is never inspected; only the google.api_core exception
    class (which maps to the service's status code) decides the outcome.
    """
    if isinstance(exc, google_exceptions.NotFound):
        return RemoteErrorKind.NOT_FOUND
    if isinstance(exc, google_exceptions.AlreadyExists):
        return RemoteErrorKind.ALREADY_EXISTS
    return RemoteErrorKind.OTHER


def remote_identifier(prefix: str, name: str) -> str:
    """
    Join prefix and name into a remote identifier.

    >>> remote_identifier("app/prod", "api-key")
    'app/prod/api-key'
    >>> remote_identifier("app/prod/", "/api-key")
    'app/prod/api-key'
    """
    return posixpath.normpath(f"{prefix}/{name}")


class RemoteSecretStore:
    """
    Store secrets in a remote secret service, caching what it has seen.

    Reads are served from the cache when possible and populate it on a
    remote hit. Writes try to create the secret first and fall back to an
    update when the service reports that it already exists. Deletes drop
    the cache entry before calling the service.

    The cache assumes this process is the only writer under the prefix.
    Secrets changed remotely by someone else are not seen until the store
    is rebuilt.
    """

    def __init__(self, client: Optional[RemoteSecretClient], prefix: str):
        """
        Args:
            client: Remote client handle, owned by the caller
            prefix: Namespace prepended to every secret name

        Raises:
            InvalidConfigurationError: If client is None or prefix is empty
        """
        if client is None:
            raise InvalidConfigurationError("remote secret client cannot be None")
        if not prefix:
            raise InvalidConfigurationError("secret prefix cannot be empty")

        self._client = client
        self._prefix = prefix
        self._cache: Dict[str, bytes] = {}
        # Bumped by write and delete; read caches only if unchanged since its miss
        self._generations: Dict[str, int] = {}
        self._lock = threading.Lock()

    @property
    def prefix(self) -> str:
        return self._prefix

    def identifier(self, name: str) -> str:
        return remote_identifier(self._prefix, name)

    def _bump(self, name: str) -> None:
        self._generations[name] = self._generations.get(name, 0) + 1

    def read(self, name: str) -> Optional[bytes]:
        """
        Return the payload for name, or None if the secret doesn't exist.

        Raises:
            RemoteOperationError: If the remote fetch failed for any reason
                other than the secret not existing
        """
        with self._lock:
            if name in self._cache:
                logger.debug(f"Cache hit for secret '{name}'")
                return self._cache[name]
            generation = self._generations.get(name, 0)

        secret_id = self.identifier(name)
        try:
            payload = self._client.get_secret_value(secret_id)
        except Exception as e:
            if classify_remote_error(e) is RemoteErrorKind.NOT_FOUND:
                logger.debug(f"Secret {secret_id} not found remotely")
                return None
            raise RemoteOperationError("Get", secret_id, e) from e

        with self._lock:
            if self._generations.get(name, 0) == generation:
                self._cache[name] = payload
            else:
                logger.debug(f"Secret '{name}' changed during fetch, not caching")
        return payload

    def write(self, name: str, payload: bytes) -> None:
        """
        Create or overwrite the secret for name.

        Raises:
            RemoteOperationError: If create failed for a reason other than
                the secret existing, or the fallback update failed
        """
        secret_id = self.identifier(name)
        try:
            self._client.create_secret(secret_id, payload)
        except Exception as e:
            if classify_remote_error(e) is not RemoteErrorKind.ALREADY_EXISTS:
                raise RemoteOperationError("Put", secret_id, e) from e

            logger.info(f"Secret {secret_id} already exists, updating instead")
            try:
                self._client.update_secret(secret_id, payload)
            except Exception as update_error:
                raise RemoteOperationError("Update", secret_id, update_error) from update_error

        with self._lock:
            self._cache[name] = payload
            self._bump(name)

    def delete(self, name: str) -> None:
        """
        Delete the secret for name. Missing secrets are ignored.

        Raises:
            RemoteOperationError: If the remote delete failed for a reason
                other than the secret not existing
        """
        with self._lock:
            self._cache.pop(name, None)
            self._bump(name)

        secret_id = self.identifier(name)
        try:
            self._client.delete_secret(secret_id)
        except Exception as e:
            if classify_remote_error(e) is not RemoteErrorKind.NOT_FOUND:
                raise RemoteOperationError("Delete", secret_id, e) from e
            logger.debug(f"Secret {secret_id} already absent remotely")

        # A read that fetched before the remote delete landed may have cached the old payload
        with self._lock:
            self._cache.pop(name, None)
            self._bump(name)
