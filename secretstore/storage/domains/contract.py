"""Storage contract shared by every secret store backend."""
import logging
from typing import Optional, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class SecretStorage(Protocol):
    """
    Read, write and delete named binary secrets.

    Implementations return None from read() when a secret does not exist.
    Absence is never an error; an exception means the backing medium could
    not complete the call. Deleting a missing secret is a no-op.
    """

    def read(self, name: str) -> Optional[bytes]:
        ...

    def write(self, name: str, payload: bytes) -> None:
        ...

    def delete(self, name: str) -> None:
        ...


class NullStore:
    """Store used where no store was configured. Holds nothing, never fails."""

    def read(self, name: str) -> Optional[bytes]:
        return None

    def write(self, name: str, payload: bytes) -> None:
        return None

    def delete(self, name: str) -> None:
        return None


def ensure_store(store: Optional[SecretStorage]) -> SecretStorage:
    """
    Return store, or a NullStore when store is None.

    Lets callers treat a secret store as an optional collaborator without
    checking for None before every call.
    """
    if store is None:
        logger.debug("No secret store configured, using NullStore")
        return NullStore()
    return store


class RemoteSecretClient(Protocol):
    """
    Pre-authenticated handle to a remote secret-management service.

    Failures are reported with google.api_core.exceptions: NotFound when
    the identifier does not exist, AlreadyExists when create_secret targets
    an existing identifier, any other GoogleAPICallError otherwise.
    """

    def get_secret_value(self, identifier: str) -> bytes:
        ...

    def create_secret(self, identifier: str, payload: bytes) -> None:
        ...

    def update_secret(self, identifier: str, payload: bytes) -> None:
        ...

    def delete_secret(self, identifier: str) -> None:
        ...
