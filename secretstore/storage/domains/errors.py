"""Error taxonomy for secret storage backends."""


class StorageError(Exception):
    """Base class for secret storage errors."""
    pass


class InvalidConfigurationError(StorageError):
    """Raised when a store is constructed with missing or empty dependencies."""
    pass


class RemoteOperationError(StorageError):
    """
    A remote secret service call failed for a reason other than
    "not found" or "already exists".

    Always raised from the underlying client exception so the cause
    stays available for diagnostics.
    """

    def __init__(self, operation: str, identifier: str, cause: Exception):
        self.operation = operation
        self.identifier = identifier
        self.cause = cause
        super().__init__(f"{operation} secret value for {identifier} failed: {cause}")
