"""Error types shared by the MindEase services."""


class MindEaseError(Exception):
    """Base class for MindEase errors."""


class MissingPermissionError(MindEaseError):
    """A required OS permission has not been granted."""

    def __init__(self, permission: str):
        super().__init__(f"Permission not granted: {permission}")
        self.permission = permission


class ServiceUnavailableError(MindEaseError):
    """The usage-stats or event source is not available on this device."""


class StorageError(MindEaseError):
    """Reading or writing persisted state failed."""


class NetworkError(MindEaseError):
    """A report could not be delivered to the backend."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
