"""
Domain exceptions shared by services.
"""


class ServiceError(Exception):
    """Base exception for backend services."""

    def __init__(self, message: str, code: str = "SERVICE_ERROR") -> None:
        self.message = message
        self.code = code
        super().__init__(message)


class UpstreamError(ServiceError):
    """Raised when the metadata provider fails or answers with an error status."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message, code="UPSTREAM_ERROR")
        self.status = status


class StorageError(ServiceError):
    """Raised when the avatar object store rejects an operation."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="STORAGE_ERROR")


class FederatedLoginError(ServiceError):
    """Raised when the identity provider exchange fails."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="FEDERATED_LOGIN_ERROR")
