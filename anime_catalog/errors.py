"""Catalog ingestion exceptions."""


class CatalogError(RuntimeError):
    """Base class for catalog fetch failures."""


class FatalRequestError(CatalogError):
    """Raised when the catalog rejects a request outright (never retried)."""

    def __init__(self, status_code: int, message: str = ''):
        self.status_code = status_code
        super().__init__(message or f"Catalog rejected request with HTTP {status_code}")


class HTTPStatusError(CatalogError):
    """Raised when a non-success status persists through every attempt."""

    def __init__(self, status_code: int):
        self.status_code = status_code
        super().__init__(f"HTTP {status_code}")


__all__ = ["CatalogError", "FatalRequestError", "HTTPStatusError"]
