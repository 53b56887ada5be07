"""Domain exceptions shared across the store, storage and intake layers."""
from typing import Dict
from urllib.parse import quote


class PersistenceError(Exception):
    """The order store could not complete a write."""


class StorageError(Exception):
    """Object storage rejected an upload."""


class BucketNotFoundError(StorageError):
    def __init__(self, bucket: str):
        super().__init__(f"Bucket not found: {bucket}")
        self.bucket = bucket


class AuthProviderError(Exception):
    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


class Redirect(Exception):
    """Raised from dependencies that must send the caller elsewhere."""

    def __init__(self, location: str):
        super().__init__(location)
        self.location = location


class LoginRequired(Redirect):
    def __init__(self, next_path: str = "/dashboard"):
        super().__init__(f"/login?next={quote(next_path, safe='/')}")
        self.next_path = next_path


class IntakeValidationError(Exception):
    def __init__(self, errors: Dict[str, str]):
        super().__init__("Invalid submission")
        self.errors = errors
