"""
Exceptions raised by the pill tracker core
"""

from typing import Dict, Optional


class PillTrackerError(Exception):
    """Base class for all pill tracker errors"""


class NotFoundError(PillTrackerError):
    """Referenced record id is not present in its collection"""

    def __init__(self, collection: str, record_id: str):
        self.collection = collection
        self.record_id = record_id
        super().__init__(f"{collection} record not found: {record_id}")


class ValidationError(PillTrackerError):
    """
    One or more field constraints were violated.

    ``errors`` maps the stored field name to a human-readable message so a
    caller can render the messages inline next to each field.
    """

    def __init__(self, errors: Dict[str, str], message: Optional[str] = None):
        self.errors = dict(errors)
        if message is None:
            message = "; ".join(f"{field}: {text}" for field, text in self.errors.items())
        super().__init__(message)


class StorageError(PillTrackerError):
    """The underlying key-value store failed to read, write or remove a key"""

    def __init__(self, operation: str, key: str, message: str = ""):
        self.operation = operation
        self.key = key
        detail = f"Storage {operation} failed for '{key}'"
        if message:
            detail += f": {message}"
        super().__init__(detail)
