from __future__ import annotations


class FAQServiceError(RuntimeError):
    """Base exception for FAQ service operations."""

    retryable = False


class FAQEntryNotFoundError(FAQServiceError):
    """Raised when the requested FAQ entry does not exist."""

    def __init__(self, entry_id: str) -> None:
        super().__init__(f"FAQ entry {entry_id} not found")
        self.entry_id = entry_id


class FAQStoreError(FAQServiceError):
    """Raised by repositories when the backing store rejects an operation."""


class FAQStoreUnavailableError(FAQServiceError):
    """The FAQ store timed out or failed; the caller may retry the operation."""

    retryable = True

    def __init__(self, operation: str, reason: str | None = None) -> None:
        message = f"FAQ store unavailable during {operation}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.operation = operation
        self.reason = reason


__all__ = [
    "FAQServiceError",
    "FAQEntryNotFoundError",
    "FAQStoreError",
    "FAQStoreUnavailableError",
]
