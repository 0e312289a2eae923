"""Errors that abort a run or that callers are expected to handle."""


class BulkRegistrationError(Exception):
    """Base exception for bulk registration errors."""


class ConfigError(BulkRegistrationError):
    """Invalid command line input or settings. Fatal, raised before processing."""


class FileError(BulkRegistrationError):
    """The user list file could not be read. Fatal, raised before processing."""


class AuthError(BulkRegistrationError):
    """The authentication probe failed or returned an unexpected answer."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
