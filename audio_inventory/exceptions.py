"""
Custom exception hierarchy for the audio inventory.

Fatal errors abort a scan and reach the caller. HeaderDecodeError is
per-file: the merger records it on the affected row and keeps going.
"""


class AudioInventoryError(Exception):
    """Base exception for all audio inventory errors."""
    pass


class InvalidArgumentError(AudioInventoryError, ValueError):
    """Raised for a bad file-type selector, timezone or option value."""
    pass


class RootNotFoundError(AudioInventoryError, FileNotFoundError):
    """Raised when a scan root does not exist."""
    pass


class InvalidFormatError(AudioInventoryError):
    """Raised when a file is handed to a decoder for the wrong container family."""
    pass


class EmptyResultError(AudioInventoryError):
    """Raised when a scan matches zero files."""
    pass


class HeaderDecodeError(AudioInventoryError):
    """Raised when header metadata cannot be read from a single file."""
    pass
