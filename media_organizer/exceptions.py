"""
Custom exception hierarchy for the media organizer.

Planning failures (ScanError and subclasses) halt a run before anything is
mutated. FileOperationError is raised mid-execution and leaves the operations
already applied in place.
"""


class MediaOrganizerError(Exception):
    """Base exception for all media organizer errors."""
    pass


class RootPathError(MediaOrganizerError):
    """Raised when the organize root is missing or not a directory."""
    pass


class ScanError(MediaOrganizerError):
    """Raised when a directory or file cannot be read during planning."""
    pass


class FileHashError(ScanError):
    """Raised when file hashing fails."""
    pass


class MetadataExtractionError(MediaOrganizerError):
    """Raised inside the EXIF parser for malformed data. Never escapes it."""
    pass


class FileOperationError(MediaOrganizerError):
    """Raised when a move/delete fails while applying the plan."""

    def __init__(self, message: str, index: int, operation=None):
        super().__init__(message)
        self.index = index
        self.operation = operation


class InvalidOverrideError(MediaOrganizerError):
    """Raised when an override references a position outside the plan."""
    pass
