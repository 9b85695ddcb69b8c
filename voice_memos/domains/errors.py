"""
Error taxonomy for the Voice Memos system.

A missing memo is never an error: lookups, updates and deletes report it as
``None`` / ``False``. Everything here is a systemic failure.
"""

__all__ = [
    "VoiceMemosError",
    "StorageUnavailable",
    "TransactionFailure",
    "WriteConflict",
    "RecognitionError",
    "RecognitionUnsupported",
]


class VoiceMemosError(Exception):
    """Base class for all Voice Memos errors."""


class StorageUnavailable(VoiceMemosError):
    """The database could not be opened. Callers may retry."""


class TransactionFailure(VoiceMemosError):
    """A database operation failed after the connection was established."""


class WriteConflict(TransactionFailure):
    """An insert collided with an existing primary key."""


class RecognitionError(VoiceMemosError):
    """A speech recognition error reported by the platform."""


class RecognitionUnsupported(RecognitionError):
    """The platform offers no speech recognition capability."""
