"""
Voice Memos - capture short text notes, optionally dictated, and keep them in a local database.

This package provides a storage engine over a local document database, a
shared in-memory cache of memos, and a continuous speech recognition session.
"""

# Client interface (main entry point)
from voice_memos.client.voice_memos import VoiceMemos

# Factory for wiring the components
from voice_memos.factories.memo_factory import VoiceMemosFactory

# Core components
from voice_memos.repositories.memo import MemoRepository
from voice_memos.services.memo import MemoService
from voice_memos.services.speech import (
    SpeechRecognitionManager,
    use_speech_recognition,
)
from voice_memos.domains.memo import Memo, MemoState

# Package metadata
__all__ = [
    # Main client interface
    "VoiceMemos",
    # Factories
    "VoiceMemosFactory",
    # Components
    "MemoRepository",
    "MemoService",
    "SpeechRecognitionManager",
    "use_speech_recognition",
    # Models
    "Memo",
    "MemoState",
]
