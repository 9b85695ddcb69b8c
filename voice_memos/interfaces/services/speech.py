from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional

from voice_memos.domains.memo import SpeechSessionState, SpeechSessionStatus


@dataclass
class SpeechRecognitionCallbacks:
    """Notifications from a speech session. Called synchronously."""

    on_transcript_change: Optional[Callable[[str], None]] = None
    on_listening_change: Optional[Callable[[bool], None]] = None
    on_error: Optional[Callable[[str], None]] = None


class SpeechSessionManager(ABC):
    """Interface for a continuous speech recognition session."""

    @property
    @abstractmethod
    def status(self) -> SpeechSessionStatus:
        pass

    @abstractmethod
    def start_listening(self) -> None:
        pass

    @abstractmethod
    def stop_listening(self) -> None:
        pass

    @abstractmethod
    def reset_transcript(self) -> None:
        pass

    @abstractmethod
    def set_callbacks(self, callbacks: SpeechRecognitionCallbacks) -> None:
        """Replace the active callback set."""
        pass

    @abstractmethod
    def get_state(self) -> SpeechSessionState:
        """Return a copy of the session state."""
        pass
