from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, List, Optional


@dataclass
class SpeechRecognitionOptions:
    """Recognition settings, fixed when a session manager is constructed."""

    language: str = "ru-RU"  # BCP 47 locale tag
    continuous: bool = True  # keep the session open across pauses
    interim_results: bool = True
    max_alternatives: int = 1

    def __post_init__(self) -> None:
        if not isinstance(self.language, str) or not self.language.strip():
            raise ValueError("language must be a non-empty locale tag")
        if not isinstance(self.continuous, bool):
            raise ValueError("continuous must be a boolean")
        if not isinstance(self.interim_results, bool):
            raise ValueError("interim_results must be a boolean")
        if (
            isinstance(self.max_alternatives, bool)
            or not isinstance(self.max_alternatives, int)
            or self.max_alternatives < 1
        ):
            raise ValueError("max_alternatives must be a positive integer")


@dataclass
class RecognitionAlternative:
    transcript: str
    confidence: float = 0.0


@dataclass
class RecognitionResult:
    """One recognized segment with its ranked alternatives."""

    alternatives: List[RecognitionAlternative] = field(default_factory=list)
    is_final: bool = False

    @property
    def transcript(self) -> str:
        """Transcript of the best alternative."""
        return self.alternatives[0].transcript if self.alternatives else ""


@dataclass
class RecognitionResultEvent:
    """A batch of results; entries from result_index onward changed."""

    results: List[RecognitionResult] = field(default_factory=list)
    result_index: int = 0


@dataclass
class RecognitionErrorEvent:
    error: str  # short code, e.g. "network", "no-speech", "not-allowed"
    message: Optional[str] = None


@dataclass
class RecognizerHandlers:
    """Named event handlers a recognizer invokes. Unset handlers are skipped."""

    on_start: Optional[Callable[[], None]] = None
    on_result: Optional[Callable[[RecognitionResultEvent], None]] = None
    on_error: Optional[Callable[[RecognitionErrorEvent], None]] = None
    on_end: Optional[Callable[[], None]] = None


class SpeechRecognizer(ABC):
    """Platform speech recognition capability driving a single session at a time."""

    @abstractmethod
    def configure(self, options: SpeechRecognitionOptions) -> None:  # pragma: no cover
        pass

    @abstractmethod
    def set_handlers(self, handlers: RecognizerHandlers) -> None:  # pragma: no cover
        """Replace the registered event handlers."""
        pass

    @abstractmethod
    def start(self) -> None:  # pragma: no cover
        """Begin a session. Raises RuntimeError if one is already running."""
        pass

    @abstractmethod
    def stop(self) -> None:  # pragma: no cover
        """Request the session to end; on_end fires once it has."""
        pass


# Returns None when the platform has no recognition capability.
RecognizerFactory = Callable[[], Optional[SpeechRecognizer]]
