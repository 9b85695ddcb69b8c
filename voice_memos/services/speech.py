"""
Speech session service.

SpeechRecognitionManager drives a platform recognizer as a single,
continuous session: it restarts the recognizer when the platform ends a
session on its own, and keeps final results in an accumulated transcript
while interim results are only shown until they are superseded.

use_speech_recognition() wraps a manager into a handle exposing plain
attributes for an editing surface.
"""
from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from voice_memos.adapters.speech_recognition_adapter import create_platform_recognizer
from voice_memos.domains.errors import RecognitionUnsupported
from voice_memos.domains.memo import SpeechSessionState, SpeechSessionStatus
from voice_memos.interfaces.providers.speech import (
    RecognitionErrorEvent,
    RecognitionResultEvent,
    RecognizerFactory,
    RecognizerHandlers,
    SpeechRecognitionOptions,
    SpeechRecognizer,
)
from voice_memos.interfaces.services.speech import (
    SpeechRecognitionCallbacks,
    SpeechSessionManager,
)

logger = logging.getLogger(__name__)

__all__ = [
    "SpeechRecognitionManager",
    "SpeechRecognitionHandle",
    "use_speech_recognition",
    "NOT_SUPPORTED_MESSAGE",
]

NOT_SUPPORTED_MESSAGE = "Speech recognition is not supported on this platform"


def _append_segment(transcript: str, segment: str) -> str:
    """Append a recognized segment, keeping words from separate sessions apart."""
    if transcript and segment and not transcript[-1].isspace() and not segment[0].isspace():
        return transcript + " " + segment
    return transcript + segment


class SpeechRecognitionManager(SpeechSessionManager):
    """State machine around one platform speech recognizer.

    start_listening() and stop_listening() return immediately; the effects are
    reported later through the registered callbacks. Errors never escape these
    methods, they are delivered through the on_error callback.

    Recognizer events may arrive on other threads. Commands and the restart
    decision on session end are serialized by one reentrant lock, so a stop
    request always wins over an automatic restart.
    """

    def __init__(
        self,
        options: Optional[SpeechRecognitionOptions] = None,
        recognizer_factory: Optional[RecognizerFactory] = None,
    ) -> None:
        self.options = options or SpeechRecognitionOptions()
        self._recognizer_factory = recognizer_factory or create_platform_recognizer
        self._recognizer: Optional[SpeechRecognizer] = None
        self._status = SpeechSessionStatus.UNINITIALIZED
        self._transcript = ""
        self._is_listening = False
        self._error: Optional[str] = None
        self._callbacks = SpeechRecognitionCallbacks()
        self._lock = threading.RLock()
        self._initialize()

    # --- Lifecycle ---
    def _initialize(self) -> None:
        try:
            recognizer = self._recognizer_factory()
        except RecognitionUnsupported as e:
            logger.warning(f"{NOT_SUPPORTED_MESSAGE}: {e}")
            recognizer = None
        except Exception as e:
            logger.error(f"Speech recognition initialization failed: {e}")
            self._error = f"Failed to initialize speech recognition: {e}"
            self._notify_error()
            return

        if recognizer is None:
            self._status = SpeechSessionStatus.UNSUPPORTED
            self._error = NOT_SUPPORTED_MESSAGE
            self._notify_error()
            return

        recognizer.configure(self.options)
        recognizer.set_handlers(
            RecognizerHandlers(
                on_start=self._handle_start,
                on_result=self._handle_result,
                on_error=self._handle_error,
                on_end=self._handle_end,
            )
        )
        self._recognizer = recognizer
        self._status = SpeechSessionStatus.READY
        logger.debug(
            f"Speech recognizer ready (language={self.options.language}, "
            f"continuous={self.options.continuous}, interim={self.options.interim_results})"
        )

    @property
    def status(self) -> SpeechSessionStatus:
        return self._status

    @property
    def transcript(self) -> str:
        return self._transcript

    @property
    def is_listening(self) -> bool:
        return self._is_listening

    @property
    def error(self) -> Optional[str]:
        return self._error

    def get_state(self) -> SpeechSessionState:
        return SpeechSessionState(
            transcript=self._transcript,
            is_listening=self._is_listening,
            error=self._error,
        )

    def set_callbacks(self, callbacks: SpeechRecognitionCallbacks) -> None:
        self._callbacks = callbacks

    # --- Commands ---
    def start_listening(self) -> None:
        with self._lock:
            if self._recognizer is None:
                self._initialize()
                if self._recognizer is None:
                    return

            try:
                self._recognizer.start()
                logger.info("Speech recognition started")
            except Exception as e:
                logger.error(f"Failed to start speech recognition: {e}")
                self._error = f"Failed to start speech recognition: {e}"
                self._notify_error()

    def stop_listening(self) -> None:
        with self._lock:
            if self._recognizer is None:
                return

            try:
                # Cleared before stopping so the end event is not taken for a timeout
                self._is_listening = False
                self._recognizer.stop()
                logger.info("Speech recognition stopped")
            except Exception as e:
                logger.error(f"Failed to stop speech recognition: {e}")
                self._error = f"Failed to stop speech recognition: {e}"
                self._notify_error()

    def reset_transcript(self) -> None:
        self._transcript = ""
        self._notify_transcript_change("")

    # --- Recognizer events ---
    def _handle_start(self) -> None:
        self._is_listening = True
        self._status = SpeechSessionStatus.LISTENING
        self._notify_listening_change()

    def _handle_result(self, event: RecognitionResultEvent) -> None:
        final_transcript = self._transcript
        interim_transcript = ""
        for result in event.results[event.result_index:]:
            if result.is_final:
                final_transcript = _append_segment(final_transcript, result.transcript)
            elif self.options.interim_results:
                interim_transcript += result.transcript

        self._transcript = final_transcript
        self._notify_transcript_change(_append_segment(final_transcript, interim_transcript))

    def _handle_error(self, event: RecognitionErrorEvent) -> None:
        logger.error(f"Speech recognition error: {event.error} {event.message or ''}".rstrip())
        self._error = f"Recognition error: {event.error}"
        self._notify_error()

    def _handle_end(self) -> None:
        with self._lock:
            if self._is_listening:
                # The platform ended the session on its own; keep listening
                try:
                    self._recognizer.start()
                    logger.info("Speech recognition session restarted")
                    return
                except Exception as e:
                    logger.warning(f"Could not restart speech recognition: {e}")

            self._is_listening = False
            self._status = SpeechSessionStatus.READY
            self._notify_listening_change()

    # --- Notifications ---
    def _notify_transcript_change(self, transcript: str) -> None:
        if self._callbacks.on_transcript_change:
            self._callbacks.on_transcript_change(transcript)

    def _notify_listening_change(self) -> None:
        if self._callbacks.on_listening_change:
            self._callbacks.on_listening_change(self._is_listening)

    def _notify_error(self) -> None:
        if self._error and self._callbacks.on_error:
            self._callbacks.on_error(self._error)


class SpeechRecognitionHandle:
    """Editing-surface view of a speech session.

    Attributes mirror the session (transcript, is_listening, error) plus a
    supported flag that drops to False once recognition is known to be
    unavailable. close() stops a session that is still listening.
    """

    def __init__(
        self,
        manager: SpeechRecognitionManager,
        on_change: Optional[Callable[["SpeechRecognitionHandle"], None]] = None,
    ) -> None:
        self.transcript = ""
        self.is_listening = False
        self.error: Optional[str] = None
        self.supported = True
        self._manager = manager
        self._on_change = on_change

        manager.set_callbacks(
            SpeechRecognitionCallbacks(
                on_transcript_change=self._set_transcript,
                on_listening_change=self._set_listening,
                on_error=self._set_error,
            )
        )
        if manager.status is SpeechSessionStatus.UNSUPPORTED:
            self.error = manager.error
            self.supported = False

    @property
    def manager(self) -> SpeechRecognitionManager:
        return self._manager

    def _changed(self) -> None:
        if self._on_change:
            self._on_change(self)

    def _set_transcript(self, transcript: str) -> None:
        self.transcript = transcript
        self._changed()

    def _set_listening(self, is_listening: bool) -> None:
        self.is_listening = is_listening
        self._changed()

    def _set_error(self, error: str) -> None:
        self.error = error
        if "not supported" in error.lower():
            self.supported = False
        self._changed()

    def start_listening(self) -> None:
        try:
            self.error = None
            self._manager.start_listening()
        except Exception as e:
            self.error = f"Error starting speech recognition: {e}"
            self._changed()

    def stop_listening(self) -> None:
        try:
            self._manager.stop_listening()
        except Exception as e:
            self.error = f"Error stopping speech recognition: {e}"
            self._changed()

    def reset_transcript(self) -> None:
        try:
            self._manager.reset_transcript()
        except Exception as e:
            self.error = f"Error resetting transcript: {e}"
            self._changed()

    def close(self) -> None:
        if self._manager.is_listening:
            self._manager.stop_listening()

    def __enter__(self) -> "SpeechRecognitionHandle":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def use_speech_recognition(
    options: Optional[SpeechRecognitionOptions] = None,
    recognizer_factory: Optional[RecognizerFactory] = None,
    on_change: Optional[Callable[[SpeechRecognitionHandle], None]] = None,
    **overrides,
) -> SpeechRecognitionHandle:
    """Create a speech session for an editing surface.

    Interim results are off unless requested, either through options or an
    ``interim_results=True`` override.

    Args:
        options: Complete recognition options; overrides are ignored when given
        recognizer_factory: Source of the platform recognizer
        on_change: Called with the handle whenever its attributes change
        **overrides: Individual SpeechRecognitionOptions fields

    Returns:
        Handle exposing transcript, is_listening, error, supported and the controls
    """
    if options is None:
        options = SpeechRecognitionOptions(**{"interim_results": False, **overrides})
    manager = SpeechRecognitionManager(options, recognizer_factory)
    return SpeechRecognitionHandle(manager, on_change=on_change)
