"""
Speech recognition adapter for the Voice Memos system.

Implements the SpeechRecognizer interface with the SpeechRecognition library:
the microphone is captured in the background, each detected phrase is sent
to the Google Web Speech recognizer, and recognized phrases are reported as
final results. Sessions end after session_timeout_s like a browser session
would, which the session manager handles by restarting.
"""
from __future__ import annotations

import logging
import threading
from typing import Any, Callable, List, Optional

import speech_recognition as sr

from voice_memos.domains.errors import RecognitionError, RecognitionUnsupported
from voice_memos.interfaces.providers.speech import (
    RecognitionAlternative,
    RecognitionErrorEvent,
    RecognitionResult,
    RecognitionResultEvent,
    RecognizerHandlers,
    SpeechRecognitionOptions,
    SpeechRecognizer,
)

logger = logging.getLogger(__name__)

# Receives a handler and its arguments, e.g. loop.call_soon_threadsafe
Dispatcher = Callable[..., Any]


class SpeechRecognitionAdapter(SpeechRecognizer):
    """Microphone recognizer backed by speech_recognition.

    Events are raised on background threads unless a dispatcher is given to
    hand them over to the owner's event loop.
    """

    def __init__(
        self,
        microphone: sr.AudioSource,
        recognizer: Optional[sr.Recognizer] = None,
        session_timeout_s: float = 60.0,
        phrase_time_limit: Optional[float] = 15.0,
        dispatch: Optional[Dispatcher] = None,
    ) -> None:
        if session_timeout_s <= 0:
            raise ValueError("session_timeout_s must be positive.")
        self.microphone = microphone
        self.recognizer = recognizer or sr.Recognizer()
        self.session_timeout_s = session_timeout_s
        self.phrase_time_limit = phrase_time_limit
        self._dispatch = dispatch
        self._options = SpeechRecognitionOptions()
        self._handlers = RecognizerHandlers()
        self._lock = threading.Lock()
        self._stopper: Optional[Callable[..., None]] = None
        self._timer: Optional[threading.Timer] = None
        self._results: List[RecognitionResult] = []

    def configure(self, options: SpeechRecognitionOptions) -> None:
        self._options = options

    def set_handlers(self, handlers: RecognizerHandlers) -> None:
        self._handlers = handlers

    @property
    def active(self) -> bool:
        return self._stopper is not None

    def start(self) -> None:
        with self._lock:
            if self._stopper is not None:
                raise RuntimeError("recognition has already started")
            self._results = []
            try:
                self._stopper = self.recognizer.listen_in_background(
                    self.microphone,
                    self._on_phrase,
                    phrase_time_limit=self.phrase_time_limit,
                )
            except (AssertionError, OSError) as e:
                raise RecognitionError(f"Could not open the microphone: {e}") from e
            self._timer = threading.Timer(self.session_timeout_s, self._end_session)
            self._timer.daemon = True
            self._timer.start()
        logger.debug("Microphone session started")
        self._emit(self._handlers.on_start)

    def stop(self) -> None:
        self._end_session()

    def _end_session(self) -> None:
        with self._lock:
            stopper, self._stopper = self._stopper, None
            timer, self._timer = self._timer, None
        if stopper is None:
            return
        if timer is not None:
            timer.cancel()
        stopper(wait_for_stop=False)
        logger.debug("Microphone session ended")
        self._emit(self._handlers.on_end)

    def _on_phrase(self, recognizer: sr.Recognizer, audio: sr.AudioData) -> None:
        if self._stopper is None:
            return
        try:
            response = recognizer.recognize_google(
                audio, language=self._options.language, show_all=True
            )
        except sr.UnknownValueError:
            self._emit(self._handlers.on_error, RecognitionErrorEvent("no-speech"))
            return
        except sr.RequestError as e:
            self._emit(self._handlers.on_error, RecognitionErrorEvent("network", str(e)))
            return

        result = self._to_result(response)
        if result is None:
            self._emit(self._handlers.on_error, RecognitionErrorEvent("no-speech"))
            return

        with self._lock:
            self._results.append(result)
            event = RecognitionResultEvent(
                results=list(self._results), result_index=len(self._results) - 1
            )
        self._emit(self._handlers.on_result, event)

        if not self._options.continuous:
            self._end_session()

    def _to_result(self, response: Any) -> Optional[RecognitionResult]:
        if not isinstance(response, dict):
            return None
        alternatives = [
            RecognitionAlternative(
                transcript=alt.get("transcript", ""),
                confidence=float(alt.get("confidence", 0.0)),
            )
            for alt in response.get("alternative", [])
            if alt.get("transcript")
        ][: self._options.max_alternatives]
        if not alternatives:
            return None
        if self._results:
            # Later segments of a session start with a separating space
            for alt in alternatives:
                alt.transcript = " " + alt.transcript
        return RecognitionResult(alternatives=alternatives, is_final=True)

    def _emit(self, handler: Optional[Callable[..., None]], *args) -> None:
        if handler is None:
            return
        if self._dispatch is not None:
            self._dispatch(handler, *args)
        else:
            handler(*args)


def create_platform_recognizer(
    device_index: Optional[int] = None,
    session_timeout_s: float = 60.0,
    dispatch: Optional[Dispatcher] = None,
) -> SpeechRecognizer:
    """Return a microphone recognizer.

    Raises:
        RecognitionUnsupported: No microphone can be used on this machine
    """
    try:
        microphone = sr.Microphone(device_index=device_index)
    except (AttributeError, OSError) as e:
        # speech_recognition raises AttributeError when PyAudio is missing
        raise RecognitionUnsupported(f"No microphone available: {e}") from e
    return SpeechRecognitionAdapter(
        microphone=microphone,
        session_timeout_s=session_timeout_s,
        dispatch=dispatch,
    )
