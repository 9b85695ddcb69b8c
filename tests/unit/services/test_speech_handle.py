"""
Tests for use_speech_recognition and the SpeechRecognitionHandle it returns.
"""
import pytest
from unittest.mock import Mock

from voice_memos.domains.errors import RecognitionUnsupported
from voice_memos.interfaces.providers.speech import (
    RecognitionAlternative,
    RecognitionErrorEvent,
    RecognitionResult,
    RecognitionResultEvent,
    RecognizerHandlers,
    SpeechRecognitionOptions,
    SpeechRecognizer,
)
from voice_memos.services.speech import (
    NOT_SUPPORTED_MESSAGE,
    SpeechRecognitionHandle,
    SpeechRecognitionManager,
    use_speech_recognition,
)


class StubRecognizer(SpeechRecognizer):
    def __init__(self):
        self.options = None
        self.handlers = RecognizerHandlers()
        self.running = False

    def configure(self, options):
        self.options = options

    def set_handlers(self, handlers):
        self.handlers = handlers

    def start(self):
        self.running = True
        self.handlers.on_start()

    def stop(self):
        self.running = False
        self.handlers.on_end()

    def say(self, transcript, is_final=True):
        result = RecognitionResult(
            alternatives=[RecognitionAlternative(transcript)], is_final=is_final
        )
        self.handlers.on_result(RecognitionResultEvent(results=[result], result_index=0))


@pytest.fixture
def recognizer():
    return StubRecognizer()


def test_defaults(recognizer):
    handle = use_speech_recognition(recognizer_factory=lambda: recognizer)

    assert handle.transcript == ""
    assert handle.is_listening is False
    assert handle.error is None
    assert handle.supported is True
    assert recognizer.options.interim_results is False
    assert recognizer.options.continuous is True
    assert recognizer.options.language == "ru-RU"


def test_overrides(recognizer):
    use_speech_recognition(
        recognizer_factory=lambda: recognizer, interim_results=True, language="en-US"
    )
    assert recognizer.options.interim_results is True
    assert recognizer.options.language == "en-US"


def test_explicit_options_take_precedence(recognizer):
    options = SpeechRecognitionOptions(language="de-DE", interim_results=True)
    handle = use_speech_recognition(options, recognizer_factory=lambda: recognizer)
    assert handle.manager.options is options
    assert recognizer.options.interim_results is True


def test_invalid_override():
    with pytest.raises(ValueError):
        use_speech_recognition(recognizer_factory=lambda: None, max_alternatives=0)


def test_interim_hidden_by_default(recognizer):
    handle = use_speech_recognition(recognizer_factory=lambda: recognizer)
    handle.start_listening()

    recognizer.say("hel", is_final=False)
    assert handle.transcript == ""

    recognizer.say("hello")
    assert handle.transcript == "hello"


def test_attributes_track_session(recognizer):
    on_change = Mock()
    handle = use_speech_recognition(recognizer_factory=lambda: recognizer, on_change=on_change)

    handle.start_listening()
    assert handle.is_listening is True
    recognizer.say("note")
    assert handle.transcript == "note"

    handle.stop_listening()
    assert handle.is_listening is False
    assert on_change.call_count == 3
    on_change.assert_called_with(handle)


def test_unsupported_at_construction():
    handle = use_speech_recognition(recognizer_factory=lambda: None)
    assert handle.supported is False
    assert handle.error == NOT_SUPPORTED_MESSAGE


def test_unsupported_factory_error():
    handle = use_speech_recognition(
        recognizer_factory=Mock(side_effect=RecognitionUnsupported("no microphone"))
    )
    assert handle.supported is False


def test_start_when_unsupported_keeps_error():
    handle = use_speech_recognition(recognizer_factory=lambda: None)
    handle.start_listening()
    assert handle.error == NOT_SUPPORTED_MESSAGE
    assert handle.supported is False
    assert handle.is_listening is False


def test_recognition_error_keeps_supported(recognizer):
    handle = use_speech_recognition(recognizer_factory=lambda: recognizer)
    handle.start_listening()

    recognizer.handlers.on_error(RecognitionErrorEvent("network"))

    assert handle.error == "Recognition error: network"
    assert handle.supported is True


def test_start_clears_previous_error(recognizer):
    handle = use_speech_recognition(recognizer_factory=lambda: recognizer)
    recognizer.handlers.on_error(RecognitionErrorEvent("no-speech"))
    assert handle.error

    handle.start_listening()
    assert handle.error is None


def test_manager_exceptions_become_errors(recognizer):
    manager = SpeechRecognitionManager(recognizer_factory=lambda: recognizer)
    handle = SpeechRecognitionHandle(manager)
    manager.start_listening = Mock(side_effect=RuntimeError("boom"))
    manager.stop_listening = Mock(side_effect=RuntimeError("halt"))
    manager.reset_transcript = Mock(side_effect=RuntimeError("reset"))

    handle.start_listening()
    assert handle.error == "Error starting speech recognition: boom"
    handle.stop_listening()
    assert handle.error == "Error stopping speech recognition: halt"
    handle.reset_transcript()
    assert handle.error == "Error resetting transcript: reset"


def test_reset_transcript(recognizer):
    handle = use_speech_recognition(recognizer_factory=lambda: recognizer)
    handle.start_listening()
    recognizer.say("scratch that")

    handle.reset_transcript()

    assert handle.transcript == ""
    assert handle.manager.transcript == ""


def test_close_stops_listening_session(recognizer):
    with use_speech_recognition(recognizer_factory=lambda: recognizer) as handle:
        handle.start_listening()
        assert recognizer.running is True
    assert recognizer.running is False
    assert handle.is_listening is False


def test_close_when_idle_is_noop(recognizer):
    handle = use_speech_recognition(recognizer_factory=lambda: recognizer)
    recognizer.stop = Mock()
    handle.close()
    recognizer.stop.assert_not_called()
