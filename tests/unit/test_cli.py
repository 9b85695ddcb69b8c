import json
import mongomock
import pytest
from unittest.mock import patch
from pymongo.errors import ServerSelectionTimeoutError
from typer.testing import CliRunner

from voice_memos.cli import app
from voice_memos.factories.memo_factory import VoiceMemosFactory
from voice_memos.interfaces.providers.speech import (
    RecognitionAlternative,
    RecognitionResult,
    RecognitionResultEvent,
    RecognizerHandlers,
    SpeechRecognizer,
)

runner = CliRunner()


@pytest.fixture
def mongo_client():
    client = mongomock.MongoClient()
    with patch("voice_memos.adapters.mongodb_adapter.MongoClient", return_value=client):
        yield client


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps(
            {"mongo": {"connection_string": "mongodb://localhost:27017", "database": "cli_db"}}
        )
    )
    return str(path)


class SpeakingRecognizer(SpeechRecognizer):
    """Recognizes one fixed phrase as soon as it starts."""

    def __init__(self, phrase: str):
        self.phrase = phrase
        self.handlers = RecognizerHandlers()

    def configure(self, options):
        pass

    def set_handlers(self, handlers):
        self.handlers = handlers

    def start(self):
        self.handlers.on_start()
        if self.phrase:
            result = RecognitionResult(
                alternatives=[RecognitionAlternative(self.phrase)], is_final=True
            )
            self.handlers.on_result(RecognitionResultEvent(results=[result], result_index=0))

    def stop(self):
        self.handlers.on_end()


def _add(config_path: str, text: str) -> str:
    result = runner.invoke(app, ["add", text, "--config", config_path])
    assert result.exit_code == 0, result.output
    return result.output.split()[-1]


def test_add_and_list(mongo_client, config_path):
    _add(config_path, "Buy milk")
    _add(config_path, "Write report")

    result = runner.invoke(app, ["list", "--config", config_path])

    assert result.exit_code == 0
    assert "Buy milk" in result.output
    assert "Write report" in result.output
    assert mongo_client["cli_db"]["memos"].count_documents({}) == 2


def test_list_search(mongo_client, config_path):
    _add(config_path, "Buy milk")
    _add(config_path, "Write report")

    result = runner.invoke(app, ["list", "--search", "BUY", "--config", config_path])

    assert result.exit_code == 0
    assert "Buy milk" in result.output
    assert "Write report" not in result.output


def test_list_empty(mongo_client, config_path):
    result = runner.invoke(app, ["list", "--config", config_path])
    assert result.exit_code == 0
    assert "No memos found." in result.output


def test_list_unknown_sort(mongo_client, config_path):
    result = runner.invoke(app, ["list", "--sort", "size", "--config", config_path])
    assert result.exit_code == 1
    assert "Unknown sort field" in result.output


def test_show(mongo_client, config_path):
    memo_id = _add(config_path, "Call the dentist")

    result = runner.invoke(app, ["show", memo_id, "--config", config_path])

    assert result.exit_code == 0
    assert "Call the dentist" in result.output


def test_show_missing(mongo_client, config_path):
    result = runner.invoke(app, ["show", "nope", "--config", config_path])
    assert result.exit_code == 1
    assert "not found" in result.output


def test_edit(mongo_client, config_path):
    memo_id = _add(config_path, "draft")

    result = runner.invoke(app, ["edit", memo_id, "final", "--config", config_path])

    assert result.exit_code == 0
    assert "Updated memo" in result.output
    assert mongo_client["cli_db"]["memos"].find_one({"_id": memo_id})["text"] == "final"


def test_edit_missing(mongo_client, config_path):
    result = runner.invoke(app, ["edit", "nope", "text", "--config", config_path])
    assert result.exit_code == 1


def test_delete(mongo_client, config_path):
    memo_id = _add(config_path, "temporary")

    result = runner.invoke(app, ["delete", memo_id, "--config", config_path])
    assert result.exit_code == 0
    assert "Deleted memo" in result.output

    result = runner.invoke(app, ["delete", memo_id, "--config", config_path])
    assert result.exit_code == 1
    assert "not found" in result.output


def test_add_empty_text(mongo_client, config_path):
    result = runner.invoke(app, ["add", "   ", "--config", config_path])
    assert result.exit_code == 1
    assert "cannot be empty" in result.output


def test_missing_config_file(tmp_path):
    result = runner.invoke(app, ["list", "--config", str(tmp_path / "missing.json")])
    assert result.exit_code == 1
    assert "Configuration file not found" in result.output


def test_invalid_config(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"speech": {}}))

    result = runner.invoke(app, ["list", "--config", str(path)])

    assert result.exit_code == 1
    assert "MongoDB configuration is required" in result.output


def test_storage_unavailable(config_path):
    with patch(
        "voice_memos.adapters.mongodb_adapter.MongoClient",
        side_effect=ServerSelectionTimeoutError("refused"),
    ):
        result = runner.invoke(app, ["list", "--config", config_path])

    assert result.exit_code == 1
    assert "Failed to open database" in result.output


def test_verbose_flag(mongo_client, config_path):
    result = runner.invoke(app, ["--verbose", "list", "--config", config_path])
    assert result.exit_code == 0


def test_dictate_unsupported(mongo_client, config_path):
    with patch(
        "voice_memos.adapters.speech_recognition_adapter.sr.Microphone",
        side_effect=AttributeError("Could not find PyAudio; check installation"),
    ):
        result = runner.invoke(app, ["dictate", "--config", config_path])

    assert result.exit_code == 1
    assert "not supported" in result.output
    assert mongo_client["cli_db"]["memos"].count_documents({}) == 0


def test_dictate_saves_transcript(mongo_client, config_path):
    with patch.object(
        VoiceMemosFactory,
        "create_recognizer_factory",
        return_value=lambda: SpeakingRecognizer("call mom"),
    ), patch("voice_memos.cli.time.sleep", side_effect=KeyboardInterrupt):
        result = runner.invoke(app, ["dictate", "--config", config_path])

    assert result.exit_code == 0, result.output
    assert "Saved memo" in result.output
    stored = list(mongo_client["cli_db"]["memos"].find({}))
    assert [doc["text"] for doc in stored] == ["call mom"]


def test_dictate_nothing_recognized(mongo_client, config_path):
    with patch.object(
        VoiceMemosFactory,
        "create_recognizer_factory",
        return_value=lambda: SpeakingRecognizer(""),
    ), patch("voice_memos.cli.time.sleep", side_effect=KeyboardInterrupt):
        result = runner.invoke(app, ["dictate", "--config", config_path])

    assert result.exit_code == 0
    assert "no memo saved" in result.output
    assert mongo_client["cli_db"]["memos"].count_documents({}) == 0
