"""
Simplified client interface for the Voice Memos system.

This module provides a clean API for front-ends to work with memos and
dictation without dealing with the wiring of the underlying components.
"""

import json
import importlib.util
from typing import Any, Callable, Dict, List, Literal, Optional

from voice_memos.domains.memo import Memo, MemoState
from voice_memos.factories.memo_factory import VoiceMemosFactory
from voice_memos.interfaces.client.client import VoiceMemos as VoiceMemosInterface
from voice_memos.services.memo import filter_memos, sort_memos
from voice_memos.services.speech import SpeechRecognitionHandle, use_speech_recognition


def load_config(config_path: str) -> Dict[str, Any]:
    """Load a configuration dictionary from a JSON file or a Python file defining ``config``."""
    with open(config_path, "r") as f:
        if config_path.endswith(".json"):
            return json.load(f)

    spec = importlib.util.spec_from_file_location("config", config_path)
    config_module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(config_module)
    return config_module.config


class VoiceMemos(VoiceMemosInterface):
    """Front-end facing client; all memo access goes through the memo cache."""

    def __init__(self, config_path: str = None, config: Dict[str, Any] = None):
        """Initialize the system from config file or dictionary.

        Args:
            config_path: Path to configuration file (JSON or Python)
            config: Configuration dictionary
        """
        if not config and not config_path:
            raise ValueError("Either config or config_path must be provided")

        if config_path:
            config = load_config(config_path)

        self.config = config
        self.memo_service = VoiceMemosFactory.create_memo_service(config)

    @property
    def state(self) -> MemoState:
        return self.memo_service.state

    async def start(self) -> None:
        await self.memo_service.start()

    async def stop(self) -> None:
        await self.memo_service.stop()

    async def __aenter__(self) -> "VoiceMemos":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    async def refresh(self) -> None:
        await self.memo_service.get_all_memos()

    def list_memos(
        self,
        search: Optional[str] = None,
        sort_by: Literal["created_at", "updated_at", "text"] = "created_at",
        descending: bool = True,
    ) -> List[Memo]:
        """Return cached memos, optionally filtered by a search string, in display order."""
        memos = self.memo_service.state.memos
        if search:
            memos = filter_memos(memos, search)
        return sort_memos(memos, sort_by=sort_by, descending=descending)

    async def get_memo(self, memo_id: str) -> Optional[Memo]:
        return await self.memo_service.get_memo_by_id(memo_id)

    async def create_memo(self, text: str) -> Memo:
        return await self.memo_service.create_memo(text)

    async def update_memo(self, memo_id: str, text: str) -> Optional[Memo]:
        return await self.memo_service.update_memo(memo_id, text)

    async def delete_memo(self, memo_id: str) -> bool:
        return await self.memo_service.delete_memo(memo_id)

    def speech_session(
        self,
        on_change: Optional[Callable[[SpeechRecognitionHandle], None]] = None,
        **overrides,
    ) -> SpeechRecognitionHandle:
        """Open a dictation session using the configured speech settings.

        Args:
            on_change: Called with the handle whenever its attributes change
            **overrides: SpeechRecognitionOptions fields taking precedence over the config

        Returns:
            Speech session handle; close it when the editing surface goes away
        """
        settings = {**VoiceMemosFactory.speech_settings(self.config), **overrides}
        return use_speech_recognition(
            recognizer_factory=VoiceMemosFactory.create_recognizer_factory(self.config),
            on_change=on_change,
            **settings,
        )
