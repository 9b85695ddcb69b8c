"""
Factory for creating and wiring components of the Voice Memos system.

This module validates the configuration dictionary and handles the creation
and dependency injection of the storage engine, the memo cache and the
speech session manager.
"""
import logging
from typing import Any, Dict, Optional

from voice_memos.adapters.mongodb_adapter import MongoDBAdapter
from voice_memos.adapters.speech_recognition_adapter import create_platform_recognizer
from voice_memos.interfaces.providers.speech import (
    RecognizerFactory,
    SpeechRecognitionOptions,
)
from voice_memos.repositories.memo import MemoRepository
from voice_memos.services.memo import MemoService
from voice_memos.services.speech import SpeechRecognitionManager

# Setup logger for this module
logger = logging.getLogger(__name__)

_SPEECH_OPTION_KEYS = ("language", "continuous", "interim_results", "max_alternatives")


class VoiceMemosFactory:
    """Factory for creating and wiring components of the Voice Memos system."""

    @staticmethod
    def create_storage(config: Dict[str, Any]) -> MemoRepository:
        """Create the memo storage engine from configuration.

        Args:
            config: Configuration dictionary

        Returns:
            Configured MemoRepository (not yet opened)
        """
        if "mongo" not in config:
            raise ValueError("MongoDB configuration is required.")
        if "connection_string" not in config["mongo"]:
            raise ValueError("MongoDB connection string is required.")
        if "database" not in config["mongo"]:
            raise ValueError("MongoDB database name is required.")

        adapter = MongoDBAdapter(
            connection_string=config["mongo"]["connection_string"],
            database_name=config["mongo"]["database"],
        )

        storage_config = config.get("storage", {})
        collection = storage_config.get("collection", "memos")
        version = storage_config.get("version", 1)
        logger.info(
            f"Using MongoDB database '{config['mongo']['database']}', "
            f"collection '{collection}' (schema version {version})"
        )
        return MemoRepository(adapter, collection=collection, version=version)

    @staticmethod
    def create_memo_service(config: Dict[str, Any]) -> MemoService:
        """Create the memo cache service backed by the configured storage."""
        return MemoService(VoiceMemosFactory.create_storage(config))

    @staticmethod
    def speech_settings(config: Dict[str, Any]) -> Dict[str, Any]:
        """Return the recognition option fields set in the optional "speech" section."""
        speech_config = config.get("speech", {})
        unknown = set(speech_config) - set(_SPEECH_OPTION_KEYS) - {"session_timeout_s"}
        if unknown:
            raise ValueError(f"Unknown speech options: {', '.join(sorted(unknown))}")
        return {k: speech_config[k] for k in _SPEECH_OPTION_KEYS if k in speech_config}

    @staticmethod
    def create_speech_options(config: Dict[str, Any]) -> SpeechRecognitionOptions:
        """Build speech options from the optional "speech" section."""
        return SpeechRecognitionOptions(**VoiceMemosFactory.speech_settings(config))

    @staticmethod
    def create_recognizer_factory(config: Dict[str, Any]) -> RecognizerFactory:
        """Return a factory producing the platform microphone recognizer."""
        timeout = config.get("speech", {}).get("session_timeout_s", 60.0)

        def factory():
            return create_platform_recognizer(session_timeout_s=timeout)

        return factory

    @staticmethod
    def create_speech_manager(
        config: Dict[str, Any],
        recognizer_factory: Optional[RecognizerFactory] = None,
    ) -> SpeechRecognitionManager:
        """Create a speech session manager from configuration."""
        options = VoiceMemosFactory.create_speech_options(config)
        return SpeechRecognitionManager(
            options,
            recognizer_factory or VoiceMemosFactory.create_recognizer_factory(config),
        )
