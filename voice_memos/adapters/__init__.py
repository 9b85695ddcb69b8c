"""
Adapters for external systems and services.

These adapters implement the interfaces defined in voice_memos.interfaces
and provide concrete implementations for the local database and the
speech recognition platform.
"""
