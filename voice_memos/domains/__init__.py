"""
Domain models for the Voice Memos system.

This package contains the core domain models and the error taxonomy
shared by the storage, cache and speech components.
"""

from voice_memos.domains.memo import *
from voice_memos.domains.errors import *
