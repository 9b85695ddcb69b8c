"""
Repository implementations for data access.

This package contains the memo storage engine.
"""

from voice_memos.repositories.memo import *
