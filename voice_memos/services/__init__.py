"""
Service implementations for the Voice Memos system.

These services implement the interfaces defined in
voice_memos.interfaces.services.
"""

from voice_memos.services.memo import *
from voice_memos.services.speech import *
