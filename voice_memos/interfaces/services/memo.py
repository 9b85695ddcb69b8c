from abc import ABC, abstractmethod
from typing import Callable, Optional

from voice_memos.domains.memo import Memo, MemoState


class MemoService(ABC):
    """Interface for the shared memo cache."""

    @property
    @abstractmethod
    def state(self) -> MemoState:
        """Current state snapshot. Treat as read-only."""
        pass

    @abstractmethod
    def subscribe(self, listener: Callable[[MemoState], None]) -> Callable[[], None]:
        """Register a state listener and return a function that removes it."""
        pass

    @abstractmethod
    async def start(self) -> None:
        """Open storage and load every memo into the cache."""
        pass

    @abstractmethod
    async def stop(self) -> None:
        """Release the storage connection."""
        pass

    @abstractmethod
    async def get_all_memos(self) -> None:
        """Reload the cache from storage."""
        pass

    @abstractmethod
    async def get_memo_by_id(self, memo_id: str) -> Optional[Memo]:
        """Fetch one memo straight from storage."""
        pass

    @abstractmethod
    async def create_memo(self, text: str) -> Memo:
        """Create a memo. Failures are recorded and re-raised."""
        pass

    @abstractmethod
    async def update_memo(self, memo_id: str, text: str) -> Optional[Memo]:
        """Update a memo; None if absent or on failure."""
        pass

    @abstractmethod
    async def delete_memo(self, memo_id: str) -> bool:
        """Delete a memo; False if absent or on failure."""
        pass
