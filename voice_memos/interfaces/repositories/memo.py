from abc import ABC, abstractmethod
from typing import List, Optional

from voice_memos.domains.memo import Memo


class MemoStorageProvider(ABC):
    """Interface for durable memo storage."""

    @abstractmethod
    async def initialize(self) -> None:
        """Open the database, creating or upgrading its schema. Idempotent."""
        pass

    @abstractmethod
    async def get_all(self) -> List[Memo]:
        """Return every stored memo, in no particular order."""
        pass

    @abstractmethod
    async def get_by_id(self, memo_id: str) -> Optional[Memo]:
        """Return the memo with this id, or None if absent."""
        pass

    @abstractmethod
    async def create(self, text: str) -> Memo:
        """Store a new memo with a fresh id and timestamps."""
        pass

    @abstractmethod
    async def update(self, memo_id: str, text: str) -> Optional[Memo]:
        """Replace a memo's text, or return None if absent."""
        pass

    @abstractmethod
    async def delete(self, memo_id: str) -> bool:
        """Remove a memo. Returns False if it did not exist."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release the connection; later calls reopen it."""
        pass
