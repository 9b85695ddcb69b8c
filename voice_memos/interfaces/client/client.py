from abc import ABC, abstractmethod
from typing import Callable, List, Literal, Optional

from voice_memos.domains.memo import Memo, MemoState


class VoiceMemos(ABC):
    """Interface for the Voice Memos client."""

    @property
    @abstractmethod
    def state(self) -> MemoState:
        pass

    @abstractmethod
    async def start(self) -> None:
        pass

    @abstractmethod
    async def stop(self) -> None:
        pass

    @abstractmethod
    async def refresh(self) -> None:
        pass

    @abstractmethod
    def list_memos(
        self,
        search: Optional[str] = None,
        sort_by: Literal["created_at", "updated_at", "text"] = "created_at",
        descending: bool = True,
    ) -> List[Memo]:
        pass

    @abstractmethod
    async def get_memo(self, memo_id: str) -> Optional[Memo]:
        pass

    @abstractmethod
    async def create_memo(self, text: str) -> Memo:
        pass

    @abstractmethod
    async def update_memo(self, memo_id: str, text: str) -> Optional[Memo]:
        pass

    @abstractmethod
    async def delete_memo(self, memo_id: str) -> bool:
        pass

    @abstractmethod
    def speech_session(self, on_change: Optional[Callable] = None, **overrides):
        pass
