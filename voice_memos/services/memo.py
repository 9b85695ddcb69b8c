"""
Memo cache service.

Holds the in-memory mirror of all memos for a session and is the only
component consumers use to read or change memos. Every change produces a new
MemoState snapshot that is pushed to the subscribed listeners.
"""
import logging
from typing import Callable, List, Literal, Optional

from voice_memos.domains.memo import Memo, MemoState
from voice_memos.interfaces.repositories.memo import MemoStorageProvider
from voice_memos.interfaces.services.memo import MemoService as MemoServiceInterface

logger = logging.getLogger(__name__)

__all__ = ["MemoService", "filter_memos", "sort_memos"]

SortField = Literal["created_at", "updated_at", "text"]

StateListener = Callable[[MemoState], None]


def _error_message(error: Exception, fallback: str) -> str:
    return str(error) or fallback


class MemoService(MemoServiceInterface):
    """Observable cache of memos backed by a storage engine.

    Calls are not queued: overlapping operations race, and each one applies
    its own result to the cache when it completes.
    """

    def __init__(self, storage: MemoStorageProvider):
        """Initialize the memo service.

        Args:
            storage: Storage engine the cache is reconciled with
        """
        self.storage = storage
        self._state = MemoState()
        self._listeners: List[StateListener] = []

    @property
    def state(self) -> MemoState:
        return self._state

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_state(self, **changes) -> None:
        self._state = self._state.model_copy(update=changes)
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception as e:
                logger.exception(f"Memo state listener failed: {e}")

    async def start(self) -> None:
        """Open storage and load every memo into the cache."""
        try:
            self._set_state(loading=True)
            await self.storage.initialize()
            memos = await self.storage.get_all()
            self._set_state(memos=memos, loading=False)
            logger.info(f"Loaded {len(memos)} memos")
        except Exception as e:
            logger.error(f"Error initializing memo storage: {e}")
            self._set_state(
                loading=False,
                error=_error_message(e, "Failed to initialize database"),
            )

    async def stop(self) -> None:
        await self.storage.close()

    async def __aenter__(self) -> "MemoService":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    async def get_all_memos(self) -> None:
        """Replace the cache with a fresh copy of every stored memo."""
        try:
            self._set_state(loading=True, error=None)
            memos = await self.storage.get_all()
            self._set_state(memos=memos, loading=False)
        except Exception as e:
            logger.error(f"Error fetching memos: {e}")
            self._set_state(loading=False, error=_error_message(e, "Failed to fetch memos"))

    async def get_memo_by_id(self, memo_id: str) -> Optional[Memo]:
        """Fetch a memo from storage without touching the cached collection."""
        try:
            self._set_state(loading=True, error=None)
            memo = await self.storage.get_by_id(memo_id)
            self._set_state(loading=False)
            return memo
        except Exception as e:
            logger.error(f"Error fetching memo {memo_id}: {e}")
            self._set_state(
                loading=False,
                error=_error_message(e, f"Failed to fetch memo with ID: {memo_id}"),
            )
            return None

    async def create_memo(self, text: str) -> Memo:
        """Create a memo and append it to the cache.

        Unlike the other operations, a failure is re-raised after being
        recorded, since the caller cannot proceed without the new record.
        """
        try:
            self._set_state(loading=True, error=None)
            memo = await self.storage.create(text)
            self._set_state(memos=[*self._state.memos, memo], loading=False)
            return memo
        except Exception as e:
            logger.error(f"Error creating memo: {e}")
            self._set_state(loading=False, error=_error_message(e, "Failed to create memo"))
            raise

    async def update_memo(self, memo_id: str, text: str) -> Optional[Memo]:
        try:
            self._set_state(loading=True, error=None)
            memo = await self.storage.update(memo_id, text)
            if memo is not None:
                self._set_state(
                    memos=[memo if m.id == memo_id else m for m in self._state.memos],
                    loading=False,
                )
            else:
                self._set_state(loading=False)
            return memo
        except Exception as e:
            logger.error(f"Error updating memo {memo_id}: {e}")
            self._set_state(
                loading=False,
                error=_error_message(e, f"Failed to update memo with ID: {memo_id}"),
            )
            return None

    async def delete_memo(self, memo_id: str) -> bool:
        try:
            self._set_state(loading=True, error=None)
            deleted = await self.storage.delete(memo_id)
            if deleted:
                self._set_state(
                    memos=[m for m in self._state.memos if m.id != memo_id],
                    loading=False,
                )
            else:
                self._set_state(loading=False)
            return deleted
        except Exception as e:
            logger.error(f"Error deleting memo {memo_id}: {e}")
            self._set_state(
                loading=False,
                error=_error_message(e, f"Failed to delete memo with ID: {memo_id}"),
            )
            return False


def filter_memos(memos: List[Memo], search_text: str) -> List[Memo]:
    """Case-insensitive substring filter. A blank search keeps every memo."""
    needle = search_text.strip().lower()
    if not needle:
        return list(memos)
    return [memo for memo in memos if needle in memo.text.lower()]


def sort_memos(
    memos: List[Memo], sort_by: SortField = "created_at", descending: bool = True
) -> List[Memo]:
    """Return memos ordered by timestamp or by case-folded text."""
    if sort_by == "text":
        key = lambda memo: memo.text.casefold()  # noqa: E731
    elif sort_by in ("created_at", "updated_at"):
        key = lambda memo: getattr(memo, sort_by)  # noqa: E731
    else:
        raise ValueError(f"Unknown sort field: {sort_by}")
    return sorted(memos, key=key, reverse=descending)
