"""
Memo storage engine.

Persists Memo records in a versioned local document database. Timestamps are
stored as fixed-width ISO-8601 UTC strings, which keeps the createdAt and
updatedAt indexes ordered, and are parsed back into datetimes on every read.
"""
import asyncio
import logging
import secrets
import string
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

from pymongo import ASCENDING
from pymongo.errors import DuplicateKeyError, PyMongoError

from voice_memos.domains.errors import (
    StorageUnavailable,
    TransactionFailure,
    WriteConflict,
)
from voice_memos.domains.memo import Memo
from voice_memos.interfaces.providers.data_storage import DataStorageProvider
from voice_memos.interfaces.repositories.memo import MemoStorageProvider

logger = logging.getLogger(__name__)

__all__ = ["MemoRepository", "generate_id"]

_BASE36 = string.digits + string.ascii_lowercase
_ID_RANDOM_CHARS = 16
_INDEXED_FIELDS = ("createdAt", "updatedAt")


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_id() -> str:
    """Generate a memo id: base-36 milliseconds followed by 16 random base-36 characters."""
    millis = time.time_ns() // 1_000_000
    suffix = "".join(secrets.choice(_BASE36) for _ in range(_ID_RANDOM_CHARS))
    return _to_base36(millis) + suffix


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _serialize_date(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _parse_date(value: Any) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        parsed = datetime.fromisoformat(value)
    else:
        raise TypeError(f"Unsupported date value: {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class MemoRepository(MemoStorageProvider):
    """Durable CRUD for memos over a DataStorageProvider.

    The connection is opened lazily by the first operation and can be closed
    and reopened freely. Operations are not serialized against each other:
    update() and delete() read before they write, outside any transaction, so
    a concurrent write between the two steps is not detected.
    """

    def __init__(
        self,
        adapter: DataStorageProvider,
        collection: str = "memos",
        version: int = 1,
        schema_collection: str = "_schema",
    ):
        """Initialize the repository.

        Args:
            adapter: Document storage provider
            collection: Name of the memo collection
            version: Schema version to open the database at
            schema_collection: Collection recording the schema version
        """
        if not collection:
            raise ValueError("collection name is required.")
        if isinstance(version, bool) or not isinstance(version, int) or version < 1:
            raise ValueError("version must be a positive integer.")
        self.adapter = adapter
        self.collection = collection
        self.version = version
        self.schema_collection = schema_collection
        self._lock = asyncio.Lock()
        self._ready = False

    @property
    def is_open(self) -> bool:
        return self._ready and self.adapter.is_connected

    async def initialize(self) -> None:
        if self.is_open:
            return
        async with self._lock:
            if self.is_open:
                return
            try:
                await asyncio.to_thread(self._open)
            except StorageUnavailable:
                raise
            except PyMongoError as e:
                logger.error(f"Failed to open database: {e}")
                raise StorageUnavailable(f"Failed to open database: {e}") from e
            self._ready = True
            logger.info(
                f"Memo storage ready (collection '{self.collection}', version {self.version})"
            )

    def _open(self) -> None:
        self.adapter.connect()
        try:
            self._upgrade_schema()
        except Exception:
            self.adapter.close()
            raise

    def _upgrade_schema(self) -> None:
        meta = self.adapter.find_one(self.schema_collection, {"_id": self.collection})
        current = int(meta.get("version", 0)) if meta else 0
        if current > self.version:
            raise StorageUnavailable(
                f"Failed to open database: requested version ({self.version}) is less "
                f"than the existing version ({current})"
            )
        if current == self.version:
            return

        logger.info(f"Upgrading memo schema from version {current} to {self.version}")
        if not self.adapter.collection_exists(self.collection):
            self.adapter.create_collection(self.collection)
        existing = set(self.adapter.list_indexes(self.collection))
        for field in _INDEXED_FIELDS:
            if field not in existing:
                self.adapter.create_index(
                    self.collection, [(field, ASCENDING)], name=field, unique=False
                )
        self.adapter.replace_one(
            self.schema_collection,
            {"_id": self.collection},
            {"_id": self.collection, "version": self.version},
            upsert=True,
        )

    async def _run(self, failure: str, func: Callable[..., Any], *args, **kwargs) -> Any:
        try:
            return await asyncio.to_thread(func, *args, **kwargs)
        except DuplicateKeyError as e:
            logger.error(f"{failure}: {e}")
            raise WriteConflict(f"{failure}: {e}") from e
        except PyMongoError as e:
            logger.error(f"{failure}: {e}")
            raise TransactionFailure(f"{failure}: {e}") from e

    @staticmethod
    def _to_document(memo: Memo) -> Dict[str, Any]:
        return {
            "_id": memo.id,
            "text": memo.text,
            "createdAt": _serialize_date(memo.created_at),
            "updatedAt": _serialize_date(memo.updated_at),
        }

    @staticmethod
    def _to_memo(document: Dict[str, Any]) -> Memo:
        try:
            return Memo(
                id=document["_id"],
                text=document["text"],
                created_at=_parse_date(document["createdAt"]),
                updated_at=_parse_date(document["updatedAt"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise TransactionFailure(
                f"Malformed memo record {document.get('_id')!r}: {e}"
            ) from e

    async def get_all(self) -> List[Memo]:
        await self.initialize()
        documents = await self._run(
            "Failed to get memos",
            self.adapter.find,
            self.collection,
            {},
            sort=[("createdAt", ASCENDING)],
        )
        return [self._to_memo(doc) for doc in documents]

    async def get_by_id(self, memo_id: str) -> Optional[Memo]:
        await self.initialize()
        document = await self._run(
            "Failed to get memo", self.adapter.find_one, self.collection, {"_id": memo_id}
        )
        if document is None:
            return None
        return self._to_memo(document)

    async def create(self, text: str) -> Memo:
        await self.initialize()
        now = _utcnow()
        memo = Memo(id=generate_id(), text=text, created_at=now, updated_at=now)
        await self._run(
            "Failed to create memo",
            self.adapter.insert_one,
            self.collection,
            self._to_document(memo),
        )
        logger.debug(f"Created memo {memo.id}")
        return memo

    async def update(self, memo_id: str, text: str) -> Optional[Memo]:
        await self.initialize()
        existing = await self.get_by_id(memo_id)
        if existing is None:
            logger.warning(f"Memo {memo_id} not found for update")
            return None

        now = _utcnow()
        if now <= existing.updated_at:
            now = existing.updated_at + timedelta(microseconds=1)
        updated = existing.model_copy(update={"text": text, "updated_at": now})

        # Upsert mirrors a put: a delete that lands after the read is overwritten
        await self._run(
            "Failed to update memo",
            self.adapter.replace_one,
            self.collection,
            {"_id": memo_id},
            self._to_document(updated),
            upsert=True,
        )
        logger.debug(f"Updated memo {memo_id}")
        return updated

    async def delete(self, memo_id: str) -> bool:
        await self.initialize()
        existing = await self.get_by_id(memo_id)
        if existing is None:
            logger.warning(f"Memo {memo_id} not found for delete")
            return False

        await self._run(
            "Failed to delete memo",
            self.adapter.delete_one,
            self.collection,
            {"_id": memo_id},
        )
        logger.debug(f"Deleted memo {memo_id}")
        return True

    async def close(self) -> None:
        async with self._lock:
            self._ready = False
            await asyncio.to_thread(self.adapter.close)
        logger.info("Memo storage closed")
