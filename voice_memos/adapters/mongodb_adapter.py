"""
MongoDB adapter for the Voice Memos system.

This adapter implements the DataStorageProvider interface for a local MongoDB server.
"""
import logging
from typing import Any, Callable, Dict, List, Tuple, Optional

from pymongo import MongoClient

from voice_memos.interfaces.providers.data_storage import DataStorageProvider

logger = logging.getLogger(__name__)


class MongoDBAdapter(DataStorageProvider):
    """MongoDB implementation of DataStorageProvider.

    The client is created lazily by connect() and dropped by close(), so one
    adapter can be reopened any number of times.
    """

    def __init__(
        self,
        connection_string: str,
        database_name: str,
        client_factory: Optional[Callable[[str], Any]] = None,
        server_selection_timeout_ms: int = 5000,
    ):
        self.connection_string = connection_string
        self.database_name = database_name
        self.server_selection_timeout_ms = server_selection_timeout_ms
        self._client_factory = client_factory or self._default_client
        self.client = None
        self.db = None

    def _default_client(self, connection_string: str) -> MongoClient:
        return MongoClient(
            connection_string,
            serverSelectionTimeoutMS=self.server_selection_timeout_ms,
            tz_aware=True,
        )

    def connect(self) -> None:
        if self.client is not None:
            return
        client = self._client_factory(self.connection_string)
        db = client[self.database_name]
        try:
            # Forces server selection so an unreachable server fails here
            db.list_collection_names()
        except Exception:
            client.close()
            raise
        self.client = client
        self.db = db
        logger.debug(f"Connected to MongoDB database '{self.database_name}'")

    def close(self) -> None:
        if self.client is None:
            return
        self.client.close()
        self.client = None
        self.db = None
        logger.debug(f"Closed MongoDB database '{self.database_name}'")

    @property
    def is_connected(self) -> bool:
        return self.client is not None

    def create_collection(self, name: str) -> None:
        if name not in self.db.list_collection_names():
            self.db.create_collection(name)

    def collection_exists(self, name: str) -> bool:
        return name in self.db.list_collection_names()

    def list_indexes(self, collection: str) -> List[str]:
        return list(self.db[collection].index_information().keys())

    def create_index(self, collection: str, keys: List[Tuple], **kwargs) -> None:
        self.db[collection].create_index(keys, **kwargs)

    def insert_one(self, collection: str, document: Dict) -> str:
        self.db[collection].insert_one(document)
        return document["_id"]

    def find_one(self, collection: str, query: Dict) -> Optional[Dict]:
        return self.db[collection].find_one(query)

    def find(
        self,
        collection: str,
        query: Dict,
        sort: Optional[List[Tuple]] = None
    ) -> List[Dict]:
        cursor = self.db[collection].find(query)
        if sort:
            cursor = cursor.sort(sort)
        return list(cursor)

    def replace_one(self, collection: str, query: Dict, document: Dict, upsert: bool = False) -> bool:
        result = self.db[collection].replace_one(query, document, upsert=upsert)
        return result.matched_count > 0 or (upsert and result.upserted_id is not None)

    def delete_one(self, collection: str, query: Dict) -> bool:
        result = self.db[collection].delete_one(query)
        return result.deleted_count == 1
