from abc import ABC, abstractmethod
from typing import Dict, List, Optional


class DataStorageProvider(ABC):
    """Interface for document storage providers.

    All methods are blocking; async callers dispatch them to a worker thread.
    """

    @abstractmethod
    def connect(self) -> None:
        """Open the connection. Raises the driver's error if unreachable."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Release the connection. Safe to call when not connected."""
        pass

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        """Whether a connection is currently open."""
        pass

    @abstractmethod
    def create_collection(self, name: str) -> None:
        """Create a new collection if it does not exist."""
        pass

    @abstractmethod
    def collection_exists(self, name: str) -> bool:
        """Check if collection exists."""
        pass

    @abstractmethod
    def list_indexes(self, collection: str) -> List[str]:
        """Return the names of the indexes defined on a collection."""
        pass

    @abstractmethod
    def create_index(self, collection: str, keys: List, **kwargs) -> None:
        """Create an index."""
        pass

    @abstractmethod
    def insert_one(self, collection: str, document: Dict) -> str:
        """Insert a document into a collection."""
        pass

    @abstractmethod
    def find_one(self, collection: str, query: Dict) -> Optional[Dict]:
        """Find a single document."""
        pass

    @abstractmethod
    def find(self, collection: str, query: Dict, sort: Optional[List] = None) -> List[Dict]:
        """Find documents matching query, optionally sorted."""
        pass

    @abstractmethod
    def replace_one(self, collection: str, query: Dict, document: Dict, upsert: bool = False) -> bool:
        """Replace a whole document."""
        pass

    @abstractmethod
    def delete_one(self, collection: str, query: Dict) -> bool:
        """Delete a document."""
        pass
