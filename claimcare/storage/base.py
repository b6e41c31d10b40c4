# claimcare/storage/base.py
"""Base storage interface."""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Generic, TypeVar, Optional, List, Dict, Any, Iterator
from pathlib import Path
import json
import threading
from datetime import datetime, date

from claimcare.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar('T')


class JSONEncoder(json.JSONEncoder):
    """Custom JSON encoder for datetime and date objects."""

    def default(self, obj):
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, date):
            return obj.isoformat()
        return super().default(obj)


class KeyedLocks:
    """One lock per key, so writers on different keys never wait on each other."""

    def __init__(self):
        self._registry_lock = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}

    def get(self, key: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self.get(key):
            yield


class BaseStore(ABC, Generic[T]):
    """In-memory entity store with optional JSON-file persistence."""

    def __init__(self, data_dir: Optional[str] = None, filename: str = "store.json"):
        self.data_dir = Path(data_dir) if data_dir else None
        self.filepath = self.data_dir / filename if self.data_dir else None
        self._ensure_directory()
        self._cache: Dict[str, T] = {}
        self._loaded = False
        self._load_lock = threading.Lock()
        self._file_lock = threading.Lock()
        self.locks = KeyedLocks()

    def _ensure_directory(self):
        """Ensure data directory exists."""
        if self.data_dir:
            self.data_dir.mkdir(parents=True, exist_ok=True)

    def _load_data(self) -> Dict[str, Any]:
        """Load data from JSON file."""
        if not self.filepath or not self.filepath.exists():
            return {}
        try:
            with open(self.filepath, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to load {self.filepath}: {e}")
            return {}

    def _save_data(self):
        """Save the cache to the JSON file, when persistence is enabled."""
        if not self.filepath:
            return
        data = {k: self._serialize(v) for k, v in list(self._cache.items())}
        with self._file_lock:
            try:
                with open(self.filepath, 'w', encoding='utf-8') as f:
                    json.dump(data, f, indent=2, cls=JSONEncoder)
            except OSError as e:
                logger.error(f"Failed to save {self.filepath}: {e}")
                raise

    @abstractmethod
    def _serialize(self, entity: T) -> Dict[str, Any]:
        """Serialize entity to dict."""
        pass

    @abstractmethod
    def _deserialize(self, data: Dict[str, Any]) -> T:
        """Deserialize dict to entity."""
        pass

    @abstractmethod
    def _get_id(self, entity: T) -> str:
        """Get entity ID."""
        pass

    def _load_all(self) -> Dict[str, T]:
        """Load and deserialize all entities."""
        if not self._loaded:
            with self._load_lock:
                if not self._loaded:
                    for key, value in self._load_data().items():
                        try:
                            self._cache[key] = self._deserialize(value)
                        except ValueError as e:
                            logger.error(f"Failed to deserialize {key}: {e}")
                    self._loaded = True
        return self._cache

    def save(self, entity: T) -> T:
        """Save an entity."""
        self._load_all()
        entity_id = self._get_id(entity)
        self._cache[entity_id] = entity
        self._save_data()
        logger.debug(f"Saved entity: {entity_id}")
        return entity

    def get(self, entity_id: str) -> Optional[T]:
        """Get entity by ID."""
        return self._load_all().get(entity_id)

    def get_all(self) -> List[T]:
        """Get all entities."""
        return list(self._load_all().values())

    def count(self) -> int:
        """Count total entities."""
        return len(self._load_all())
