"""
Document stores for candidates, job postings, rankings and credentials.

Every store is one JSON-compatible document nested by key:
``candidates[position][candidate_id]``, ``job_descriptions[position][recruiter_id]``,
``global_ranking[position][candidate_id] -> rank`` and
``credentials[role][identity]``. Reads and writes are whole-document; the
key helpers (``get``/``put``/``scan``) are built on top of them so another
backend only has to implement ``read`` and ``write``.
"""
import copy
import json
import os
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from pymongo import MongoClient
from pymongo.errors import PyMongoError

from talentrank.utils.exceptions import ConfigurationError, StorageError
from talentrank.utils.logging_config import get_logger

logger = get_logger(__name__)

load_dotenv()

CANDIDATES = "candidates"
JOB_DESCRIPTIONS = "job_descriptions"
GLOBAL_RANKING = "global_ranking"
CREDENTIALS = "credentials"


class BaseStore:
    """Whole-document store with per-store locking."""

    def __init__(self):
        self._locks: Dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()

    def read(self, name: str) -> Dict[str, Any]:
        raise NotImplementedError

    def write(self, name: str, document: Dict[str, Any]) -> None:
        raise NotImplementedError

    @contextmanager
    def locked(self, name: str):
        """Hold the store's lock across a read-modify-write."""
        with self._locks_guard:
            lock = self._locks.setdefault(name, threading.RLock())
        with lock:
            yield

    def get(self, name: str, *key: str) -> Optional[Any]:
        node: Any = self.read(name)
        for part in key:
            if not isinstance(node, dict) or part not in node:
                return None
            node = node[part]
        return node

    def scan(self, name: str, *prefix: str) -> Dict[str, Any]:
        node = self.get(name, *prefix) if prefix else self.read(name)
        return node if isinstance(node, dict) else {}

    def put(self, name: str, *key: str, record: Any) -> None:
        if not key:
            raise StorageError("put() needs at least one key part", operation="put", store=name)
        with self.locked(name):
            document = self.read(name)
            node = document
            for part in key[:-1]:
                node = node.setdefault(part, {})
            node[key[-1]] = record
            self.write(name, document)


class JsonFileStore(BaseStore):
    """One pretty-printed UTF-8 JSON file per store; a missing file reads as {}."""

    def __init__(self, data_dir: str):
        super().__init__()
        self.data_dir = Path(data_dir)

    def path_for(self, name: str) -> Path:
        return self.data_dir / f"{name}.json"

    def read(self, name: str) -> Dict[str, Any]:
        path = self.path_for(name)
        if not path.exists():
            return {}
        try:
            content = path.read_text(encoding="utf-8")
            return json.loads(content) if content.strip() else {}
        except (OSError, ValueError) as e:
            logger.error(f"Failed to read store {name} from {path}: {e}")
            raise StorageError(f"Could not read store '{name}'", operation="read", store=name, cause=e) from e

    def write(self, name: str, document: Dict[str, Any]) -> None:
        path = self.path_for(name)
        tmp_path = None
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            # Write to a sibling temp file, then swap it in
            fd, tmp_path = tempfile.mkstemp(prefix=f".{name}.", suffix=".tmp", dir=str(self.data_dir))
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(document, fh, indent=2, ensure_ascii=False, default=str)
            os.replace(tmp_path, path)
        except (OSError, TypeError, ValueError) as e:
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            logger.error(f"Failed to write store {name} to {path}: {e}")
            raise StorageError(f"Could not write store '{name}'", operation="write", store=name, cause=e) from e
        logger.debug(f"Wrote store {name} to {path}")


class MongoStore(BaseStore):
    """Keeps each store as a single document in one MongoDB collection."""

    def __init__(self, collection):
        super().__init__()
        self.collection = collection

    def read(self, name: str) -> Dict[str, Any]:
        try:
            doc = self.collection.find_one({"_id": name})
        except PyMongoError as e:
            logger.error(f"Failed to read store {name} from MongoDB: {e}")
            raise StorageError(f"Could not read store '{name}'", operation="read", store=name, cause=e) from e
        if not doc:
            return {}
        return copy.deepcopy(doc.get("document") or {})

    def write(self, name: str, document: Dict[str, Any]) -> None:
        try:
            self.collection.replace_one(
                {"_id": name},
                {"_id": name, "document": json.loads(json.dumps(document, default=str))},
                upsert=True,
            )
        except PyMongoError as e:
            logger.error(f"Failed to write store {name} to MongoDB: {e}")
            raise StorageError(f"Could not write store '{name}'", operation="write", store=name, cause=e) from e


def create_store() -> BaseStore:
    """Build the store selected by STORE_BACKEND (json or mongo)."""
    backend = os.getenv("STORE_BACKEND", "json").lower()

    if backend == "json":
        data_dir = os.getenv("DATA_DIR", "./data")
        logger.info(f"Using JSON file store in {data_dir}")
        return JsonFileStore(data_dir)

    if backend == "mongo":
        mongo_details = os.getenv("MONGO_DETAILS")
        if not mongo_details:
            raise ConfigurationError("MONGO_DETAILS must be set when STORE_BACKEND=mongo", config_key="MONGO_DETAILS")
        db_name = os.getenv("DB_NAME", "talentrank")
        logger.info(f"Initializing MongoDB store on database: {db_name}")
        client = MongoClient(mongo_details)
        return MongoStore(client[db_name]["stores"])

    raise ConfigurationError(f"Unknown STORE_BACKEND '{backend}'", config_key="STORE_BACKEND", config_value=backend)
