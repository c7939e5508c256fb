import json
import threading
import pytest
from unittest.mock import MagicMock, patch
from pymongo.errors import PyMongoError

from talentrank.services.credentials import CredentialStore
from talentrank.services.db import CANDIDATES, JsonFileStore, MongoStore, create_store
from talentrank.utils.exceptions import AuthenticationError, ConfigurationError, StorageError


class TestJsonFileStore:
    """Whole-document JSON persistence"""

    def test_missing_file_reads_empty(self, store):
        assert store.read(CANDIDATES) == {}
        assert store.get(CANDIDATES, "Engineer", "c1") is None
        assert store.scan(CANDIDATES, "Engineer") == {}

    def test_empty_file_reads_empty(self, store):
        store.data_dir.mkdir(parents=True)
        store.path_for(CANDIDATES).write_text("  \n", encoding="utf-8")
        assert store.read(CANDIDATES) == {}

    def test_put_get_scan(self, store):
        store.put(CANDIDATES, "Engineer", "c1", record={"name": "Ada"})
        store.put(CANDIDATES, "Engineer", "c2", record={"name": "Grace"})
        store.put(CANDIDATES, "Designer", "c3", record={"name": "Alan"})

        assert store.get(CANDIDATES, "Engineer", "c1") == {"name": "Ada"}
        assert set(store.scan(CANDIDATES, "Engineer")) == {"c1", "c2"}
        assert set(store.scan(CANDIDATES)) == {"Engineer", "Designer"}

    def test_file_is_pretty_utf8_json(self, store):
        store.put(CANDIDATES, "Engineer", "c1", record={"name": "José"})

        content = store.path_for(CANDIDATES).read_text(encoding="utf-8")
        assert "José" in content
        assert content.startswith("{\n  ")
        assert json.loads(content) == {"Engineer": {"c1": {"name": "José"}}}

    def test_corrupt_file_raises_storage_error(self, store):
        store.data_dir.mkdir(parents=True)
        store.path_for(CANDIDATES).write_text("{not json", encoding="utf-8")
        with pytest.raises(StorageError):
            store.read(CANDIDATES)

    def test_failed_write_leaves_no_temp_file(self, store):
        store.put(CANDIDATES, "Engineer", "c1", record={"name": "Ada"})
        document = {}
        document["self"] = document

        with pytest.raises(StorageError):
            store.write(CANDIDATES, document)

        assert list(store.data_dir.glob("*.tmp")) == []
        assert store.get(CANDIDATES, "Engineer", "c1") == {"name": "Ada"}

    def test_put_requires_key(self, store):
        with pytest.raises(StorageError):
            store.put(CANDIDATES, record={})

    def test_concurrent_puts_are_not_lost(self, store):
        def worker(i):
            store.put(CANDIDATES, "Engineer", f"c{i}", record={"i": i})

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(20)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(store.scan(CANDIDATES, "Engineer")) == 20


class TestMongoStore:
    """Single-document-per-store MongoDB backend"""

    def test_read_missing_document(self):
        collection = MagicMock()
        collection.find_one.return_value = None
        assert MongoStore(collection).read(CANDIDATES) == {}

    def test_read_returns_copy_of_document(self):
        document = {"Engineer": {"c1": {"name": "Ada"}}}
        collection = MagicMock()
        collection.find_one.return_value = {"_id": CANDIDATES, "document": document}

        result = MongoStore(collection).read(CANDIDATES)
        result["Engineer"]["c1"]["name"] = "changed"

        assert document["Engineer"]["c1"]["name"] == "Ada"
        collection.find_one.assert_called_once_with({"_id": CANDIDATES})

    def test_write_upserts(self):
        collection = MagicMock()
        MongoStore(collection).write(CANDIDATES, {"Engineer": {}})

        collection.replace_one.assert_called_once_with(
            {"_id": CANDIDATES}, {"_id": CANDIDATES, "document": {"Engineer": {}}}, upsert=True
        )

    def test_driver_errors_become_storage_errors(self):
        collection = MagicMock()
        collection.find_one.side_effect = PyMongoError("down")
        collection.replace_one.side_effect = PyMongoError("down")
        store = MongoStore(collection)

        with pytest.raises(StorageError):
            store.read(CANDIDATES)
        with pytest.raises(StorageError):
            store.write(CANDIDATES, {})


class TestCreateStore:
    def test_json_backend(self, tmp_path):
        with patch.dict("os.environ", {"STORE_BACKEND": "json", "DATA_DIR": str(tmp_path)}):
            store = create_store()
        assert isinstance(store, JsonFileStore)
        assert str(store.data_dir) == str(tmp_path)

    @patch("talentrank.services.db.MongoClient")
    def test_mongo_backend(self, mock_client):
        with patch.dict("os.environ", {"STORE_BACKEND": "mongo", "MONGO_DETAILS": "mongodb://db", "DB_NAME": "t"}):
            store = create_store()
        assert isinstance(store, MongoStore)
        mock_client.assert_called_once_with("mongodb://db")

    def test_mongo_backend_requires_url(self):
        with patch.dict("os.environ", {"STORE_BACKEND": "mongo", "MONGO_DETAILS": ""}):
            with pytest.raises(ConfigurationError):
                create_store()

    def test_unknown_backend(self):
        with patch.dict("os.environ", {"STORE_BACKEND": "redis"}):
            with pytest.raises(ConfigurationError):
                create_store()


class TestCredentialStore:
    """Hashed credentials kept apart from domain records"""

    def test_create_and_verify(self, credentials):
        credentials.create("candidate", "c1", "pw")
        credentials.verify("candidate", "c1", "pw")

    @pytest.mark.parametrize("identity,password", [("c1", "bad"), ("c1", ""), ("ghost", "pw")])
    def test_failures_look_the_same(self, credentials, identity, password):
        credentials.create("candidate", "c1", "pw")
        with pytest.raises(AuthenticationError) as exc_info:
            credentials.verify("candidate", identity, password)
        assert exc_info.value.message == "Invalid credentials"

    def test_roles_are_separate(self, credentials):
        credentials.create("candidate", "x", "pw")
        with pytest.raises(AuthenticationError):
            credentials.verify("recruiter", "x", "pw")

    def test_ensure_creates_then_verifies(self, store):
        credentials = CredentialStore(store)
        assert credentials.ensure("recruiter", "acme", "pw") is True
        assert credentials.ensure("recruiter", "acme", "pw") is False
        with pytest.raises(AuthenticationError):
            credentials.ensure("recruiter", "acme", "other")
