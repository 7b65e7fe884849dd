from unittest import mock

import pytest

from unifydb.adapters import FirestoreAdapter as firestore_module
from unifydb.adapters.FirestoreAdapter import FirestoreAdapter, clear_client_cache
from unifydb.adapters.MongoDBAdapter import MongoDBAdapter
from unifydb.models import FirebaseOptions, MongoDBOptions


@pytest.fixture
def mongo_client_cls():
    """Patched MongoClient class; every instance is the same MagicMock"""
    with mock.patch("unifydb.adapters.MongoDBAdapter.MongoClient") as client_cls:
        client = client_cls.return_value
        client.admin.command.return_value = {"ok": 1.0}
        yield client_cls


@pytest.fixture
def mongo_options():
    return MongoDBOptions(uri="mongodb://localhost:27017", db_name="test")


@pytest.fixture
def mongo_adapter(mongo_client_cls, mongo_options):
    return MongoDBAdapter(mongo_options, enable_logging=False)


@pytest.fixture
def connected_mongo(mongo_adapter):
    assert mongo_adapter.connect().success
    return mongo_adapter


@pytest.fixture
def mongo_collection(mongo_client_cls):
    # client[db_name][collection]
    return mongo_client_cls.return_value.__getitem__.return_value.__getitem__.return_value


@pytest.fixture(autouse=True)
def _reset_firestore_clients():
    clear_client_cache()
    yield
    clear_client_cache()


@pytest.fixture
def firestore_client():
    client = mock.MagicMock(name="firestore.Client")
    query = client.collection.return_value
    for method in ("where", "order_by", "limit", "start_after"):
        getattr(query, method).return_value = query
    return client


@pytest.fixture
def firestore_adapter(firestore_client):
    return FirestoreAdapter(FirebaseOptions(client=firestore_client), enable_logging=False)


@pytest.fixture
def passthrough_transactional():
    with mock.patch.object(firestore_module.firestore, "transactional", lambda func: func):
        yield


@pytest.fixture
def make_snapshot():
    def _make(doc_id, data=None, exists=True):
        snap = mock.MagicMock()
        snap.id = doc_id
        snap.exists = exists
        snap.to_dict.return_value = data if exists else None
        return snap

    return _make
