import logging
from unittest import mock

import pytest
from pymongo.errors import ServerSelectionTimeoutError

from unifydb import DB, DatabaseFactory
from unifydb.errors import AdapterConfigurationError, ConnectionError
from unifydb.models import ConnectionStatus, DBOptions, FirebaseOptions, MongoDBOptions


@pytest.fixture
def firebase_options(firestore_client):
    return FirebaseOptions(client=firestore_client)


@pytest.fixture
def quiet_logger():
    logger = logging.getLogger("unifydb.tests")
    logger.addHandler(logging.NullHandler())
    logger.propagate = False
    return logger


class TestConstruction:
    def test_requires_a_backend(self):
        with pytest.raises(
            AdapterConfigurationError,
            match=r"At least one database configuration \(mongodb or firebase\) must be provided",
        ):
            DB(DBOptions())

    def test_mongodb_only(self, mongo_client_cls, mongo_options):
        db = DB(mongodb=mongo_options, enable_logging=False)

        assert db.mongo is not None
        assert db.firebase is None

    def test_firebase_only(self, firebase_options):
        db = DB(firebase=firebase_options, enable_logging=False)

        assert db.firebase is not None
        assert db.mongo is None

    def test_both_share_the_injected_logger(
        self, mongo_client_cls, mongo_options, firebase_options, quiet_logger
    ):
        db = DatabaseFactory(
            DBOptions(mongodb=mongo_options, firebase=firebase_options, logger=quiet_logger)
        )

        assert db.mongo.logger is quiet_logger
        assert db.firebase.logger is quiet_logger

    def test_adapter_construction_error_propagates(self):
        with pytest.raises(ConnectionError):
            DB(
                firebase=FirebaseOptions(service_account="/missing/service-account.json"),
                enable_logging=False,
            )

    def test_alias(self):
        assert DB is DatabaseFactory


class TestConnection:
    def test_connect_all(self, mongo_client_cls, mongo_options, firebase_options):
        db = DB(mongodb=mongo_options, firebase=firebase_options, enable_logging=False)

        result = db.connect()

        assert result.success is True
        assert result.data == {"mongodb": True, "firebase": True}
        assert db.is_connected() is True

    def test_connect_partial_failure(self, mongo_client_cls, mongo_options, firebase_options):
        mongo_client_cls.return_value.admin.command.side_effect = ServerSelectionTimeoutError("down")
        db = DB(mongodb=mongo_options, firebase=firebase_options, enable_logging=False)

        result = db.connect()

        assert result.success is False
        assert result.data == {"mongodb": False, "firebase": True}
        assert result.message == "Some databases failed to connect: MongoDB: down"
        assert isinstance(result.error, ConnectionError)
        assert db.is_connected() is False

    def test_firebase_init_state_is_reported(self, firebase_options):
        db = DB(firebase=firebase_options, enable_logging=False)
        db.firebase._set_status(ConnectionStatus.ERROR)

        result = db.connect()

        assert result.success is False
        assert result.data == {"firebase": False}
        assert "Firebase: Connection failed during initialization" in result.message

    def test_disconnect(self, mongo_client_cls, mongo_options, firebase_options):
        db = DB(mongodb=mongo_options, firebase=firebase_options, enable_logging=False)
        db.connect()

        result = db.disconnect()

        assert result.success is True
        assert result.data == {"mongodb": True, "firebase": True}
        assert db.get_connection_status() == {
            "mongodb": ConnectionStatus.DISCONNECTED,
            "firebase": ConnectionStatus.CONNECTED,
        }

    def test_disconnect_failure(self, mongo_client_cls, mongo_options):
        db = DB(mongodb=mongo_options, enable_logging=False)
        db.connect()
        mongo_client_cls.return_value.close.side_effect = RuntimeError("stuck")

        result = db.disconnect()

        assert result.success is False
        assert result.data == {"mongodb": False}
        assert result.message == "Some databases failed to disconnect: MongoDB: stuck"

    def test_status_lists_configured_backends_only(self, mongo_client_cls, mongo_options):
        db = DB(mongodb=mongo_options, enable_logging=False)

        assert db.get_connection_status() == {"mongodb": ConnectionStatus.DISCONNECTED}
        assert db.is_connected() is False

    def test_context_manager(self, mongo_client_cls, mongo_options):
        with DB(mongodb=mongo_options, enable_logging=False) as db:
            assert db.is_connected() is True

        assert db.mongo.get_connection_status() == ConnectionStatus.DISCONNECTED
        mongo_client_cls.return_value.close.assert_called_once()


class TestHealth:
    def test_health_status(self, mongo_client_cls, mongo_options, firebase_options):
        db = DB(mongodb=mongo_options, firebase=firebase_options, enable_logging=False)

        result = db.get_health_status()

        assert result.success is True
        assert result.data == {
            "mongodb": {"connected": False, "status": ConnectionStatus.DISCONNECTED},
            "firebase": {"connected": True, "status": ConnectionStatus.CONNECTED},
            "overall": False,
        }

    def test_health_status_failure_is_enveloped(self, firebase_options):
        db = DB(firebase=firebase_options, enable_logging=False)

        with mock.patch.object(db.firebase, "is_connected", side_effect=RuntimeError("boom")):
            result = db.get_health_status()

        assert result.success is False
        assert result.message == "Error checking health status"


class TestFromEnv:
    def test_from_env(self, monkeypatch, mongo_client_cls):
        monkeypatch.setenv("MONGODB_URI", "mongodb://env-host:27017")
        monkeypatch.setenv("MONGODB_DATABASE", "envdb")
        monkeypatch.delenv("FIREBASE_SERVICE_ACCOUNT", raising=False)
        monkeypatch.delenv("UNIFYDB_LOG_LEVEL", raising=False)

        db = DatabaseFactory.from_env(load_env_file=False)

        assert db.mongo.db_name == "envdb"
        assert db.firebase is None
        assert mongo_client_cls.call_args.args == ("mongodb://env-host:27017",)
