from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from .decorators import operation
from .errors import AdapterConfigurationError, ConnectionError
from .factory import CloudDatabaseFactory, options_from_env
from .models import Backend, ConnectionStatus, DBOptions, FirebaseOptions, MongoDBOptions
from .types import OperationResult
from .utils import disabled_level, setup_logger

BackendFlags = Dict[str, bool]


class DatabaseFactory:
    """
    Single entry point over MongoDB and Firestore.

    Holds zero, one or two adapters (``mongo`` and ``firebase``) depending on
    the options, and fans connect/disconnect/health out to whichever exist.

    Usage:
        db = DatabaseFactory(mongodb=MongoDBOptions(uri, "app"))
        db.connect()
        db.mongo.insert_one("users", {"name": "Ada"})
    """

    def __init__(
        self,
        options: Optional[DBOptions] = None,
        *,
        mongodb: Optional[MongoDBOptions] = None,
        firebase: Optional[FirebaseOptions] = None,
        logger: Optional[logging.Logger] = None,
        enable_logging: bool = True,
        cloud_factory: Optional[CloudDatabaseFactory] = None,
    ):
        if options is None:
            options = DBOptions(
                mongodb=mongodb, firebase=firebase, logger=logger, enable_logging=enable_logging
            )

        if not options.mongodb and not options.firebase:
            raise AdapterConfigurationError(
                "At least one database configuration (mongodb or firebase) must be provided"
            )

        self.options = options
        self.logger = options.logger or setup_logger(
            "unifydb", logging.INFO if options.enable_logging else disabled_level()
        )
        self._cloud_factory = cloud_factory or CloudDatabaseFactory(options)

        self.mongo = None
        self.firebase = None

        if options.mongodb:
            try:
                self.mongo = self._cloud_factory.get_mongodb(self.logger)
                self.logger.info("MongoDB instance created successfully")
            except Exception as e:
                self.logger.error(f"Failed to create MongoDB instance: {str(e)}")
                raise

        if options.firebase:
            try:
                self.firebase = self._cloud_factory.get_firestore(self.logger)
                self.logger.info("Firebase instance created successfully")
            except Exception as e:
                self.logger.error(f"Failed to create Firebase instance: {str(e)}")
                raise

    @classmethod
    def from_env(cls, load_env_file: bool = True) -> DatabaseFactory:
        return cls(options_from_env(load_env_file))

    def _adapters(self) -> List[Tuple[Backend, Any]]:
        adapters = []
        if self.mongo is not None:
            adapters.append((Backend.MONGODB, self.mongo))
        if self.firebase is not None:
            adapters.append((Backend.FIREBASE, self.firebase))
        return adapters

    def _merge(
        self, results: BackendFlags, errors: List[str], action: str, done: str
    ) -> OperationResult[BackendFlags]:
        if all(results.values()):
            self.logger.info(f"All databases {done} successfully")
            return OperationResult.ok(results, message=f"All databases {done}")

        message = f"Some databases failed to {action}: {', '.join(errors)}"
        self.logger.error(message)
        return OperationResult(
            success=False, data=results, error=ConnectionError(message), message=message
        )

    def connect(self) -> OperationResult[BackendFlags]:
        """Connect every configured backend; data maps backend name to success"""
        results: BackendFlags = {}
        errors: List[str] = []

        if self.mongo is not None:
            mongo_result = self.mongo.connect()
            results[Backend.MONGODB.value] = mongo_result.success
            if not mongo_result.success:
                errors.append(f"MongoDB: {mongo_result.error or 'Connection failed'}")

        # Firestore connects while the adapter is built
        if self.firebase is not None:
            results[Backend.FIREBASE.value] = self.firebase.is_connected()
            if not results[Backend.FIREBASE.value]:
                errors.append("Firebase: Connection failed during initialization")

        return self._merge(results, errors, "connect", "connected")

    def disconnect(self) -> OperationResult[BackendFlags]:
        results: BackendFlags = {}
        errors: List[str] = []

        if self.mongo is not None:
            mongo_result = self.mongo.disconnect()
            results[Backend.MONGODB.value] = mongo_result.success
            if not mongo_result.success:
                errors.append(f"MongoDB: {mongo_result.error or 'Disconnection failed'}")

        # The Firestore client needs no explicit teardown
        if self.firebase is not None:
            results[Backend.FIREBASE.value] = True

        return self._merge(results, errors, "disconnect", "disconnected")

    def get_connection_status(self) -> Dict[str, ConnectionStatus]:
        return {
            backend.value: adapter.get_connection_status()
            for backend, adapter in self._adapters()
        }

    def is_connected(self) -> bool:
        """True when every configured backend is connected"""
        return all(adapter.is_connected() for _, adapter in self._adapters())

    @operation("Error checking health status", requires_connection=False)
    def get_health_status(self) -> Dict[str, Any]:
        health: Dict[str, Any] = {
            backend.value: {
                "connected": adapter.is_connected(),
                "status": adapter.get_connection_status(),
            }
            for backend, adapter in self._adapters()
        }
        health["overall"] = self.is_connected()

        self.logger.debug(f"Health status checked: {health}")
        return health

    def __enter__(self) -> DatabaseFactory:
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.disconnect()


DB = DatabaseFactory
