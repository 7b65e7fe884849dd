# src/unifydb/factory.py
import logging
import os
from typing import List, Optional

from dotenv import load_dotenv

from .models import Backend, DBOptions, FirebaseOptions, MongoClientSettings, MongoDBOptions
from .utils import setup_logger

logger = logging.getLogger(__name__)


def _env_int(name: str) -> Optional[int]:
    raw = os.getenv(name)
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring non-integer {name}={raw!r}")
        return None


def options_from_env(load_env_file: bool = True) -> DBOptions:
    """
    Build DBOptions from environment variables (and a .env file if present).

    MONGODB_URI enables MongoDB, FIREBASE_SERVICE_ACCOUNT enables Firestore.
    """
    if load_env_file:
        load_dotenv()

    mongodb = None
    mongo_uri = os.getenv("MONGODB_URI")
    if mongo_uri:
        settings = MongoClientSettings(
            max_pool_size=_env_int("MONGODB_MAX_POOL_SIZE"),
            min_pool_size=_env_int("MONGODB_MIN_POOL_SIZE"),
            server_selection_timeout_ms=_env_int("MONGODB_SERVER_SELECTION_TIMEOUT_MS"),
        )
        mongodb = MongoDBOptions(
            uri=mongo_uri,
            db_name=os.getenv("MONGODB_DATABASE", "default"),
            options=settings,
        )

    firebase = None
    service_account = os.getenv("FIREBASE_SERVICE_ACCOUNT")
    if service_account:
        firebase = FirebaseOptions(
            service_account=service_account,
            project_id=os.getenv("FIREBASE_PROJECT_ID") or None,
            database=os.getenv("FIRESTORE_DATABASE") or None,
        )

    level_name = os.getenv("UNIFYDB_LOG_LEVEL")
    db_logger = None
    if level_name:
        level = logging.getLevelName(level_name.upper())
        if isinstance(level, int):
            db_logger = setup_logger("unifydb", level)
        else:
            logger.warning(f"Invalid UNIFYDB_LOG_LEVEL: {level_name}")

    return DBOptions(mongodb=mongodb, firebase=firebase, logger=db_logger)


class CloudDatabaseFactory:
    """Builds the adapters a DBOptions asks for"""

    def __init__(self, options: DBOptions):
        self.options = options

    @property
    def backends(self) -> List[Backend]:
        configured = []
        if self.options.mongodb:
            configured.append(Backend.MONGODB)
        if self.options.firebase:
            configured.append(Backend.FIREBASE)
        return configured

    def get_mongodb(self, logger: Optional[logging.Logger] = None):
        if not self.options.mongodb:
            return None
        from .adapters.MongoDBAdapter import MongoDBAdapter
        return MongoDBAdapter(
            self.options.mongodb, logger=logger, enable_logging=self.options.enable_logging
        )

    def get_firestore(self, logger: Optional[logging.Logger] = None):
        if not self.options.firebase:
            return None
        from .adapters.FirestoreAdapter import FirestoreAdapter
        return FirestoreAdapter(
            self.options.firebase, logger=logger, enable_logging=self.options.enable_logging
        )
