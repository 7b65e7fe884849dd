# src/unifydb/__init__.py
"""
UnifyDB - one result envelope and connection model over MongoDB and Firestore
"""

__version__ = "1.0.0"

from .databaseFactory import DB, DatabaseFactory
from .factory import CloudDatabaseFactory, options_from_env
from .models import (
    Backend,
    ConnectionStatus,
    DBOptions,
    FirebaseOptions,
    MongoClientSettings,
    MongoDBOptions,
)
from .query import Operator, OrderBy, QueryBuilder, WhereCondition
from .types import (
    AddResult,
    BatchOperation,
    DeleteResult,
    DocumentChanges,
    InsertManyResult,
    InsertResult,
    OperationResult,
    UpdateResult,
)
from .adapters.MongoDBAdapter import MongoDBAdapter
from .adapters.FirestoreAdapter import FirestoreAdapter
from .errors import (
    CloudDBError,
    NoSQLError,
    ConnectionError,
    ValidationError,
    UnifyDBError,
    AdapterConfigurationError,
)

__all__ = [
    # Facade
    "DB",
    "DatabaseFactory",
    "CloudDatabaseFactory",
    "options_from_env",
    # Adapters
    "MongoDBAdapter",
    "FirestoreAdapter",
    # Models & Config
    "Backend",
    "ConnectionStatus",
    "DBOptions",
    "FirebaseOptions",
    "MongoClientSettings",
    "MongoDBOptions",
    # Query
    "Operator",
    "OrderBy",
    "QueryBuilder",
    "WhereCondition",
    # Results
    "AddResult",
    "BatchOperation",
    "DeleteResult",
    "DocumentChanges",
    "InsertManyResult",
    "InsertResult",
    "OperationResult",
    "UpdateResult",
    # Errors
    "CloudDBError",
    "NoSQLError",
    "ConnectionError",
    "ValidationError",
    "UnifyDBError",
    "AdapterConfigurationError",
]
