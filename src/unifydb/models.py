"""
Data models and configurations
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union
from enum import Enum


class Backend(Enum):
    """Supported document stores"""
    MONGODB = "mongodb"
    FIREBASE = "firebase"


class ConnectionStatus(Enum):
    """Connection state of a single backend adapter"""
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    RECONNECTING = "reconnecting"
    ERROR = "error"


@dataclass
class MongoClientSettings:
    """Pool and timeout settings passed through to MongoClient"""
    max_pool_size: Optional[int] = 10
    min_pool_size: Optional[int] = 2
    max_idle_time_ms: Optional[int] = 30000
    server_selection_timeout_ms: Optional[int] = 5000
    socket_timeout_ms: Optional[int] = 45000
    retry_writes: Optional[bool] = True
    retry_reads: Optional[bool] = True

    def to_client_kwargs(self) -> Dict[str, Any]:
        # Unset or zero values fall back to the defaults
        defaults = MongoClientSettings()
        return {
            "maxPoolSize": self.max_pool_size or defaults.max_pool_size,
            "minPoolSize": self.min_pool_size or defaults.min_pool_size,
            "maxIdleTimeMS": self.max_idle_time_ms or defaults.max_idle_time_ms,
            "serverSelectionTimeoutMS": self.server_selection_timeout_ms
            or defaults.server_selection_timeout_ms,
            "socketTimeoutMS": self.socket_timeout_ms or defaults.socket_timeout_ms,
            "retryWrites": defaults.retry_writes if self.retry_writes is None else self.retry_writes,
            "retryReads": defaults.retry_reads if self.retry_reads is None else self.retry_reads,
        }


@dataclass
class MongoDBOptions:
    """MongoDB connection options"""
    uri: str
    db_name: str
    options: MongoClientSettings = field(default_factory=MongoClientSettings)
    max_reconnect_attempts: int = 5


@dataclass
class FirebaseOptions:
    """
    Firestore configuration

    ``service_account`` is either the parsed service account JSON or a path
    to the file. A pre-built ``client`` skips credential loading entirely.
    """
    service_account: Optional[Union[Dict[str, Any], str]] = None
    project_id: Optional[str] = None
    database: Optional[str] = None
    client: Optional[Any] = None


@dataclass
class DBOptions:
    """Top-level configuration for the facade"""
    mongodb: Optional[MongoDBOptions] = None
    firebase: Optional[FirebaseOptions] = None
    logger: Optional[logging.Logger] = None
    enable_logging: bool = True
