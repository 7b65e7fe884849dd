# src/unifydb/adapters/MongoDBAdapter.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from pymongo import MongoClient, monitoring
from tenacity import Retrying, before_sleep_log, stop_after_attempt, wait_exponential

from ..base.DocumentStoreAdapter import DocumentStoreAdapter
from ..decorators import operation
from ..errors import ConnectionError
from ..models import ConnectionStatus, MongoDBOptions
from ..types import (
    DeleteResult,
    InsertManyResult,
    InsertResult,
    JsonDict,
    Lookup,
    OperationResult,
    UpdateResult,
)

SortSpec = Union[Mapping[str, int], Sequence[Tuple[str, int]]]


def _key_list(keys: SortSpec) -> List[Tuple[str, int]]:
    if isinstance(keys, Mapping):
        return list(keys.items())
    return [tuple(item) for item in keys]  # type: ignore[misc]


def _id_str(value: Any) -> Optional[str]:
    return str(value) if value is not None else None


class _TopologyStatusListener(monitoring.TopologyListener):
    """Feeds driver topology events into the adapter status"""

    def __init__(self, adapter: MongoDBAdapter):
        self.adapter = adapter

    def opened(self, event):
        self.adapter._transition(ConnectionStatus.DISCONNECTED, ConnectionStatus.CONNECTING)
        self.adapter.logger.debug("MongoDB topology opened")

    def description_changed(self, event):
        # Only losing every writable server counts; single members come and go
        adapter = self.adapter
        if event.new_description.has_writable_server():
            if adapter._db is not None and adapter._transition(
                ConnectionStatus.ERROR, ConnectionStatus.CONNECTED
            ):
                adapter.logger.info("MongoDB server reachable again")
        elif adapter._transition(ConnectionStatus.CONNECTED, ConnectionStatus.ERROR):
            adapter.logger.error("MongoDB client error: no writable server available")

    def closed(self, event):
        self.adapter._set_status(ConnectionStatus.DISCONNECTED)
        self.adapter.logger.debug("MongoDB topology closed")


class _PoolLogListener(monitoring.ConnectionPoolListener):
    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def pool_created(self, event):
        self.logger.debug("MongoDB connection pool created")

    def pool_closed(self, event):
        self.logger.debug("MongoDB connection pool closed")

    def pool_ready(self, event):
        pass

    def pool_cleared(self, event):
        pass

    def connection_created(self, event):
        pass

    def connection_ready(self, event):
        pass

    def connection_closed(self, event):
        pass

    def connection_check_out_started(self, event):
        pass

    def connection_check_out_failed(self, event):
        pass

    def connection_checked_out(self, event):
        pass

    def connection_checked_in(self, event):
        pass


class MongoDBAdapter(DocumentStoreAdapter):
    """MongoDB facade returning OperationResult envelopes"""

    not_connected_message = "Not connected to MongoDB"

    def __init__(
        self,
        options: MongoDBOptions,
        logger: Optional[logging.Logger] = None,
        enable_logging: bool = True,
    ):
        super().__init__(logger, enable_logging)
        self.options = options
        self.db_name = options.db_name
        self.max_reconnect_attempts = options.max_reconnect_attempts
        self.reconnect_attempts = 0
        self._reconnect_wait = wait_exponential(multiplier=0.5, min=0.5, max=6)
        self._db = None
        self._client: Optional[MongoClient] = self._create_client()

    def _create_client(self) -> MongoClient:
        # connect=False: nothing touches the network until connect()
        return MongoClient(
            self.options.uri,
            connect=False,
            event_listeners=[_TopologyStatusListener(self), _PoolLogListener(self.logger)],
            **self.options.options.to_client_kwargs(),
        )

    def _open(self) -> None:
        if self._client is None:
            self._client = self._create_client()
        self._client.admin.command("ping")
        self._db = self._client[self.db_name]
        self._set_status(ConnectionStatus.CONNECTED)

    def _close_client(self) -> None:
        client, self._client = self._client, None
        self._db = None
        if client is not None:
            client.close()

    # Lifecycle

    @operation("Failed to connect to MongoDB", requires_connection=False)
    def connect(self) -> OperationResult[None]:
        self._set_status(ConnectionStatus.CONNECTING)
        self.logger.info("Connecting to MongoDB...")
        try:
            self._open()
        except Exception:
            self._set_status(ConnectionStatus.ERROR)
            raise

        self.reconnect_attempts = 0
        self.logger.info(f"Successfully connected to MongoDB database: {self.db_name}")
        return OperationResult.ok(message="Connected to MongoDB")

    @operation("Error disconnecting from MongoDB", requires_connection=False)
    def disconnect(self) -> OperationResult[None]:
        self.logger.info("Disconnecting from MongoDB...")
        self._close_client()
        self._set_status(ConnectionStatus.DISCONNECTED)
        self.logger.info("Successfully disconnected from MongoDB")
        return OperationResult.ok(message="Disconnected from MongoDB")

    def _reconnect_attempt(self) -> None:
        self.reconnect_attempts += 1
        self.logger.info(
            f"MongoDB reconnect attempt {self.reconnect_attempts}/{self.max_reconnect_attempts}"
        )
        # Closing the old topology reports disconnected, so mark reconnecting after it
        self._close_client()
        self._set_status(ConnectionStatus.RECONNECTING)
        self._open()

    @operation("Failed to reconnect to MongoDB", requires_connection=False)
    def reconnect(self) -> OperationResult[None]:
        self.reconnect_attempts = 0
        self._set_status(ConnectionStatus.RECONNECTING)
        retrying = Retrying(
            stop=stop_after_attempt(self.max_reconnect_attempts),
            wait=self._reconnect_wait,
            before_sleep=before_sleep_log(self.logger, logging.WARNING),
            reraise=True,
        )
        try:
            retrying(self._reconnect_attempt)
        except Exception:
            self._set_status(ConnectionStatus.ERROR)
            raise

        attempts = self.reconnect_attempts
        self.reconnect_attempts = 0
        self.logger.info(f"Reconnected to MongoDB after {attempts} attempt(s)")
        return OperationResult.ok(message="Reconnected to MongoDB")

    def is_connected(self) -> bool:
        return self._status == ConnectionStatus.CONNECTED and self._db is not None

    def get_collection(self, collection: str):
        """Raw pymongo collection; raises ConnectionError when not connected"""
        if self._db is None:
            raise ConnectionError("Not connected to MongoDB. Call connect() first.")
        return self._db[collection]

    # CRUD

    @operation("Error inserting document into {collection}")
    def insert_one(self, collection: str, document: JsonDict) -> InsertResult:
        # Copy so the driver's generated _id does not leak into the caller's dict
        result = self.get_collection(collection).insert_one(dict(document))
        insert_result = InsertResult(
            inserted_id=str(result.inserted_id),
            acknowledged=result.acknowledged,
        )
        self.logger.debug(f"Document inserted into {collection}: {insert_result}")
        return insert_result

    @operation("Error inserting documents into {collection}")
    def insert_many(self, collection: str, documents: List[JsonDict]) -> InsertManyResult:
        result = self.get_collection(collection).insert_many([dict(d) for d in documents])
        inserted_ids = [str(i) for i in result.inserted_ids]
        self.logger.debug(f"{len(documents)} documents inserted into {collection}")
        return InsertManyResult(inserted_ids=inserted_ids, inserted_count=len(inserted_ids))

    @operation("Error finding documents in {collection}")
    def find(
        self,
        collection: str,
        query: Optional[Lookup] = None,
        limit: Optional[int] = None,
        skip: Optional[int] = None,
        sort: Optional[SortSpec] = None,
    ) -> List[JsonDict]:
        cursor = self.get_collection(collection).find(query or {})

        if sort:
            cursor = cursor.sort(_key_list(sort))
        if skip:
            cursor = cursor.skip(skip)
        if limit:
            cursor = cursor.limit(limit)

        documents = list(cursor)
        self.logger.debug(f"Found {len(documents)} documents in {collection}")
        return documents

    @operation("Error finding document in {collection}")
    def find_one(self, collection: str, query: Lookup) -> Optional[JsonDict]:
        document = self.get_collection(collection).find_one(query)
        self.logger.debug(f"Found document in {collection}: {document is not None}")
        return document

    def _update_result(self, result) -> UpdateResult:
        upserted_id = _id_str(result.upserted_id)
        return UpdateResult(
            acknowledged=result.acknowledged,
            modified_count=result.modified_count,
            matched_count=result.matched_count,
            upserted_count=1 if upserted_id is not None else 0,
            upserted_id=upserted_id,
        )

    @operation("Error updating document in {collection}")
    def update_one(
        self, collection: str, query: Lookup, update: Dict[str, Any], upsert: bool = False
    ) -> UpdateResult:
        result = self.get_collection(collection).update_one(query, update, upsert=upsert)
        update_result = self._update_result(result)
        self.logger.debug(f"Document updated in {collection}: {update_result}")
        return update_result

    @operation("Error updating documents in {collection}")
    def update_many(
        self, collection: str, query: Lookup, update: Dict[str, Any], upsert: bool = False
    ) -> UpdateResult:
        result = self.get_collection(collection).update_many(query, update, upsert=upsert)
        update_result = self._update_result(result)
        self.logger.debug(f"Documents updated in {collection}: {update_result}")
        return update_result

    @operation("Error deleting document from {collection}")
    def delete_one(self, collection: str, query: Lookup) -> DeleteResult:
        result = self.get_collection(collection).delete_one(query)
        delete_result = DeleteResult(
            acknowledged=result.acknowledged, deleted_count=result.deleted_count
        )
        self.logger.debug(f"Document deleted from {collection}: {delete_result}")
        return delete_result

    @operation("Error deleting documents from {collection}")
    def delete_many(self, collection: str, query: Lookup) -> DeleteResult:
        result = self.get_collection(collection).delete_many(query)
        delete_result = DeleteResult(
            acknowledged=result.acknowledged, deleted_count=result.deleted_count
        )
        self.logger.debug(f"Documents deleted from {collection}: {delete_result}")
        return delete_result

    @operation("Error counting documents in {collection}")
    def count_documents(self, collection: str, query: Optional[Lookup] = None) -> int:
        count = self.get_collection(collection).count_documents(query or {})
        self.logger.debug(f"Counted {count} documents in {collection}")
        return count

    @operation("Error creating index on {collection}")
    def create_index(
        self,
        collection: str,
        keys: SortSpec,
        unique: Optional[bool] = None,
        background: Optional[bool] = None,
        name: Optional[str] = None,
    ) -> str:
        index_options = {
            k: v
            for k, v in (("unique", unique), ("background", background), ("name", name))
            if v is not None
        }
        index_name = self.get_collection(collection).create_index(_key_list(keys), **index_options)
        self.logger.debug(f"Index created on {collection}: {index_name}")
        return index_name

    # Raising helpers kept for callers written against the older API

    def add_document(self, collection: str, data: JsonDict) -> None:
        self.insert_one(collection, data).unwrap()

    def get_documents(self, collection: str, query: Optional[Lookup] = None) -> List[JsonDict]:
        return self.find(collection, query or {}).unwrap() or []

    def delete_document(self, collection: str, query: Lookup) -> None:
        self.delete_one(collection, query).unwrap()

    def update_document(self, collection: str, query: Lookup, update: JsonDict) -> None:
        self.update_one(collection, query, {"$set": update}).unwrap()
