# src/unifydb/adapters/FirestoreAdapter.py
from __future__ import annotations

import json
import logging
import threading
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, TypeVar, Union

from google.cloud import firestore
from google.oauth2 import service_account

from ..base.DocumentStoreAdapter import DocumentStoreAdapter
from ..decorators import operation
from ..errors import ConnectionError, ValidationError
from ..models import ConnectionStatus, FirebaseOptions
from ..query import OrderLike, QueryBuilder, WhereLike
from ..types import (
    AddResult,
    BatchOperation,
    DocumentChanges,
    JsonDict,
    ListenerCallback,
    OperationResult,
    UnsubscribeFunction,
)
from ..utils import validate_collection_path, validate_document_path

T = TypeVar("T")

BATCH_OPERATION_TYPES = ("set", "update", "delete")

# One client per (project, database), shared by every adapter in the process
_CLIENTS: Dict[Tuple[Optional[str], Optional[str]], firestore.Client] = {}
_CLIENTS_LOCK = threading.Lock()


def clear_client_cache() -> None:
    """Forget shared Firestore clients (tests, credential rotation)"""
    with _CLIENTS_LOCK:
        _CLIENTS.clear()


def _snapshot_to_dict(snapshot) -> JsonDict:
    return {"id": snapshot.id, **(snapshot.to_dict() or {})}


def _noop_unsubscribe() -> None:
    pass


def _to_batch_operation(raw: Union[BatchOperation, Mapping[str, Any]]) -> BatchOperation:
    if isinstance(raw, BatchOperation):
        op = raw
    elif isinstance(raw, Mapping):
        try:
            op = BatchOperation(**raw)
        except TypeError as e:
            raise ValidationError(f"Invalid batch operation {dict(raw)!r}: {str(e)}")
    else:
        raise ValidationError(f"Invalid batch operation: {raw!r}")

    if op.type not in BATCH_OPERATION_TYPES:
        raise ValidationError(f"Unsupported batch operation type: {op.type!r}")
    if op.type in ("set", "update") and op.data is None:
        raise ValidationError(f"Batch {op.type} on {op.path} requires data")
    validate_document_path(op.path)
    return op


class FirestoreAdapter(DocumentStoreAdapter):
    """Cloud Firestore facade returning OperationResult envelopes"""

    not_connected_message = "Firebase not initialized"

    def __init__(
        self,
        options: FirebaseOptions,
        logger: Optional[logging.Logger] = None,
        enable_logging: bool = True,
    ):
        super().__init__(logger, enable_logging)
        self.options = options
        self._client: Optional[firestore.Client] = None
        self._client_lock = threading.Lock()
        self._initialize_client()

    def _load_credentials(self):
        info = self.options.service_account
        if info is None:
            # Application Default Credentials
            return None, None

        if isinstance(info, str):
            if info.lstrip().startswith("{"):
                info = json.loads(info)
            else:
                credentials = service_account.Credentials.from_service_account_file(info)
                return credentials, credentials.project_id

        credentials = service_account.Credentials.from_service_account_info(dict(info))
        return credentials, info.get("project_id")

    def _shared_client(self) -> firestore.Client:
        credentials, sa_project = self._load_credentials()
        project = self.options.project_id or sa_project
        key = (project, self.options.database)

        with _CLIENTS_LOCK:
            client = _CLIENTS.get(key)
            if client is None:
                kwargs: Dict[str, Any] = {"project": project, "credentials": credentials}
                if self.options.database:
                    kwargs["database"] = self.options.database
                client = firestore.Client(**kwargs)
                _CLIENTS[key] = client
            else:
                self.logger.debug(f"Reusing Firestore client for project {project}")
        return client

    def _initialize_client(self) -> None:
        try:
            with self._client_lock:
                if self._client is None:
                    self._client = self.options.client or self._shared_client()
        except Exception as e:
            self._set_status(ConnectionStatus.ERROR)
            self.logger.error(f"Failed to initialize Firebase: {str(e)}")
            raise ConnectionError(f"Firebase init failed: {str(e)}") from e

        self._set_status(ConnectionStatus.CONNECTED)
        self.logger.info("Firebase initialized successfully")

    @property
    def client(self) -> firestore.Client:
        """Underlying Firestore client"""
        if self._client is None:
            self._initialize_client()
        return self._client  # type: ignore[return-value]

    def is_connected(self) -> bool:
        return self._status == ConnectionStatus.CONNECTED and self._client is not None

    # Documents

    @operation("Error getting document {path}")
    def get_document(self, path: str) -> Optional[JsonDict]:
        snapshot = self.client.document(validate_document_path(path)).get()

        if snapshot.exists:
            self.logger.debug(f"Document retrieved from {path}")
            return _snapshot_to_dict(snapshot)

        self.logger.debug(f"Document not found at {path}")
        return None

    @operation("Error setting document {path}")
    def set_document(self, path: str, data: JsonDict, merge: bool = True) -> OperationResult[None]:
        self.client.document(validate_document_path(path)).set(data, merge=merge)
        self.logger.debug(f"Document set at {path} (merge={merge})")
        return OperationResult.ok(message="Document set successfully")

    @operation("Error updating document {path}")
    def update_document(self, path: str, data: JsonDict) -> OperationResult[None]:
        self.client.document(validate_document_path(path)).update(data)
        self.logger.debug(f"Document updated at {path}")
        return OperationResult.ok(message="Document updated successfully")

    @operation("Error deleting document {path}")
    def delete_document(self, path: str) -> OperationResult[None]:
        self.client.document(validate_document_path(path)).delete()
        self.logger.debug(f"Document deleted from {path}")
        return OperationResult.ok(message="Document deleted successfully")

    @operation("Error adding document to {collection_path}")
    def add_document(self, collection_path: str, data: JsonDict) -> AddResult:
        _, doc_ref = self.client.collection(validate_collection_path(collection_path)).add(data)
        self.logger.debug(f"Document added to {collection_path} with ID: {doc_ref.id}")
        return AddResult(id=doc_ref.id)

    # Collections

    @operation("Error getting collection {collection_path}")
    def get_collection(
        self,
        collection_path: str,
        where: Optional[Iterable[WhereLike]] = None,
        order_by: Optional[Union[OrderLike, List[OrderLike]]] = None,
        limit: Optional[int] = None,
        start_after: Any = None,
    ) -> List[JsonDict]:
        builder = QueryBuilder.from_options(
            validate_collection_path(collection_path), where, order_by, limit, start_after
        )
        query = builder.apply(self.client.collection(builder.collection_path))

        documents = [_snapshot_to_dict(doc) for doc in query.stream()]
        self.logger.debug(f"Retrieved {len(documents)} documents from {collection_path}")
        return documents

    def query(self, collection_path: str) -> QueryBuilder:
        """Start a chainable query; ``.get()`` runs it through get_collection"""
        return QueryBuilder(collection_path=collection_path, adapter=self)

    # Real-time listeners

    def _deliver(self, callback: ListenerCallback, payload: Any, source: str) -> None:
        try:
            callback(payload)
        except Exception as e:
            self.logger.error(f"Error listening to {source}: {str(e)}")

    def listen_collection(
        self,
        collection_path: str,
        callback: Callable[[DocumentChanges], None],
        where: Optional[Iterable[WhereLike]] = None,
        order_by: Optional[Union[OrderLike, List[OrderLike]]] = None,
        limit: Optional[int] = None,
    ) -> UnsubscribeFunction:
        """
        Subscribe to a collection query.

        The callback receives DocumentChanges for every snapshot. Setup
        failures are logged and a no-op unsubscribe is returned.
        """
        source = f"collection {collection_path}"

        def on_snapshot(snapshots, changes, read_time):
            grouped = DocumentChanges()
            for change in changes:
                doc = _snapshot_to_dict(change.document)
                kind = change.type.name
                if kind == "ADDED":
                    grouped.added.append(doc)
                elif kind == "MODIFIED":
                    grouped.modified.append(doc)
                elif kind == "REMOVED":
                    grouped.removed.append(doc)
            self._deliver(callback, grouped, source)

        try:
            self._ensure_connected()
            builder = QueryBuilder.from_options(
                validate_collection_path(collection_path), where, order_by, limit
            )
            query = builder.apply(self.client.collection(builder.collection_path))
            watch = query.on_snapshot(on_snapshot)
        except Exception as e:
            self.logger.error(f"Error setting up listener for {source}: {str(e)}")
            return _noop_unsubscribe

        self.logger.debug(f"Started listening to {source}")
        return watch.unsubscribe

    def listen_document(
        self, path: str, callback: Callable[[Optional[JsonDict]], None]
    ) -> UnsubscribeFunction:
        """Subscribe to one document; the callback gets None once it is missing"""
        source = f"document {path}"

        def on_snapshot(snapshots, changes, read_time):
            snapshot = snapshots[0] if snapshots else None
            data = _snapshot_to_dict(snapshot) if snapshot is not None and snapshot.exists else None
            self._deliver(callback, data, source)

        try:
            self._ensure_connected()
            watch = self.client.document(validate_document_path(path)).on_snapshot(on_snapshot)
        except Exception as e:
            self.logger.error(f"Error setting up listener for {source}: {str(e)}")
            return _noop_unsubscribe

        self.logger.debug(f"Started listening to {source}")
        return watch.unsubscribe

    # Batches and transactions

    @operation("Error performing batch write")
    def batch_write(
        self, operations: Iterable[Union[BatchOperation, Mapping[str, Any]]]
    ) -> OperationResult[None]:
        planned = [_to_batch_operation(op) for op in operations]
        batch = self.client.batch()

        for op in planned:
            doc_ref = self.client.document(op.path)
            if op.type == "set":
                batch.set(doc_ref, op.data, merge=bool(op.merge))
            elif op.type == "update":
                batch.update(doc_ref, op.data)
            else:
                batch.delete(doc_ref)

        batch.commit()
        self.logger.debug(f"Batch write completed with {len(planned)} operations")
        return OperationResult.ok(message="Batch write completed successfully")

    @operation("Error running transaction")
    def run_transaction(self, update_function: Callable[[firestore.Transaction], T]) -> T:
        """Run ``update_function(transaction)``; Firestore retries it on contention"""

        @firestore.transactional
        def _run(transaction):
            return update_function(transaction)

        result = _run(self.client.transaction())
        self.logger.debug("Transaction completed successfully")
        return result
