# src/unifydb/types.py
from __future__ import annotations

from dataclasses import asdict, dataclass, field, is_dataclass
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar

from .errors import NoSQLError

T = TypeVar("T")

JsonDict = Dict[str, Any]
Lookup = Dict[str, Any]

ListenerCallback = Callable[[Any], None]
UnsubscribeFunction = Callable[[], None]


@dataclass
class OperationResult(Generic[T]):
    """Uniform envelope returned by every data operation"""
    success: bool
    data: Optional[T] = None
    error: Optional[Exception] = None
    message: Optional[str] = None

    @classmethod
    def ok(cls, data: Optional[T] = None, message: Optional[str] = None) -> OperationResult[T]:
        return cls(success=True, data=data, message=message)

    @classmethod
    def fail(cls, error: Exception, message: Optional[str] = None) -> OperationResult[T]:
        return cls(success=False, error=error, message=message)

    def unwrap(self) -> Optional[T]:
        """Return ``data`` or raise the captured error"""
        if self.success:
            return self.data
        raise self.error or NoSQLError(self.message or "Operation failed")

    def to_dict(self) -> JsonDict:
        result: JsonDict = {"success": self.success}
        if self.data is not None:
            result["data"] = asdict(self.data) if is_dataclass(self.data) else self.data
        if self.error is not None:
            result["error"] = str(self.error)
        if self.message is not None:
            result["message"] = self.message
        return result


@dataclass(frozen=True)
class InsertResult:
    inserted_id: str
    acknowledged: bool


@dataclass(frozen=True)
class InsertManyResult:
    inserted_ids: List[str]
    inserted_count: int


@dataclass(frozen=True)
class UpdateResult:
    acknowledged: bool
    modified_count: int
    matched_count: int
    upserted_count: int = 0
    upserted_id: Optional[str] = None


@dataclass(frozen=True)
class DeleteResult:
    acknowledged: bool
    deleted_count: int


@dataclass(frozen=True)
class AddResult:
    id: str


@dataclass(frozen=True)
class BatchOperation:
    """One write in a Firestore batch; ``type`` is set, update or delete"""
    type: str
    path: str
    data: Optional[JsonDict] = None
    merge: Optional[bool] = None


@dataclass
class DocumentChanges:
    """Documents grouped by change type for one snapshot"""
    added: List[JsonDict] = field(default_factory=list)
    modified: List[JsonDict] = field(default_factory=list)
    removed: List[JsonDict] = field(default_factory=list)
