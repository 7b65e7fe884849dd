# src/unifydb/query.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterable, List, Optional, Sequence, Tuple, Union
from enum import Enum

from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from .errors import ValidationError

if TYPE_CHECKING:
    from .adapters.FirestoreAdapter import FirestoreAdapter
    from .types import JsonDict, OperationResult


class Operator(Enum):
    """Firestore where-filter operators"""
    LT = "<"
    LTE = "<="
    EQ = "=="
    NE = "!="
    GTE = ">="
    GT = ">"
    ARRAY_CONTAINS = "array-contains"
    ARRAY_CONTAINS_ANY = "array-contains-any"
    IN = "in"
    NOT_IN = "not-in"


@dataclass(frozen=True)
class WhereCondition:
    field: str
    operator: Operator
    value: Any


@dataclass(frozen=True)
class OrderBy:
    field: str
    direction: str = "asc"

    @property
    def firestore_direction(self) -> str:
        if self.direction == "desc":
            return firestore.Query.DESCENDING
        return firestore.Query.ASCENDING


WhereLike = Union[WhereCondition, Tuple[str, Union[Operator, str], Any]]
OrderLike = Union[OrderBy, Tuple[str, str], str]


def to_condition(condition: WhereLike) -> WhereCondition:
    """Normalize a tuple or WhereCondition"""
    if isinstance(condition, WhereCondition):
        return condition
    try:
        field_path, operator, value = condition
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid where condition: {condition!r}")
    try:
        op = operator if isinstance(operator, Operator) else Operator(operator)
    except ValueError:
        raise ValidationError(f"Unsupported where operator: {operator!r}")
    return WhereCondition(field_path, op, value)


def to_order(order: OrderLike) -> OrderBy:
    """Normalize a field name, (field, direction) tuple or OrderBy"""
    if isinstance(order, OrderBy):
        result = order
    elif isinstance(order, str):
        if order in ("asc", "desc"):
            raise ValidationError(
                f"{order!r} is a direction, not a field; pass (field, direction) as a tuple"
            )
        result = OrderBy(order)
    else:
        try:
            field_path, direction = order
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid order by: {order!r}")
        result = OrderBy(field_path, direction or "asc")

    if result.direction not in ("asc", "desc"):
        raise ValidationError(f"Invalid order direction: {result.direction!r}")
    return result


def to_orders(order_by: Optional[Union[OrderLike, Sequence[OrderLike]]]) -> List[OrderBy]:
    """
    Normalize one ordering or a list of them.

    A (field, direction) pair must be a tuple: ["age", "desc"] is a list of
    two field names and is rejected because "desc" is not a field.
    """
    if order_by is None:
        return []
    if isinstance(order_by, (OrderBy, str, tuple)):
        return [to_order(order_by)]
    return [to_order(o) for o in order_by]


@dataclass
class QueryBuilder:
    """Chainable Firestore collection query"""

    collection_path: str
    conditions: List[WhereLike] = field(default_factory=list)
    orderings: List[OrderLike] = field(default_factory=list)
    limit_count: Optional[int] = None
    start_after_cursor: Any = None
    adapter: Optional[FirestoreAdapter] = field(default=None, repr=False, compare=False)

    def where(self, field_path: str, operator: Union[Operator, str], value: Any) -> QueryBuilder:
        """Add filter condition; checked when the query runs"""
        self.conditions.append((field_path, operator, value))
        return self

    def order_by(self, field_path: str, direction: str = "asc") -> QueryBuilder:
        """Add ordering; checked when the query runs"""
        self.orderings.append((field_path, direction))
        return self

    def limit(self, count: int) -> QueryBuilder:
        self.limit_count = count
        return self

    def start_after(self, cursor: Any) -> QueryBuilder:
        """Page after a document snapshot or a dict of ordered field values"""
        self.start_after_cursor = cursor
        return self

    def apply(self, query: Any) -> Any:
        """Apply where -> order by -> limit -> start after to a Firestore query"""
        for condition in map(to_condition, self.conditions):
            query = query.where(
                filter=FieldFilter(condition.field, condition.operator.value, condition.value)
            )

        for order in map(to_order, self.orderings):
            query = query.order_by(order.field, direction=order.firestore_direction)

        if self.limit_count:
            query = query.limit(self.limit_count)

        if self.start_after_cursor is not None:
            query = query.start_after(self.start_after_cursor)

        return query

    def get(self) -> OperationResult[List[JsonDict]]:
        """Execute through the bound adapter"""
        if self.adapter is None:
            raise ValidationError("QueryBuilder is not bound to an adapter")
        return self.adapter.get_collection(
            self.collection_path,
            where=self.conditions,
            order_by=self.orderings,
            limit=self.limit_count,
            start_after=self.start_after_cursor,
        )

    @classmethod
    def from_options(
        cls,
        collection_path: str,
        where: Optional[Iterable[WhereLike]] = None,
        order_by: Optional[Union[OrderLike, Sequence[OrderLike]]] = None,
        limit: Optional[int] = None,
        start_after: Any = None,
    ) -> QueryBuilder:
        return cls(
            collection_path=collection_path,
            conditions=[to_condition(c) for c in (where or [])],
            orderings=to_orders(order_by),
            limit_count=limit,
            start_after_cursor=start_after,
        )
