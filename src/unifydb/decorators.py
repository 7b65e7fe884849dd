from __future__ import annotations

import inspect
from functools import wraps
from typing import Callable, TypeVar

from .types import OperationResult

F = TypeVar("F", bound=Callable)


def operation(error_message: str, *, requires_connection: bool = True) -> Callable[[F], F]:
    """
    Turn an adapter method into an envelope-returning operation.

    The wrapped method returns plain data (or an OperationResult, passed
    through as is). Any exception, including the not-connected guard, is
    logged and returned as a failed OperationResult. ``error_message`` is
    formatted with the call's bound arguments.

    Usage:
        @operation("Error inserting document into {collection}")
        def insert_one(self, collection, document): ...
    """
    def decorator(func: F) -> F:
        signature = inspect.signature(func)

        @wraps(func)
        def wrapper(self, *args, **kwargs):
            try:
                if requires_connection:
                    self._ensure_connected()
                result = func(self, *args, **kwargs)
            except Exception as e:
                message = _render(error_message, signature, self, args, kwargs)
                self.logger.error(f"{message}: {str(e)}")
                return OperationResult.fail(e, message)

            if isinstance(result, OperationResult):
                return result
            return OperationResult.ok(result)

        return wrapper  # type: ignore[return-value]
    return decorator


def _render(template: str, signature: inspect.Signature, instance, args, kwargs) -> str:
    try:
        bound = signature.bind(instance, *args, **kwargs)
        bound.apply_defaults()
        return template.format(**bound.arguments)
    except (TypeError, KeyError, IndexError):
        return template
