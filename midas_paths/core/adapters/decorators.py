from __future__ import annotations

from collections.abc import Callable, Coroutine
from functools import wraps
from typing import Any, TypeVar

from midas_paths.core.errors import LedgerError, MidasError

T = TypeVar("T")


def operation(
    name: str,
) -> Callable[
    [Callable[..., Coroutine[Any, Any, T]]], Callable[..., Coroutine[Any, Any, T]]
]:
    """Tag an async adapter/engine method with an operation name.

    ``MidasError`` subclasses pass through untouched. Any other exception is
    logged via ``self.logger`` and re-raised as ``LedgerError`` naming the
    operation, chained to the original.
    """

    def decorator(
        fn: Callable[..., Coroutine[Any, Any, T]],
    ) -> Callable[..., Coroutine[Any, Any, T]]:
        @wraps(fn)
        async def wrapper(self: Any, *args: Any, **kwargs: Any) -> T:
            try:
                return await fn(self, *args, **kwargs)
            except MidasError:
                raise
            except Exception as exc:
                self.logger.error(f"{name} failed: {exc}")
                raise LedgerError.wrap(name, exc) from exc

        wrapper.operation_name = name  # type: ignore[attr-defined]
        return wrapper

    return decorator
