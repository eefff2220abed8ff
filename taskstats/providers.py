"""Tri-state results for values produced by asynchronous stores.

A store load is either still running, failed, or resolved. Consumers only
compute on the resolved case and hand the other two to whatever renders
them:

    tasks = await AsyncValue.guard(task_service.load_records())
    text = tasks.when(
        data=lambda records: f"{len(records)} tasks",
        loading=lambda: "loading...",
        error=lambda err: f"failed: {err}",
    )
"""
import logging
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class AsyncValue(Generic[T]):
    """Base class of Loading, Failure and Data."""

    is_loading = False
    has_error = False
    has_value = False

    def when(
        self,
        data: Callable[[T], R],
        loading: Callable[[], R],
        error: Callable[[BaseException], R],
    ) -> R:
        raise NotImplementedError

    def value_or(self, default: Optional[T] = None) -> Optional[T]:
        return default

    def map(self, fn: Callable[[T], R]) -> "AsyncValue[R]":
        """Transform the resolved value; Loading and Failure pass through."""
        return self  # type: ignore[return-value]

    @staticmethod
    async def guard(awaitable: Awaitable[T]) -> "AsyncValue[T]":
        """Await and wrap the outcome as Data or Failure."""
        try:
            return Data(await awaitable)
        except Exception as e:
            logger.warning(f"Async load failed: {e}")
            return Failure(e)


class Loading(AsyncValue[Any]):
    is_loading = True

    def when(self, data, loading, error):
        return loading()

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Loading)

    def __hash__(self) -> int:
        return hash(Loading)

    def __repr__(self) -> str:
        return "Loading()"


class Failure(AsyncValue[Any]):
    has_error = True

    def __init__(self, error: BaseException) -> None:
        self.error = error

    def when(self, data, loading, error):
        return error(self.error)

    def __repr__(self) -> str:
        return f"Failure({self.error!r})"


class Data(AsyncValue[T]):
    has_value = True

    def __init__(self, value: T) -> None:
        self.value = value

    def when(self, data, loading, error):
        return data(self.value)

    def value_or(self, default=None):
        return self.value

    def map(self, fn):
        return Data(fn(self.value))

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Data) and other.value == self.value

    def __repr__(self) -> str:
        return f"Data({self.value!r})"
