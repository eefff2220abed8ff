from enum import Enum, auto
from typing import Callable, Dict, Any, Optional
import uuid
import weakref
import inspect
import logging

logger = logging.getLogger(__name__)

Handler = Callable[[Any], None]


class AppEvent(Enum):
    """Events exchanged between the stores and the stats controller."""
    TASKS_CHANGED = auto()
    CATEGORIES_CHANGED = auto()
    SETTINGS_CHANGED = auto()
    PERIOD_CHANGED = auto()
    STATS_UPDATED = auto()
    DATA_RESET = auto()


class Subscription:
    """Handle returned by EventBus.subscribe().

    A strong subscription owns its handler, so the handler lives exactly as
    long as this object does (or until unsubscribe()).
    """

    def __init__(self, bus: "EventBus", event: AppEvent, key: str, owned: Optional[Handler] = None):
        self._bus = bus
        self._event = event
        self._key = key
        self._owned = owned

    @property
    def id(self) -> str:
        return self._key

    @property
    def active(self) -> bool:
        return self._bus._has(self._event, self._key)

    def unsubscribe(self) -> None:
        self._bus._drop(self._event, self._key)
        self._owned = None


def _weak_handler(handler: Handler, on_dead: Callable[[], None]) -> Callable[[], Optional[Handler]]:
    """Getter that yields the handler, or None once it has been collected."""
    handler_repr = repr(handler)

    def _collected(_ref) -> None:
        logger.debug(f"EventBus: handler {handler_repr} was collected")
        on_dead()

    if inspect.ismethod(handler):
        return weakref.WeakMethod(handler, _collected)
    try:
        return weakref.ref(handler, _collected)
    except TypeError:
        # builtins
        return lambda: handler


class EventBus:
    """Publish/subscribe hub, one per service container.

    Handlers are referenced weakly. Lambdas and closures have no other
    owner, so they are always pinned by their Subscription instead.
    """

    def __init__(self) -> None:
        self._handlers: Dict[AppEvent, Dict[str, Callable[[], Optional[Handler]]]] = {}

    def subscribe(self, event: AppEvent, callback: Handler, strong: bool = False) -> Subscription:
        """Register callback for event.

        Args:
            event: Event to listen for
            callback: Called with the event payload
            strong: Pin the callback to the returned Subscription

        Example:
            bus.subscribe(AppEvent.TASKS_CHANGED, self.on_tasks_changed)
            self._sub = bus.subscribe(AppEvent.STATS_UPDATED, lambda snap: ...)
        """
        key = str(uuid.uuid4())
        anonymous = (
            getattr(callback, "__name__", "") == "<lambda>"
            or (not inspect.ismethod(callback) and getattr(callback, "__closure__", None) is not None)
        )
        if anonymous and not strong:
            logger.debug(f"EventBus: pinning anonymous handler for {event.name}")
            strong = True

        self._handlers.setdefault(event, {})[key] = _weak_handler(
            callback, lambda: self._drop(event, key)
        )
        return Subscription(self, event, key, owned=callback if strong else None)

    def _has(self, event: AppEvent, key: str) -> bool:
        return key in self._handlers.get(event, {})

    def _drop(self, event: AppEvent, key: str) -> None:
        self._handlers.get(event, {}).pop(key, None)

    def emit(self, event: AppEvent, data: Any = None) -> None:
        """Deliver data to every live handler of event.

        A handler that raises is logged and the rest still run.
        """
        for key, getter in list(self._handlers.get(event, {}).items()):
            handler = getter()
            if handler is None:
                self._drop(event, key)
                continue
            try:
                handler(data)
            except Exception:
                logger.exception(f"Error in event handler for {event.name}")
