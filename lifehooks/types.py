"""Hook handler, provider and runner type definitions."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol, Union, runtime_checkable

# Events are plain strings or Enum members.
EventName = Union[str, Enum]

# Shape of a cleanup handler returned by a hook handler
CleanupHandler = Callable[..., Union[None, Awaitable[None]]]

# Shape of a plain function hook handler. The return value is either nothing
# or a cleanup handler, optionally wrapped in an awaitable.
HookHandler = Callable[..., Any]

# A class whose fresh instance exposes one method per event name
HookProvider = type

# Invokes a hook handler (is_cleanup=False) or a cleanup handler (is_cleanup=True)
HandlerExecutor = Callable[..., Any]

# Invokes the event method of a hook provider: (provider, event_name, *args)
ProviderExecutor = Callable[..., Any]


class RunnerState(Enum):
    """Lifecycle state of a Runner."""

    IDLE = "idle"
    CLEANUP_PENDING = "cleanup_pending"
    CLEANUP_INITIATED = "cleanup_initiated"
    CLEANUP_COMPLETED = "cleanup_completed"


class CleanupFailureMode(Enum):
    """What a Runner does when a cleanup handler raises."""

    ABORT = "abort"  # Re-raise immediately, skip the remaining cleanups
    CONTINUE = "continue"  # Run every cleanup, then raise what was collected


@runtime_checkable
class HookHandlerProvider(Protocol):
    """Hook represented as an object with a name and a handle method.

    The handle method receives the event name followed by the
    arguments given to ``Runner.run``.
    """

    name: str

    def handle(self, event: str, *args: Any) -> Any: ...


@dataclass(frozen=True)
class NamedHandler:
    """Give a plain callable an explicit, stable name.

    Lambdas and partials carry no usable ``__name__``, so they cannot be
    skipped with ``Runner.without``. Wrapping them fixes the name at
    registration time.
    """

    name: str
    callback: HookHandler

    def handle(self, event: str, *args: Any) -> Any:
        return self.callback(*args)


def is_handler_provider(handler: Any) -> bool:
    """Check if a handler is an object based hook (name + handle)."""
    return (
        not isinstance(handler, type)
        and isinstance(getattr(handler, "name", None), str)
        and callable(getattr(handler, "handle", None))
    )


def handler_name(handler: Any) -> str:
    """Return the name used to filter a handler with ``Runner.without``.

    Object based hooks and resolved references use their ``name``
    attribute. Functions use ``__name__``; lambdas and callables without
    a name yield an empty string.
    """
    name = getattr(handler, "name", None)
    if isinstance(name, str) and not isinstance(handler, type):
        return name

    name = getattr(handler, "__name__", "")
    if not isinstance(name, str) or name == "<lambda>":
        return ""
    return name


def event_name(event: EventName) -> str:
    """Convert an event (string or Enum member) to its string form."""
    if isinstance(event, Enum):
        return str(event.value)
    return str(event)
