"""Registry of lifecycle hook handlers and hook providers."""

import inspect
from collections.abc import Callable, Hashable
from typing import Any, Optional, Union

from loguru import logger

from lifehooks.resolver import ResolvedHandler, Resolver, resolve_handler
from lifehooks.runner import Runner
from lifehooks.types import (
    CleanupFailureMode,
    EventName,
    HookHandler,
    HookProvider,
    NamedHandler,
)


def handler_key(handler: Any) -> Hashable:
    """Return the identity key of a handler.

    Handlers are unique by reference, not by equality, so unhashable
    objects can be registered and equal but distinct objects both run.
    Bound methods are keyed by instance and function, since every
    attribute access creates a new bound method object. Resolved string
    handlers are keyed by their reference.
    """
    if isinstance(handler, ResolvedHandler):
        return ("reference", handler.reference)
    if inspect.ismethod(handler):
        return ("method", id(handler.__self__), id(handler.__func__))
    return id(handler)


class Hooks:
    """Register lifecycle hooks around specific events.

    Handlers are kept per event in registration order, and adding the
    same handler twice is a noop. Hook providers are classes that are
    not bound to a single event: for every event, a fresh instance is
    created and its method named after the event is invoked::

        hooks = Hooks()

        def hash_password(user):
            ...

        hooks.add("saving", hash_password)

        runner = hooks.runner("saving")
        try:
            await runner.run(user)
        finally:
            await runner.cleanup()
    """

    def __init__(
        self,
        resolver: Optional[Resolver] = None,
        cleanup_failure_mode: Optional[CleanupFailureMode] = None,
    ) -> None:
        """Initialize the registry.

        Parameters
        ----------
        resolver : Resolver, optional
            Collaborator used to resolve string based handlers. Only needed
            when handlers are registered as strings.
        cleanup_failure_mode : CleanupFailureMode, optional
            Policy passed to every runner. Defaults to the configured mode.
        """
        self._resolver = resolver
        self._cleanup_failure_mode = cleanup_failure_mode
        # Insertion ordered, keyed by handler_key()
        self._hooks: dict[EventName, dict[Hashable, HookHandler]] = {}
        self._providers: dict[HookProvider, None] = {}

    def all(self) -> dict[EventName, tuple[HookHandler, ...]]:
        """Get a snapshot of the registered handlers, keyed by event."""
        return {event: tuple(handlers.values()) for event, handlers in self._hooks.items()}

    def events(self) -> list[EventName]:
        """Get the events with at least one registered handler."""
        return [event for event, handlers in self._hooks.items() if handlers]

    def has(self, event: EventName, handler: Union[HookHandler, str]) -> bool:
        """Find if a handler for a given event exists."""
        handlers = self._hooks.get(event)
        if not handlers:
            return False
        return handler_key(resolve_handler(handler, self._resolver)) in handlers

    def add(self, event: EventName, handler: Union[HookHandler, str]) -> "Hooks":
        """Add a hook handler for a given event.

        Adding the same handler twice results in a noop.

        Raises
        ------
        ResolverNotConfiguredError
            If the handler is a string and the registry has no resolver.
        """
        resolved = resolve_handler(handler, self._resolver)
        self._hooks.setdefault(event, {}).setdefault(handler_key(resolved), resolved)
        logger.debug(f"Registered hook handler for '{event}': {resolved!r}")
        return self

    def remove(self, event: EventName, handler: Union[HookHandler, str]) -> bool:
        """Remove a hook handler for a given event.

        Returns
        -------
        bool
            True if the handler was registered and has been removed.
        """
        handlers = self._hooks.get(event)
        if not handlers:
            return False

        key = handler_key(resolve_handler(handler, self._resolver))
        if key not in handlers:
            return False

        del handlers[key]
        return True

    def clear(self, event: Optional[EventName] = None) -> None:
        """Clear the handlers of a specific event, or of all events.

        Hook providers are left untouched.
        """
        if event is None:
            self._hooks.clear()
            return
        self._hooks.pop(event, None)

    def on(self, event: EventName, name: Optional[str] = None) -> Callable[[HookHandler], HookHandler]:
        """Decorator to register a function as a hook handler.

        When a name is given, the function is registered wrapped in a
        NamedHandler so it can be skipped by that name. The decorated
        function is returned unchanged either way.

        Example
        -------
            @hooks.on("saving")
            def hash_password(user):
                ...
        """

        def decorator(func: HookHandler) -> HookHandler:
            self.add(event, NamedHandler(name, func) if name else func)
            return func

        return decorator

    def providers(self) -> tuple[HookProvider, ...]:
        """Get a snapshot of the registered hook providers."""
        return tuple(self._providers)

    def provider(self, provider: HookProvider) -> "Hooks":
        """Register a hook provider. Adding the same provider twice is a noop."""
        self._providers[provider] = None
        logger.debug(f"Registered hook provider: {provider.__name__}")
        return self

    def has_provider(self, provider: HookProvider) -> bool:
        """Find if a hook provider is registered."""
        return provider in self._providers

    def remove_provider(self, provider: HookProvider) -> bool:
        """Remove a hook provider. Returns True if it was registered."""
        if provider not in self._providers:
            return False
        del self._providers[provider]
        return True

    def merge(self, hooks: "Hooks") -> "Hooks":
        """Merge handlers and providers from another Hooks instance.

        The other instance is left untouched. To merge from more than one
        instance, call the method multiple times.
        """
        for event, handlers in hooks.all().items():
            target = self._hooks.setdefault(event, {})
            for handler in handlers:
                target.setdefault(handler_key(handler), handler)

        for provider in hooks.providers():
            self._providers[provider] = None

        return self

    def runner(self, event: EventName) -> Runner:
        """Get a runner bound to the current handlers of an event."""
        return Runner(
            event,
            self._providers,
            (self._hooks.get(event) or {}).values(),
            cleanup_failure_mode=self._cleanup_failure_mode,
        )

