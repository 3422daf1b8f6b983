"""One-shot executor for the hook handlers of a single event."""

import functools
import inspect
from collections.abc import Iterable
from typing import Any, Optional, Union

from loguru import logger

from lifehooks.config import config
from lifehooks.errors import CleanupError
from lifehooks.types import (
    CleanupFailureMode,
    CleanupHandler,
    EventName,
    HandlerExecutor,
    HookHandler,
    HookProvider,
    ProviderExecutor,
    RunnerState,
    event_name,
    handler_name,
    is_handler_provider,
)


def default_handler_executor(handler: HookHandler, is_cleanup: bool, *args: Any) -> Any:
    """Invoke the handler with the given arguments."""
    return handler(*args)


def default_provider_executor(provider: HookProvider, event: str, *args: Any) -> Any:
    """Invoke the event method on a fresh instance of the hook provider.

    Providers without a method for the event are ignored.
    """
    instance = provider()
    method = getattr(instance, event, None)
    if callable(method):
        return method(*args)
    return None


class Runner:
    """Runs the hook handlers registered for one event, then their cleanups.

    Grab an instance using ``Hooks.runner``. A runner executes its
    handlers at most once and its cleanup handlers at most once::

        runner = hooks.runner("saving")
        try:
            await runner.run(user)
        finally:
            await runner.cleanup()

    Cleanup handlers are kept in a list rather than a set, since two hooks
    may legitimately return the same cleanup function.
    """

    def __init__(
        self,
        event: EventName,
        providers: Iterable[HookProvider] = (),
        handlers: Optional[Iterable[HookHandler]] = None,
        *,
        cleanup_failure_mode: Optional[CleanupFailureMode] = None,
    ) -> None:
        self._event = event
        self._event_name = event_name(event)
        self._providers: tuple[HookProvider, ...] = tuple(providers)
        self._handlers: tuple[HookHandler, ...] = tuple(handlers or ())
        self._cleanup_handlers: list[CleanupHandler] = []
        self._state = RunnerState.IDLE

        self._handlers_to_ignore: list[str] = []
        self._skip_all = False

        self._handler_executor: HandlerExecutor = default_handler_executor
        self._provider_executor: ProviderExecutor = default_provider_executor

        if cleanup_failure_mode is None:
            cleanup_failure_mode = config.CLEANUP_FAILURE_MODE
        self._cleanup_failure_mode = cleanup_failure_mode

    @property
    def event(self) -> EventName:
        return self._event

    @property
    def state(self) -> RunnerState:
        return self._state

    @property
    def is_cleanup_pending(self) -> bool:
        """Find if cleanup is pending or not."""
        return self._state == RunnerState.CLEANUP_PENDING

    def without(self, handlers_to_ignore: Optional[Union[str, Iterable[str]]] = None) -> "Runner":
        """Ignore specific or all hook handlers.

        Calling without arguments skips every handler and provider.
        Calling it again overwrites the previous state.

        Parameters
        ----------
        handlers_to_ignore : str or Iterable[str], optional
            Handler names to skip. A single string is one name. Providers
            are named ``"<ClassName>.<event>"``.
        """
        if handlers_to_ignore is None:
            self._skip_all = True
        else:
            self._skip_all = False
            if isinstance(handlers_to_ignore, str):
                handlers_to_ignore = [handlers_to_ignore]
            self._handlers_to_ignore = list(handlers_to_ignore)
        return self

    def executor(self, callback: HandlerExecutor) -> "Runner":
        """Define a custom executor for hook handlers and cleanup handlers.

        The executor is called as ``callback(handler, is_cleanup, *args)``.
        Object based hooks are passed as
        ``functools.partial(hook.handle, event_name)``, so the hook itself
        is available as ``handler.func.__self__``.
        """
        self._handler_executor = callback
        return self

    def provider_executor(self, callback: ProviderExecutor) -> "Runner":
        """Define a custom executor for hook providers."""
        self._provider_executor = callback
        return self

    def _should_run(self, name: str) -> bool:
        return name not in self._handlers_to_ignore

    def _collect(self, result: Any) -> None:
        if callable(result):
            self._cleanup_handlers.append(result)

    async def _run_handler(self, handler: HookHandler, *args: Any) -> None:
        name = handler_name(handler)
        if not self._should_run(name):
            logger.debug(f"Skipping hook handler '{name}' for '{self._event_name}'")
            return

        target = handler
        if is_handler_provider(handler):
            target = functools.partial(handler.handle, self._event_name)

        try:
            result = self._handler_executor(target, False, *args)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            logger.error(f"Hook handler '{name or '<anonymous>'}' failed for '{self._event_name}': {e}")
            raise

        self._collect(result)

    async def _run_provider(self, provider: HookProvider, *args: Any) -> None:
        name = f"{provider.__name__}.{self._event_name}"
        if not self._should_run(name):
            logger.debug(f"Skipping hook provider '{name}'")
            return

        try:
            result = self._provider_executor(provider, self._event_name, *args)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            logger.error(f"Hook provider '{name}' failed: {e}")
            raise

        self._collect(result)

    async def _execute(self, handlers: Iterable[HookHandler], *args: Any) -> None:
        if self._state != RunnerState.IDLE:
            return

        # Set before running anything, so a failing handler still allows cleanup
        self._state = RunnerState.CLEANUP_PENDING
        if self._skip_all:
            logger.debug(f"Skipping all hooks for '{self._event_name}'")
            return

        logger.debug(
            f"Running {len(self._handlers)} handler(s) and "
            f"{len(self._providers)} provider(s) for '{self._event_name}'"
        )

        for handler in handlers:
            await self._run_handler(handler, *args)

        for provider in self._providers:
            await self._run_provider(provider, *args)

    async def run(self, *args: Any) -> None:
        """Execute hook handlers in registration order, followed by providers."""
        await self._execute(self._handlers, *args)

    async def run_reverse(self, *args: Any) -> None:
        """Execute hook handlers in reverse registration order, followed by providers."""
        await self._execute(reversed(self._handlers), *args)

    async def cleanup(self, *args: Any) -> None:
        """Execute the collected cleanup handlers in reverse order.

        Does nothing unless ``run`` was called and cleanup did not
        happen yet.
        """
        if not self.is_cleanup_pending:
            return

        self._state = RunnerState.CLEANUP_INITIATED
        cleanup_handlers = list(reversed(self._cleanup_handlers))
        self._cleanup_handlers.clear()
        logger.debug(f"Running {len(cleanup_handlers)} cleanup handler(s) for '{self._event_name}'")

        errors: list[BaseException] = []
        try:
            for cleanup_handler in cleanup_handlers:
                try:
                    result = self._handler_executor(cleanup_handler, True, *args)
                    if inspect.isawaitable(result):
                        await result
                except Exception as e:
                    if self._cleanup_failure_mode == CleanupFailureMode.ABORT:
                        raise
                    logger.warning(f"Cleanup handler failed for '{self._event_name}': {e}")
                    errors.append(e)
        finally:
            self._state = RunnerState.CLEANUP_COMPLETED

        if len(errors) == 1:
            raise errors[0]
        if errors:
            raise CleanupError(self._event_name, errors)
