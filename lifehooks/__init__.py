"""Lifecycle hooks with ordered execution and reverse order cleanup."""

from loguru import logger

from .config import HooksSettings, config
from .errors import CleanupError, HooksError, ResolverNotConfiguredError
from .registry import Hooks
from .resolver import ResolvedHandler, Resolver
from .runner import Runner, default_handler_executor, default_provider_executor
from .types import (
    CleanupFailureMode,
    CleanupHandler,
    HandlerExecutor,
    HookHandler,
    HookHandlerProvider,
    HookProvider,
    NamedHandler,
    ProviderExecutor,
    RunnerState,
)

if not config.LOG_ENABLED:
    logger.disable(__name__)

__version__ = "0.1.0"

__all__ = [
    "Hooks",
    "Runner",
    "RunnerState",
    "CleanupFailureMode",
    "CleanupHandler",
    "HookHandler",
    "HookHandlerProvider",
    "HookProvider",
    "HandlerExecutor",
    "ProviderExecutor",
    "NamedHandler",
    "Resolver",
    "ResolvedHandler",
    "HooksError",
    "ResolverNotConfiguredError",
    "CleanupError",
    "HooksSettings",
    "config",
    "default_handler_executor",
    "default_provider_executor",
    "__version__",
]
