"""Exceptions raised by lifehooks itself.

Exceptions raised by hook handlers and cleanup handlers are never
wrapped; they propagate to the caller of ``run`` or ``cleanup`` as is.
"""


class HooksError(Exception):
    """Base class for lifehooks errors."""

    pass


class ResolverNotConfiguredError(HooksError):
    """Raised when a string based hook handler is used without a resolver."""

    def __init__(self, reference: str):
        self.reference = reference
        super().__init__(
            f"A resolver is required to register string based hook handlers (got '{reference}')"
        )


class CleanupError(HooksError):
    """Raised after all cleanup handlers ran and more than one of them failed."""

    def __init__(self, event: str, errors: list[BaseException]):
        self.event = event
        self.errors = errors
        super().__init__(
            f"{len(errors)} cleanup handlers failed for '{event}': "
            + "; ".join(f"{type(e).__name__}: {e}" for e in errors)
        )
