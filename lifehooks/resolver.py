"""String based hook handlers resolved through a host supplied resolver.

A host framework (for example an IoC container) can register handlers
as string references such as ``"App/Hooks/User.hashPassword"``. The
reference is turned into a lookup node at registration time and called
through the resolver whenever the hook runs.
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Protocol, runtime_checkable

from lifehooks.errors import ResolverNotConfiguredError


@runtime_checkable
class Resolver(Protocol):
    """Contract of the collaborator that resolves string references."""

    def resolve(self, reference: str) -> Any: ...

    def call(self, resolved: Any, this_arg: Any, args: list[Any]) -> Any: ...


@dataclass(frozen=True)
class ResolvedHandler:
    """A string reference resolved to a lookup node.

    Equality only considers the reference, so registering the same
    string twice is a no-op even when the resolver returns a new lookup
    node on every call.
    """

    reference: str
    node: Any = field(compare=False)
    resolver: Resolver = field(compare=False, repr=False)

    @property
    def name(self) -> str:
        return self.reference

    def __call__(self, *args: Any) -> Any:
        return self.resolver.call(self.node, None, list(args))


def resolve_handler(handler: Any, resolver: Optional[Resolver]) -> Any:
    """Resolve a string handler, or return any other handler untouched.

    Raises
    ------
    ResolverNotConfiguredError
        If the handler is a string and no resolver is configured.
    """
    if not isinstance(handler, str):
        return handler

    if resolver is None:
        raise ResolverNotConfiguredError(handler)

    return ResolvedHandler(reference=handler, node=resolver.resolve(handler), resolver=resolver)
