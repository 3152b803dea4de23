"""
Caller Capability

The dispatcher knows nothing about who is calling except whether they hold
a permission. Hosts either pass callers implementing ``has_permission`` or
give the dispatcher a predicate of their own.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, FrozenSet, Iterable, Protocol, runtime_checkable


PermissionCheck = Callable[[Any, str], bool]


@runtime_checkable
class Caller(Protocol):
    def has_permission(self, permission: str) -> bool: ...


def caller_has_permission(caller: Any, permission: str) -> bool:
    """Default predicate: ask the caller itself."""
    return bool(caller.has_permission(permission))


@dataclass(frozen=True)
class PermissionSet:
    """
    A caller described only by the permission nodes it holds.

    A node ending in ``.*`` grants everything beneath it, and ``*`` grants
    everything.
    """

    permissions: FrozenSet[str] = field(default_factory=frozenset)
    name: str = ""

    @classmethod
    def of(cls, *permissions: str, name: str = "") -> "PermissionSet":
        return cls(frozenset(permissions), name=name)

    @classmethod
    def from_iterable(cls, permissions: Iterable[str], name: str = "") -> "PermissionSet":
        return cls(frozenset(permissions), name=name)

    def has_permission(self, permission: str) -> bool:
        if permission in self.permissions or "*" in self.permissions:
            return True
        parts = permission.split(".")
        for i in range(1, len(parts)):
            if ".".join(parts[:i]) + ".*" in self.permissions:
                return True
        return False
