"""
Command Service

Hosts a frozen registry and dispatcher behind a Ray actor so gateways in
other processes can dispatch commands without holding handler code.

Callers cross the process boundary as a list of permission nodes and
outcomes come back as plain dicts, since both have to survive pickling.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

import ray
from ray.actor import ActorHandle

from .caller import PermissionSet
from .config import CommandSettings, configure_logging
from .context import split_command_line
from .dispatcher import CommandDispatcher, DispatchResult
from .registry import CommandRegistry

logger = logging.getLogger(__name__)

SERVICE_ACTOR_NAME = "command_service"
SERVICE_NAMESPACE = "llmmud"


def result_to_dict(result: DispatchResult) -> Dict[str, Any]:
    """Flatten a DispatchResult into something safe to send over Ray."""
    if result.ok:
        return {"ok": True, "result": result.value}
    failure = result.failure
    return {
        "ok": False,
        "kind": failure.kind.value,
        "message": failure.message,
        "usage": failure.usage,
    }


class CommandService:
    """
    Dispatches commands for remote callers.

    The registry is frozen on construction; registration must be complete
    before the service starts.
    """

    def __init__(self, registry: CommandRegistry, settings: Optional[CommandSettings] = None):
        settings = settings or registry.settings
        configure_logging(settings)
        registry.freeze()
        self._registry = registry
        self._settings = settings
        self._dispatcher: CommandDispatcher[PermissionSet] = CommandDispatcher(registry, settings=settings)
        logger.info(f"CommandService ready with {len(registry.get_commands())} root commands")

    @property
    def registry(self) -> CommandRegistry:
        return self._registry

    def handle(self, tokens: List[str], permissions: Iterable[str] = (), *extra_args: Any) -> Dict[str, Any]:
        """
        Dispatch ``tokens`` for a caller holding ``permissions``.

        An empty token list is a failed outcome with no ``kind``; nothing
        was resolved, so there is no failure category or usage to report.
        """
        if not tokens:
            return {"ok": False, "kind": None, "message": "Empty command.", "usage": None}
        caller = PermissionSet.from_iterable(permissions)
        return result_to_dict(self._dispatcher.dispatch(tokens, caller, *extra_args))

    def handle_line(self, line: str, permissions: Iterable[str] = (), *extra_args: Any) -> Dict[str, Any]:
        """Dispatch a raw command line."""
        tokens = split_command_line(line, self._settings.command_prefix)
        return self.handle(tokens, permissions, *extra_args)

    def has_command(self, name: str) -> bool:
        return self._registry.has_command(name)

    def get_commands(self) -> Dict[str, str]:
        return self._registry.get_commands()


CommandServiceActor = ray.remote(CommandService)


# ============================================================================
# Service Actor Management
# ============================================================================

_service_actor: Optional[ActorHandle] = None


def get_command_service() -> ActorHandle:
    """Get the global command service actor."""
    global _service_actor
    if _service_actor is None:
        _service_actor = ray.get_actor(SERVICE_ACTOR_NAME, namespace=SERVICE_NAMESPACE)
    return _service_actor  # type: ignore[return-value]


def start_command_service(
    registry: CommandRegistry,
    settings: Optional[CommandSettings] = None,
) -> ActorHandle:
    """Start the command service actor for a fully registered registry."""
    global _service_actor

    service: ActorHandle = CommandServiceActor.options(
        name=SERVICE_ACTOR_NAME, namespace=SERVICE_NAMESPACE, lifetime="detached"
    ).remote(registry, settings)  # type: ignore[assignment]

    _service_actor = service
    logger.info(f"Started {SERVICE_ACTOR_NAME} actor in namespace {SERVICE_NAMESPACE}")
    return service
