"""
Command Registry

Indexes command definitions by their parent so nested sub-commands can be
resolved one level at a time. Root commands live under the ``None`` key;
children of a nested command live under that command's definition.

The registry is built once during load and then frozen. After freezing it
is read-only and safe to share between dispatch calls on any thread.
"""

import logging
from typing import Dict, List, Optional, Set, Tuple

from .config import CommandSettings
from .definitions import CommandDefinition, CommandGroup, CommandInfo
from .errors import RegistrationError


logger = logging.getLogger(__name__)

Node = Dict[str, CommandDefinition]


class _Staging:
    """Pending changes for one register() call, committed only on success."""

    def __init__(self):
        self.nodes: Dict[Optional[CommandDefinition], List[Tuple[str, CommandDefinition]]] = {}
        self.discovered: Set[Tuple[Optional[CommandDefinition], CommandGroup]] = set()
        self.definitions: Set[CommandDefinition] = set()
        self.descs: Dict[str, str] = {}
        self.roots: List[CommandDefinition] = []

    def staged_alias(self, parent: Optional[CommandDefinition], alias: str) -> Optional[CommandDefinition]:
        found = None
        for staged_alias, definition in self.nodes.get(parent, ()):
            if staged_alias == alias:
                found = definition
        return found


class CommandRegistry:
    """
    Registry of command definitions keyed by parent command.

    Usage:
        registry = CommandRegistry()
        registry.register(root_commands)
        registry.freeze()
    """

    def __init__(self, settings: Optional[CommandSettings] = None):
        self._settings = settings or CommandSettings()
        self._nodes: Dict[Optional[CommandDefinition], Node] = {None: {}}
        self._descs: Dict[str, str] = {}
        self._roots: List[CommandDefinition] = []
        self._definitions: Set[CommandDefinition] = set()
        self._frozen = False

    @property
    def settings(self) -> CommandSettings:
        return self._settings

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        """End the load phase. Later registrations are rejected."""
        if not self._frozen:
            self._frozen = True
            logger.info(
                f"Command registry frozen: {len(self._roots)} root commands, "
                f"{len(self._definitions)} total"
            )

    # =========================================================================
    # Registration
    # =========================================================================

    def register(
        self,
        provider: CommandGroup,
        parent: Optional[CommandDefinition] = None,
    ) -> List[CommandDefinition]:
        """
        Register every command declared by ``provider`` under ``parent``.

        Nested commands are registered recursively under their own
        definition. Either the whole provider graph is registered or, on
        error, nothing is.

        Returns:
            The definitions registered directly under ``parent``.

        Raises:
            RegistrationError: If the registry is frozen, the parent is not a
                registered nested command, or aliases collide while
                ``strict_aliases`` is set.
        """
        if self._frozen:
            raise RegistrationError("Command registry is frozen; register commands during load")
        if not isinstance(provider, CommandGroup):
            raise RegistrationError(f"Expected a CommandGroup, got {provider!r}")
        if parent is not None and (parent not in self._definitions or not parent.is_nested):
            raise RegistrationError(f"Parent {parent.name!r} is not a registered nested command")

        staging = _Staging()
        self._discover(provider, parent, staging)
        self._commit(staging)

        registered = list(provider.definitions)
        logger.info(
            f"Registered {len(registered)} commands from {provider.name or 'group'}"
            + (f" under {parent.name}" if parent is not None else "")
        )
        return registered

    def _discover(
        self,
        provider: CommandGroup,
        parent: Optional[CommandDefinition],
        staging: _Staging,
    ) -> None:
        key = (parent, provider)
        # A group nested under itself is only walked once per parent per call
        if key in staging.discovered:
            return
        staging.discovered.add(key)

        for definition in provider.definitions:
            staging.definitions.add(definition)
            for alias in definition.aliases:
                self._stage_alias(parent, alias.lower(), definition, staging)

            if parent is None:
                staging.descs[definition.name.lower()] = definition.synopsis
                staging.roots.append(definition)

            for nested_provider in definition.nested:
                self._discover(nested_provider, definition, staging)

    def _stage_alias(
        self,
        parent: Optional[CommandDefinition],
        alias: str,
        definition: CommandDefinition,
        staging: _Staging,
    ) -> None:
        existing = staging.staged_alias(parent, alias)
        if existing is None:
            existing = self._nodes.get(parent, {}).get(alias)

        if existing is not None and existing is not definition:
            where = "root" if parent is None else parent.name
            if self._settings.strict_aliases:
                raise RegistrationError(
                    f"Alias {alias!r} under {where} is already used by {existing.name!r}"
                )
            logger.warning(
                f"Alias {alias!r} under {where} redefined: {existing.name!r} replaced by {definition.name!r}"
            )

        staging.nodes.setdefault(parent, []).append((alias, definition))

    def _commit(self, staging: _Staging) -> None:
        for parent, entries in staging.nodes.items():
            node = self._nodes.setdefault(parent, {})
            for alias, definition in entries:
                node[alias] = definition
                logger.debug(f"Registered command alias: {alias}")
        for definition in staging.definitions:
            # Nested commands get a node even when their groups are empty
            if definition.is_nested:
                self._nodes.setdefault(definition, {})
        for root in staging.roots:
            if root not in self._roots:
                self._roots.append(root)
        self._descs.update(staging.descs)
        self._definitions.update(staging.definitions)

    # =========================================================================
    # Queries
    # =========================================================================

    def lookup(self, alias: str, parent: Optional[CommandDefinition] = None) -> Optional[CommandDefinition]:
        """Find a command by alias (case-insensitive) under ``parent``."""
        return self._nodes.get(parent, {}).get(alias.lower())

    def children(self, parent: Optional[CommandDefinition] = None) -> List[CommandDefinition]:
        """Distinct definitions reachable directly under ``parent``, in registration order."""
        seen: List[CommandDefinition] = []
        for definition in self._nodes.get(parent, {}).values():
            if definition not in seen:
                seen.append(definition)
        return seen

    def aliases(self, parent: Optional[CommandDefinition] = None) -> Dict[str, CommandDefinition]:
        """Copy of the alias map under ``parent``."""
        return dict(self._nodes.get(parent, {}))

    def has_command(self, name: str) -> bool:
        """Whether ``name`` is a root command or alias."""
        return name.lower() in self._nodes[None]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.has_command(name)

    def get_commands(self) -> Dict[str, str]:
        """Root command synopses keyed by canonical alias."""
        return dict(self._descs)

    def root_command_info(self) -> List[CommandInfo]:
        """Summaries of root commands for hosts that register them natively."""
        return [
            CommandInfo(
                aliases=definition.aliases,
                usage=definition.usage,
                desc=definition.desc,
                permissions=definition.permissions,
            )
            for definition in self._roots
        ]
