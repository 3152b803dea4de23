"""
Command Dispatcher

Resolves a token vector against the registry one level at a time and runs
the single leaf handler it reaches.

For each level:
1. Look up the token (case-insensitive) under the current parent
2. Check the caller holds one of the command's permissions
3. Nested commands descend to the next token
4. Leaf commands parse a CommandContext, validate it, and run the handler

Every failure is raised as a CommandFailure tagged with its kind. Nothing
is logged or retried here; the host decides how to show the failure.
"""

import logging
from dataclasses import dataclass
from typing import Any, Generic, Optional, Sequence, TypeVar

from .caller import PermissionCheck, caller_has_permission
from .config import CommandSettings
from .context import CommandContext, split_command_line
from .definitions import CommandDefinition
from .errors import CommandFailure, FailureKind
from .registry import CommandRegistry
from .usage import leaf_usage, nested_usage

logger = logging.getLogger(__name__)

C = TypeVar("C")


@dataclass(frozen=True)
class DispatchResult:
    """Outcome of CommandDispatcher.dispatch()."""

    value: Any = None
    failure: Optional[CommandFailure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @property
    def kind(self) -> Optional[FailureKind]:
        return self.failure.kind if self.failure else None


class CommandDispatcher(Generic[C]):
    """
    Dispatches tokenized command lines for callers of type ``C``.

    Args:
        registry: The registry to resolve against.
        permission_check: ``(caller, permission) -> bool``. Defaults to
            ``caller.has_permission(permission)``.
        settings: Defaults to the registry's settings.
    """

    def __init__(
        self,
        registry: CommandRegistry,
        permission_check: Optional[PermissionCheck] = None,
        settings: Optional[CommandSettings] = None,
    ):
        self._registry = registry
        self._permission_check = permission_check or caller_has_permission
        self._settings = settings or registry.settings

    @property
    def registry(self) -> CommandRegistry:
        return self._registry

    def has_permission(self, definition: CommandDefinition, caller: C) -> bool:
        """Whether ``caller`` holds at least one of the command's permissions."""
        if not definition.permissions:
            return True
        return any(self._permission_check(caller, perm) for perm in definition.permissions)

    # =========================================================================
    # Entry points
    # =========================================================================

    def execute(self, tokens: Sequence[str], caller: C, *extra_args: Any) -> Any:
        """
        Run the command named by ``tokens``.

        ``extra_args`` are passed to the handler after the CommandContext.

        Returns:
            Whatever the handler returns.

        Raises:
            CommandFailure: If the command cannot be resolved, the caller is
                not permitted, the arguments are invalid, or the handler fails.
        """
        if not tokens:
            raise ValueError("Cannot execute an empty command")
        if self._settings.require_frozen and not self._registry.frozen:
            raise RuntimeError("Command registry must be frozen before dispatching")
        return self._execute_level(None, list(tokens), caller, extra_args, 0)

    def execute_command(self, name: str, args: Sequence[str], caller: C, *extra_args: Any) -> Any:
        """Run root command ``name`` with ``args`` as the following tokens."""
        return self.execute([name, *args], caller, *extra_args)

    def execute_line(self, line: str, caller: C, *extra_args: Any) -> Any:
        """Split a raw command line and run it."""
        return self.execute(split_command_line(line, self._settings.command_prefix), caller, *extra_args)

    def dispatch(self, tokens: Sequence[str], caller: C, *extra_args: Any) -> DispatchResult:
        """Like execute(), but returns failures instead of raising them."""
        try:
            return DispatchResult(value=self.execute(tokens, caller, *extra_args))
        except CommandFailure as failure:
            return DispatchResult(failure=failure)

    # =========================================================================
    # Resolution
    # =========================================================================

    def _execute_level(
        self,
        parent: Optional[CommandDefinition],
        tokens: Sequence[str],
        caller: C,
        extra_args: Sequence[Any],
        level: int,
    ) -> Any:
        name = tokens[level]
        definition = self._registry.lookup(name, parent)

        if definition is None:
            if parent is None:
                raise CommandFailure.unresolved(name)
            raise CommandFailure(
                FailureKind.MISSING_SUB_COMMAND,
                f"Unknown command: {name}",
                self._nested_usage(tokens, level - 1, parent, caller),
            )

        if not self.has_permission(definition, caller):
            raise CommandFailure.permission_denied()

        remaining = len(tokens) - 1 - level

        if definition.is_nested:
            if remaining == 0:
                raise CommandFailure(
                    FailureKind.MISSING_SUB_COMMAND,
                    "Sub-command required.",
                    self._nested_usage(tokens, level, definition, caller),
                )
            return self._execute_level(definition, tokens, caller, extra_args, level + 1)

        context = CommandContext(tokens[level:], definition.value_flags)
        self._validate(context, definition, tokens, level)

        logger.debug(f"Executing command: {' '.join(tokens[: level + 1])}")
        try:
            return definition.handler(context, *extra_args)
        except CommandFailure:
            raise
        except Exception as e:
            raise CommandFailure.wrapped(e) from e

    def _validate(
        self,
        context: CommandContext,
        definition: CommandDefinition,
        tokens: Sequence[str],
        level: int,
    ) -> None:
        usage = leaf_usage(tokens, level, definition, self._settings.command_prefix)

        if context.args_length < definition.min_args:
            raise CommandFailure(FailureKind.TOO_FEW_ARGUMENTS, "Too few arguments.", usage)

        if definition.max_args != -1 and context.args_length > definition.max_args:
            raise CommandFailure(FailureKind.TOO_MANY_ARGUMENTS, "Too many arguments.", usage)

        for flag in sorted(context.flags):
            if flag not in definition.flag_letters:
                raise CommandFailure(FailureKind.UNKNOWN_FLAG, f"Unknown flag: {flag}", usage)

    def _nested_usage(
        self,
        tokens: Sequence[str],
        level: int,
        parent: CommandDefinition,
        caller: C,
    ) -> str:
        return nested_usage(
            tokens,
            level,
            parent,
            self._registry,
            lambda child: self.has_permission(child, caller),
            self._settings.command_prefix,
        )
