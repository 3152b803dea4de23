"""
Usage Strings

Builds the usage text attached to dispatch failures. Nested usage only
lists sub-commands the caller is allowed to run.
"""

from typing import Callable, Optional, Sequence

from .definitions import CommandDefinition
from .errors import CommandFailure
from .registry import CommandRegistry


def _command_path(tokens: Sequence[str], level: int, prefix: str) -> str:
    return prefix + " ".join(tokens[: level + 1])


def leaf_usage(
    tokens: Sequence[str],
    level: int,
    definition: CommandDefinition,
    prefix: str = "/",
) -> str:
    """
    Usage for a leaf command reached at ``level``.

    Example: ``/brush sphere [-h] <block> [radius]``
    """
    parts = [_command_path(tokens, level, prefix)]
    if definition.flag_letters:
        parts.append(f"[-{definition.flag_letters}]")
    if definition.usage:
        parts.append(definition.usage)
    return " ".join(parts)


def nested_usage(
    tokens: Sequence[str],
    level: int,
    parent: Optional[CommandDefinition],
    registry: CommandRegistry,
    is_visible: Callable[[CommandDefinition], bool],
    prefix: str = "/",
) -> str:
    """
    Usage for a nested command reached at ``level``.

    Example: ``/region <expand|contract|shift>``

    Raises:
        CommandFailure: PERMISSION_DENIED when the group has sub-commands
            but the caller may see none of them.
    """
    children = registry.children(parent)
    if not children:
        choices = "?"
    else:
        visible = [child.name for child in children if is_visible(child)]
        if not visible:
            raise CommandFailure.permission_denied()
        choices = "|".join(visible)
    return f"{_command_path(tokens, level, prefix)} <{choices}>"
