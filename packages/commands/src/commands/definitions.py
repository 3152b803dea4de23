"""
Command Definitions

Immutable metadata describing a command handler, and the CommandGroup
provider that collects definitions at import time.

Commands are declared with a decorator on the group that owns them:

    region_cmds = CommandGroup("region")

    @region_cmds.command(
        aliases=["expand", "grow"],
        usage="<amount> [direction]",
        desc="Expand the selection",
        min_args=1,
        max_args=2,
        permissions=["region.expand"],
    )
    def cmd_expand(ctx: CommandContext, session) -> None:
        ...

    root = CommandGroup("root")
    root.nest(["region", "rg"], region_cmds, desc="Region commands")

The registry walks ``group.definitions`` in declaration order; nothing is
discovered by scanning attributes.
"""

from dataclasses import dataclass, field
from typing import Callable, FrozenSet, Iterable, List, Optional, Sequence, Tuple, Union

from .errors import RegistrationError


VALUE_FLAG_MARKER = ":"

AliasSpec = Union[str, Sequence[str]]


def _as_tuple(value: Union[str, Iterable[str], None]) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(value)


def parse_flag_alphabet(flags: str) -> Tuple[str, FrozenSet[str]]:
    """
    Split a flag alphabet into its letters and its value-bearing letters.

    A letter followed by ``:`` takes a value, so ``"fd:"`` declares the
    switch ``-f`` and the value flag ``-d <value>``.

    Returns:
        (letters in declaration order, set of value flag letters)
    """
    letters: List[str] = []
    value_flags = set()
    for index, char in enumerate(flags):
        if char == VALUE_FLAG_MARKER:
            if index == 0 or flags[index - 1] == VALUE_FLAG_MARKER:
                raise RegistrationError(f"Misplaced '{VALUE_FLAG_MARKER}' in flags {flags!r}")
            value_flags.add(flags[index - 1])
            continue
        if not (char.isascii() and char.isalpha()):
            raise RegistrationError(f"Invalid flag {char!r} in flags {flags!r}")
        if char not in letters:
            letters.append(char)
    return "".join(letters), frozenset(value_flags)


@dataclass(frozen=True, eq=False)
class CommandDefinition:
    """
    Metadata for one command.

    Instances compare and hash by identity: each definition is the handle
    under which its nested children are indexed in the registry.
    """

    aliases: Tuple[str, ...]
    handler: Optional[Callable] = None
    desc: str = ""
    usage: str = ""
    flags: str = ""
    min_args: int = 0
    max_args: int = -1  # -1 means unbounded
    permissions: Tuple[str, ...] = ()
    nested: Tuple["CommandGroup", ...] = ()

    # Derived from flags in __post_init__
    flag_letters: str = field(init=False, repr=False, default="")
    value_flags: FrozenSet[str] = field(init=False, repr=False, default=frozenset())

    def __post_init__(self):
        object.__setattr__(self, "aliases", _as_tuple(self.aliases))
        object.__setattr__(self, "permissions", _as_tuple(self.permissions))
        nested = self.nested
        if isinstance(nested, CommandGroup):
            nested = (nested,)
        object.__setattr__(self, "nested", tuple(nested or ()))

        if not self.aliases:
            raise RegistrationError("A command needs at least one alias")
        for alias in self.aliases:
            if not isinstance(alias, str) or not alias or any(c.isspace() for c in alias):
                raise RegistrationError(f"Invalid alias {alias!r} for command {self.aliases[0]!r}")
        if self.min_args < 0:
            raise RegistrationError(f"Command {self.name!r}: min_args must not be negative")
        if self.max_args < -1:
            raise RegistrationError(f"Command {self.name!r}: max_args must be -1 or more")
        if self.max_args != -1 and self.min_args > self.max_args:
            raise RegistrationError(
                f"Command {self.name!r}: min_args ({self.min_args}) exceeds max_args ({self.max_args})"
            )
        for provider in self.nested:
            if not isinstance(provider, CommandGroup):
                raise RegistrationError(
                    f"Command {self.name!r}: nested providers must be CommandGroups, got {provider!r}"
                )
        if not self.nested and self.handler is None:
            raise RegistrationError(f"Command {self.name!r} has neither a handler nor nested commands")
        if self.nested and self.handler is not None:
            raise RegistrationError(f"Nested command {self.name!r} cannot also have a handler")

        letters, value_flags = parse_flag_alphabet(self.flags)
        object.__setattr__(self, "flag_letters", letters)
        object.__setattr__(self, "value_flags", value_flags)

    @property
    def name(self) -> str:
        """The canonical alias."""
        return self.aliases[0]

    @property
    def is_nested(self) -> bool:
        return bool(self.nested)

    @property
    def is_public(self) -> bool:
        return not self.permissions

    @property
    def synopsis(self) -> str:
        """One-line help entry used in root listings."""
        if not self.usage:
            return self.desc
        return f"{self.usage} - {self.desc}"


@dataclass(frozen=True)
class CommandInfo:
    """Root command summary handed to hosts that register commands natively."""

    aliases: Tuple[str, ...]
    usage: str
    desc: str
    permissions: Tuple[str, ...] = ()


class CommandGroup:
    """
    An ordered collection of command definitions.

    Groups are the providers the registry discovers commands from. A group
    may be nested under several parents, including itself.
    """

    def __init__(self, name: str = ""):
        self.name = name
        self._definitions: List[CommandDefinition] = []

    def __repr__(self) -> str:
        return f"CommandGroup({self.name!r}, {len(self._definitions)} commands)"

    def __len__(self) -> int:
        return len(self._definitions)

    def __iter__(self):
        return iter(self._definitions)

    @property
    def definitions(self) -> Tuple[CommandDefinition, ...]:
        return tuple(self._definitions)

    def add(self, definition: CommandDefinition) -> CommandDefinition:
        """Add an already built definition."""
        if not isinstance(definition, CommandDefinition):
            raise RegistrationError(f"Expected a CommandDefinition, got {definition!r}")
        self._definitions.append(definition)
        return definition

    def command(
        self,
        aliases: AliasSpec,
        usage: str = "",
        desc: str = "",
        flags: str = "",
        min_args: int = 0,
        max_args: int = -1,
        permissions: Optional[Sequence[str]] = None,
    ):
        """
        Decorator declaring a command in this group.

        The description falls back to the first line of the handler's
        docstring. Malformed metadata raises RegistrationError at import.
        """

        def decorator(func: Callable) -> Callable:
            description = desc
            if not description and func.__doc__:
                description = func.__doc__.strip().splitlines()[0]
            self.add(
                CommandDefinition(
                    aliases=_as_tuple(aliases),
                    handler=func,
                    desc=description,
                    usage=usage,
                    flags=flags,
                    min_args=min_args,
                    max_args=max_args,
                    permissions=_as_tuple(permissions),
                )
            )
            return func

        return decorator

    def nest(
        self,
        aliases: AliasSpec,
        *providers: "CommandGroup",
        desc: str = "",
        permissions: Optional[Sequence[str]] = None,
    ) -> CommandDefinition:
        """Declare a sub-command group routed to ``providers``."""
        if not providers:
            raise RegistrationError(f"Nested command {aliases!r} needs at least one provider")
        return self.add(
            CommandDefinition(
                aliases=_as_tuple(aliases),
                desc=desc,
                permissions=_as_tuple(permissions),
                nested=providers,
            )
        )
