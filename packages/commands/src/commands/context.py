"""
Command Context

Parses the tokens addressed to one leaf command into positional arguments
and flags.

Features:
- Flag switches (-f, -fh)
- Value flags that consume the following token (-d north)
- Quoted strings spanning several tokens ("hello world")

Parsing never fails. Flags the command does not accept are recorded here
and rejected by the dispatcher.
"""

import re
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

FLAG_PATTERN = re.compile(r"^-[a-zA-Z]+$")
QUOTE_CHARS = ('"', "'")

_MISSING = object()


def split_command_line(line: str, prefix: str = "/") -> List[str]:
    """
    Split a raw command line into tokens.

    Quotes are left in place; CommandContext joins quoted spans.

    Examples:
        '/set stone' -> ['set', 'stone']
        'say "hello  world"' -> ['say', '"hello', 'world"']
    """
    line = line.strip()
    if prefix and line.startswith(prefix):
        line = line[len(prefix):]
    return line.split()


class CommandContext:
    """
    Parsed arguments for a single command invocation.

    ``tokens[0]`` is the alias the command was invoked with; the remaining
    tokens are parsed left to right.
    """

    def __init__(self, tokens: Sequence[str], value_flags: Iterable[str] = ()):
        if not tokens:
            raise ValueError("CommandContext needs at least the command token")

        self._command = tokens[0]
        self._accepts_value = frozenset(value_flags)

        args: List[str] = []
        flags = set()
        values: Dict[str, str] = {}

        rest = list(tokens[1:])
        i = 0
        while i < len(rest):
            token = rest[i]
            if FLAG_PATTERN.match(token):
                i += 1
                for letter in token[1:]:
                    flags.add(letter)
                    if letter in self._accepts_value and i < len(rest):
                        values[letter], i = self._read_item(rest, i)
                continue
            item, i = self._read_item(rest, i)
            args.append(item)

        self._args: Tuple[str, ...] = tuple(args)
        self._flags: FrozenSet[str] = frozenset(flags)
        self._values: Dict[str, str] = values

    @staticmethod
    def _read_item(tokens: List[str], start: int) -> Tuple[str, int]:
        """Read one token or quoted span starting at ``start``."""
        token = tokens[start]
        quote = token[0] if token else ""
        if quote not in QUOTE_CHARS:
            return token, start + 1

        if len(token) > 1 and token.endswith(quote):
            return token[1:-1], start + 1

        parts = [token[1:]]
        end = start + 1
        while end < len(tokens):
            part = tokens[end]
            end += 1
            if part.endswith(quote):
                parts.append(part[:-1])
                break
            parts.append(part)
        # An unterminated quote runs to the end of the line
        return " ".join(parts), end

    def __repr__(self) -> str:
        return f"CommandContext({self._command!r}, args={list(self._args)!r}, flags={sorted(self._flags)!r})"

    def __len__(self) -> int:
        return len(self._args)

    # =========================================================================
    # Positional arguments
    # =========================================================================

    @property
    def command(self) -> str:
        return self._command

    @property
    def args(self) -> Tuple[str, ...]:
        return self._args

    @property
    def args_length(self) -> int:
        return len(self._args)

    def get_string(self, index: int, default=_MISSING) -> str:
        """Get argument at index; IndexError if absent and no default given."""
        if 0 <= index < len(self._args):
            return self._args[index]
        if default is _MISSING:
            raise IndexError(f"No argument at position {index}")
        return default

    def get_joined_strings(self, start: int) -> str:
        """Join all arguments from ``start`` with single spaces."""
        if start >= len(self._args):
            raise IndexError(f"No argument at position {start}")
        return " ".join(self._args[start:])

    def get_slice(self, start: int) -> Tuple[str, ...]:
        return self._args[start:]

    def get_integer(self, index: int, default=_MISSING) -> int:
        if default is not _MISSING and index >= len(self._args):
            return default
        return int(self.get_string(index))

    def get_double(self, index: int, default=_MISSING) -> float:
        if default is not _MISSING and index >= len(self._args):
            return default
        return float(self.get_string(index))

    # =========================================================================
    # Flags
    # =========================================================================

    @property
    def flags(self) -> FrozenSet[str]:
        return self._flags

    @property
    def value_flags(self) -> Dict[str, str]:
        return dict(self._values)

    def has_flag(self, flag: str) -> bool:
        return flag in self._flags

    def get_flag(self, flag: str, default: Optional[str] = None) -> Optional[str]:
        """Value of a value flag, or ``default`` when it was not given one."""
        return self._values.get(flag, default)

    def get_flag_integer(self, flag: str, default: Optional[int] = None) -> Optional[int]:
        value = self._values.get(flag)
        if value is None:
            return default
        return int(value)

    def get_flag_double(self, flag: str, default: Optional[float] = None) -> Optional[float]:
        value = self._values.get(flag)
        if value is None:
            return default
        return float(value)
