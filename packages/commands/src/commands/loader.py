"""
Command Table Loader

Loads command declarations from YAML instead of decorators. Handlers are
referenced as ``module:function`` and resolved with importlib, so a table
can describe commands that live in any importable module.

Example table:

    root: root
    groups:
      root:
        - aliases: [set]
          usage: "<block>"
          desc: Set all blocks in the selection
          flags: h
          min: 1
          max: 1
          handler: worldtools.edits:cmd_set
        - aliases: [region, rg]
          desc: Region commands
          nested: [region]
      region:
        - aliases: [expand]
          usage: "<amount>"
          min: 1
          max: 1
          permissions: [region.expand]
          handler: worldtools.region:cmd_expand
"""

import importlib
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .definitions import CommandDefinition, CommandGroup
from .errors import RegistrationError

logger = logging.getLogger(__name__)


# Handler cache for resolved handlers
_handler_cache: Dict[str, Callable] = {}


def resolve_handler(reference: str) -> Callable:
    """
    Resolve a ``module:attribute`` reference to a callable.

    The attribute part may be dotted (``module:Class.method``). Results are
    cached to avoid repeated imports.
    """
    if reference in _handler_cache:
        return _handler_cache[reference]

    module_name, sep, attr_path = reference.partition(":")
    if not sep or not module_name or not attr_path:
        raise RegistrationError(f"Handler reference must look like 'module:function', got {reference!r}")

    try:
        target: Any = importlib.import_module(module_name)
        for attr in attr_path.split("."):
            target = getattr(target, attr)
    except (ImportError, AttributeError) as e:
        logger.error(f"Failed to resolve handler {reference}: {e}")
        raise RegistrationError(f"Cannot resolve handler {reference!r}: {e}") from e

    if not callable(target):
        raise RegistrationError(f"Handler {reference!r} is not callable")

    _handler_cache[reference] = target
    return target


# =============================================================================
# Table schema
# =============================================================================


def _listify(value: Any) -> Any:
    if isinstance(value, str):
        return [value]
    return value


class CommandEntry(BaseModel):
    """One command in a YAML table."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    aliases: List[str] = Field(..., min_length=1)
    desc: str = ""
    usage: str = ""
    flags: str = ""
    min_args: int = Field(default=0, ge=0, alias="min")
    max_args: int = Field(default=-1, ge=-1, alias="max")
    permissions: List[str] = Field(default_factory=list)
    handler: Optional[str] = None
    nested: List[str] = Field(default_factory=list)

    @field_validator("aliases", "permissions", "nested", mode="before")
    @classmethod
    def accept_single(cls, value: Any) -> Any:
        return _listify(value)

    @model_validator(mode="after")
    def handler_or_nested(self) -> "CommandEntry":
        if bool(self.handler) == bool(self.nested):
            raise ValueError(f"Command {self.aliases[0]!r} needs exactly one of 'handler' or 'nested'")
        return self


class CommandTable(BaseModel):
    """A complete YAML command table."""

    model_config = ConfigDict(extra="forbid")

    root: str = "root"
    groups: Dict[str, List[CommandEntry]]

    @model_validator(mode="after")
    def groups_exist(self) -> "CommandTable":
        if self.root not in self.groups:
            raise ValueError(f"Root group {self.root!r} is not defined")
        for name, entries in self.groups.items():
            for entry in entries:
                for nested in entry.nested:
                    if nested not in self.groups:
                        raise ValueError(
                            f"Command {entry.aliases[0]!r} in group {name!r} nests unknown group {nested!r}"
                        )
        return self


# =============================================================================
# Loading
# =============================================================================


def parse_command_table(data: Mapping[str, Any]) -> CommandTable:
    """Validate raw table data."""
    try:
        return CommandTable.model_validate(data)
    except ValidationError as e:
        raise RegistrationError(f"Invalid command table: {e}") from e


def build_groups(table: CommandTable) -> Dict[str, CommandGroup]:
    """Build a CommandGroup for every group in the table."""
    groups = {name: CommandGroup(name) for name in table.groups}

    for name, entries in table.groups.items():
        for entry in entries:
            groups[name].add(
                CommandDefinition(
                    aliases=tuple(entry.aliases),
                    handler=resolve_handler(entry.handler) if entry.handler else None,
                    desc=entry.desc,
                    usage=entry.usage,
                    flags=entry.flags,
                    min_args=entry.min_args,
                    max_args=entry.max_args,
                    permissions=tuple(entry.permissions),
                    nested=tuple(groups[nested] for nested in entry.nested),
                )
            )

    return groups


def load_command_table(source: Union[str, Path, Mapping[str, Any]]) -> CommandGroup:
    """
    Load a command table and return its root group.

    Args:
        source: Path to a YAML file, or already parsed table data.

    Raises:
        RegistrationError: If the table is malformed or a handler cannot be
            resolved.
    """
    if isinstance(source, Mapping):
        data = source
        origin = "<mapping>"
    else:
        path = Path(source)
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        origin = str(path)

    if not isinstance(data, Mapping):
        raise RegistrationError(f"Command table {origin} must be a mapping")

    table = parse_command_table(data)
    groups = build_groups(table)
    total = sum(len(group) for group in groups.values())
    logger.info(f"Loaded {total} commands in {len(groups)} groups from {origin}")
    return groups[table.root]
