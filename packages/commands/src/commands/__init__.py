"""
Command Dispatch

Hierarchical command registry and dispatcher. Commands are declared on
CommandGroups, registered once at load, and dispatched per call against a
caller that only has to answer permission checks.

Architecture:
    CommandGroup ──register──▶ CommandRegistry ──freeze──▶ read-only
                                      │
                                      ▼
    tokens + caller ──▶ CommandDispatcher ──▶ CommandContext ──▶ handler
                                      │
                                      ▼
                               CommandFailure(kind, message, usage)

The Ray-hosted CommandService lives in ``commands.service`` and is imported
separately so the core has no Ray dependency at import time.
"""

from .caller import Caller, PermissionCheck, PermissionSet, caller_has_permission
from .config import CommandSettings, configure_logging, get_command_settings
from .context import CommandContext, split_command_line
from .definitions import CommandDefinition, CommandGroup, CommandInfo, parse_flag_alphabet
from .dispatcher import CommandDispatcher, DispatchResult
from .errors import CommandFailure, FailureKind, RegistrationError
from .loader import load_command_table, resolve_handler
from .registry import CommandRegistry
from .usage import leaf_usage, nested_usage

__all__ = [
    # Metadata
    "CommandDefinition",
    "CommandGroup",
    "CommandInfo",
    "parse_flag_alphabet",
    # Registry & dispatch
    "CommandRegistry",
    "CommandDispatcher",
    "DispatchResult",
    "CommandContext",
    "split_command_line",
    "leaf_usage",
    "nested_usage",
    # Callers
    "Caller",
    "PermissionCheck",
    "PermissionSet",
    "caller_has_permission",
    # Errors
    "CommandFailure",
    "FailureKind",
    "RegistrationError",
    # Configuration
    "CommandSettings",
    "configure_logging",
    "get_command_settings",
    # Declarative tables
    "load_command_table",
    "resolve_handler",
]
