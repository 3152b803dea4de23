"""
Pytest fixtures for command dispatch unit tests.

Provides a small command tree:

    /set [-h] <block>                 public, exactly one argument
    /brush [-s] [-r <radius>] <block> public, value flag r
    /say <message...>                 public, unbounded
    /region <expand|contract>         nested
        expand <amount>               requires region.expand
        contract <amount>             requires region.contract or region.*
    /admin <...>                      nested, every child needs admin.*
        kick <player>                 requires admin.kick
    /empty                            nested group with no children
"""

from typing import Any, List, Tuple

import pytest

from commands import (
    CommandDispatcher,
    CommandGroup,
    CommandRegistry,
    PermissionSet,
)


class CallRecorder:
    """Collects (command, context, extra_args) for every handler call."""

    def __init__(self):
        self.calls: List[Tuple[str, Any, Tuple[Any, ...]]] = []

    def handler(self, name: str):
        def _handle(ctx, *extra):
            self.calls.append((name, ctx, extra))
            return f"{name} ok"

        return _handle

    @property
    def names(self) -> List[str]:
        return [name for name, _, _ in self.calls]


@pytest.fixture
def recorder() -> CallRecorder:
    return CallRecorder()


@pytest.fixture
def root_group(recorder) -> CommandGroup:
    region = CommandGroup("region")
    region.command(
        aliases=["expand", "grow"],
        usage="<amount>",
        desc="Expand the selection",
        min_args=1,
        max_args=1,
        permissions=["region.expand"],
    )(recorder.handler("expand"))
    region.command(
        aliases=["contract"],
        usage="<amount>",
        desc="Contract the selection",
        min_args=1,
        max_args=1,
        permissions=["region.contract"],
    )(recorder.handler("contract"))

    admin = CommandGroup("admin")
    admin.command(
        aliases=["kick"],
        usage="<player>",
        min_args=1,
        max_args=1,
        permissions=["admin.kick"],
    )(recorder.handler("kick"))

    root = CommandGroup("root")
    root.command(
        aliases=["set"],
        usage="<block>",
        desc="Set blocks",
        flags="h",
        min_args=1,
        max_args=1,
    )(recorder.handler("set"))
    root.command(
        aliases=["brush", "br"],
        usage="<block>",
        desc="Bind a brush",
        flags="sr:",
        min_args=1,
        max_args=1,
    )(recorder.handler("brush"))
    root.command(
        aliases=["say"],
        usage="<message...>",
        desc="Say something",
        min_args=1,
    )(recorder.handler("say"))
    root.nest(["region", "rg"], region, desc="Region commands")
    root.nest(["admin"], admin, desc="Admin commands")
    root.nest(["empty"], CommandGroup("empty"), desc="Nothing here")
    return root


@pytest.fixture
def registry(root_group) -> CommandRegistry:
    registry = CommandRegistry()
    registry.register(root_group)
    registry.freeze()
    return registry


@pytest.fixture
def dispatcher(registry) -> CommandDispatcher:
    return CommandDispatcher(registry)


@pytest.fixture
def anyone() -> PermissionSet:
    return PermissionSet.of(name="anyone")


@pytest.fixture
def builder() -> PermissionSet:
    return PermissionSet.of("region.expand", name="builder")
