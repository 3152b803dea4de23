"""
YAML command table tests.
"""

import collections
import textwrap

import pytest

from commands import (
    CommandDispatcher,
    CommandRegistry,
    FailureKind,
    PermissionSet,
    RegistrationError,
    load_command_table,
    resolve_handler,
)


TABLE = textwrap.dedent(
    """
    root: root
    groups:
      root:
        - aliases: [echo, e]
          usage: "<text...>"
          desc: Echo the parsed context
          flags: "v"
          min: 1
          handler: builtins:repr
        - aliases: [region, rg]
          desc: Region commands
          nested: region
      region:
        - aliases: expand
          usage: "<amount>"
          min: 1
          max: 1
          permissions: region.expand
          handler: builtins:repr
    """
)


@pytest.fixture
def table_file(tmp_path):
    path = tmp_path / "commands.yaml"
    path.write_text(TABLE)
    return path


class TestResolveHandler:
    def test_module_function(self):
        assert resolve_handler("builtins:repr") is repr

    def test_dotted_attribute(self):
        assert resolve_handler("collections:OrderedDict.fromkeys") == collections.OrderedDict.fromkeys

    @pytest.mark.parametrize("reference", ["builtins", "builtins:", ":repr"])
    def test_malformed_reference(self, reference):
        with pytest.raises(RegistrationError):
            resolve_handler(reference)

    def test_missing_module(self):
        with pytest.raises(RegistrationError):
            resolve_handler("no_such_module_here:handler")

    def test_missing_attribute(self):
        with pytest.raises(RegistrationError):
            resolve_handler("builtins:no_such_function")

    def test_not_callable(self):
        with pytest.raises(RegistrationError):
            resolve_handler("math:pi")


class TestLoadCommandTable:
    """Loading and registering a table."""

    def test_loads_from_file(self, table_file):
        root = load_command_table(table_file)

        assert root.name == "root"
        assert [definition.name for definition in root] == ["echo", "region"]

    def test_registered_table_dispatches(self, table_file):
        registry = CommandRegistry()
        registry.register(load_command_table(table_file))
        registry.freeze()
        dispatcher = CommandDispatcher(registry)

        result = dispatcher.execute(["echo", "-v", "hi"], PermissionSet.of())
        assert result.startswith("CommandContext('echo'")

        failure = dispatcher.dispatch(["rg", "expand", "3"], PermissionSet.of()).failure
        assert failure.kind is FailureKind.PERMISSION_DENIED

        assert dispatcher.dispatch(["rg", "expand", "3"], PermissionSet.of("region.expand")).ok

    def test_synopsis_from_table(self, table_file):
        registry = CommandRegistry()
        registry.register(load_command_table(table_file))

        assert registry.get_commands()["echo"] == "<text...> - Echo the parsed context"

    def test_loads_from_mapping(self):
        root = load_command_table(
            {"groups": {"root": [{"aliases": ["ping"], "handler": "builtins:repr"}]}}
        )

        assert root.definitions[0].aliases == ("ping",)

    def test_file_is_read_as_utf8(self, tmp_path):
        """Descriptions survive regardless of the platform's default encoding."""
        path = tmp_path / "commands.yaml"
        path.write_bytes(
            textwrap.dedent(
                """
                groups:
                  root:
                    - aliases: [gruss]
                      desc: "Grüße an alle – schön"
                      handler: builtins:repr
                """
            ).encode("utf-8")
        )

        root = load_command_table(path)

        assert root.definitions[0].desc == "Grüße an alle – schön"

    def test_self_nesting_table(self):
        root = load_command_table(
            {
                "groups": {
                    "root": [
                        {"aliases": ["again"], "nested": ["root"]},
                        {"aliases": ["stop"], "handler": "builtins:repr"},
                    ]
                }
            }
        )
        registry = CommandRegistry()
        registry.register(root)

        result = CommandDispatcher(registry).execute(["again", "again", "stop"], PermissionSet.of())
        assert "stop" in result


class TestInvalidTables:
    """Malformed tables abort loading with RegistrationError."""

    @pytest.mark.parametrize(
        "data",
        [
            {"groups": {"root": [{"aliases": [], "handler": "builtins:repr"}]}},
            {"groups": {"root": [{"aliases": ["x"]}]}},
            {"groups": {"root": [{"aliases": ["x"], "handler": "builtins:repr", "nested": ["root"]}]}},
            {"groups": {"root": [{"aliases": ["x"], "nested": ["missing"]}]}},
            {"root": "main", "groups": {"root": []}},
            {"groups": {"root": [{"aliases": ["x"], "handler": "builtins:repr", "min": -1}]}},
            {"groups": {"root": [{"aliases": ["x"], "handler": "builtins:repr", "colour": "red"}]}},
        ],
    )
    def test_schema_errors(self, data):
        with pytest.raises(RegistrationError):
            load_command_table(data)

    def test_min_above_max(self):
        with pytest.raises(RegistrationError):
            load_command_table(
                {"groups": {"root": [{"aliases": ["x"], "handler": "builtins:repr", "min": 3, "max": 1}]}}
            )

    def test_unresolvable_handler(self):
        with pytest.raises(RegistrationError):
            load_command_table({"groups": {"root": [{"aliases": ["x"], "handler": "nowhere:thing"}]}})

    def test_non_mapping_file(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- just\n- a list\n")

        with pytest.raises(RegistrationError):
            load_command_table(path)
