"""
CommandService tests.

The service is exercised as a plain object; no Ray cluster is started.
"""

import pytest

pytest.importorskip("ray")

from commands import CommandRegistry, RegistrationError  # noqa: E402
from commands.service import CommandService, CommandServiceActor  # noqa: E402


@pytest.fixture
def service(root_group, monkeypatch):
    monkeypatch.setattr("commands.service.configure_logging", lambda settings: None)
    registry = CommandRegistry()
    registry.register(root_group)
    return CommandService(registry)


class TestCommandService:
    def test_freezes_registry(self, service, root_group):
        with pytest.raises(RegistrationError):
            service.registry.register(root_group)

    def test_success_outcome(self, service, recorder):
        outcome = service.handle(["set", "stone"])

        assert outcome == {"ok": True, "result": "set ok"}
        assert recorder.names == ["set"]

    def test_failure_outcome(self, service):
        outcome = service.handle(["set"])

        assert outcome == {
            "ok": False,
            "kind": "too_few_arguments",
            "message": "Too few arguments.",
            "usage": "/set [-h] <block>",
        }

    def test_permissions_cross_as_strings(self, service, recorder):
        denied = service.handle(["region", "expand", "4"], [])
        allowed = service.handle(["region", "expand", "4"], ["region.expand"])

        assert denied["kind"] == "permission_denied"
        assert allowed["ok"]
        assert recorder.names == ["expand"]

    def test_extra_args_forwarded(self, service, recorder):
        service.handle(["set", "stone"], [], "session-1")

        _, _, extra = recorder.calls[0]
        assert extra == ("session-1",)

    def test_handle_line(self, service, recorder):
        outcome = service.handle_line("/say hello world")

        assert outcome["ok"]
        _, ctx, _ = recorder.calls[0]
        assert list(ctx.args) == ["hello", "world"]

    def test_blank_line_is_not_ok(self, service, recorder):
        outcome = service.handle_line("   ")

        assert outcome == {"ok": False, "kind": None, "message": "Empty command.", "usage": None}
        assert recorder.calls == []

    def test_empty_tokens_match_dispatcher_rejection(self, service, recorder):
        """The dispatcher refuses an empty line; the service must not report success for it."""
        with pytest.raises(ValueError):
            service._dispatcher.execute([], None)

        assert service.handle([])["ok"] is False
        assert recorder.calls == []

    def test_queries(self, service):
        assert service.has_command("BR")
        assert not service.has_command("expand")
        assert "set" in service.get_commands()

    def test_actor_class_is_remote(self):
        assert hasattr(CommandServiceActor, "remote")
        assert hasattr(CommandServiceActor, "options")
