"""Tests for hooks and task collection (plinth.core.hooks, plinth.core.collector).

Covers:
- Hook provider registration on construction
- on_prompt / on_exec discovery per command
- Dispatch to the owning hook only
- Hooks without providers always contributing
- Dispatch table rebuild after new registrations
"""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from plinth.core.collector import DispatchTable, TaskCollector
from plinth.core.hooks import Hook, HookRegistry, on_exec, on_prompt
from plinth.core.registry import ProviderInfo, ProvidersRegistry, UnknownProviderError
from plinth.core.tasks import Task

pytestmark = pytest.mark.unit


class CountingHook(Hook):
    """Base for test hooks: records calls and returns one task."""

    def __init__(self, cli):
        super().__init__(cli)
        self.calls = 0

    @on_exec("generate")
    def on_generate_exec(self, ctx):
        self.calls += 1
        return [Task(f"{type(self).__name__} task", lambda c: None)]


class ProtocolHook(CountingHook):
    providers = [{"name": "Protocol", "value": "protocol"}]


class ControllerHook(CountingHook):
    providers = [{"name": "Controller", "value": "controller"}]


class ServerHook(CountingHook):
    providers = [{"name": "Server", "value": "server"}]


class GenericHook:
    """A hook with no provider declarations."""

    def __init__(self):
        self.seen = []

    @on_exec("generate", "init")
    async def on_any_exec(self, ctx):
        self.seen.append(ctx.get("type"))
        return [Task("generic", lambda c: None)]

    @on_prompt("init")
    def on_init_prompt(self, initial):
        return []


@pytest.fixture
def fake_cli() -> SimpleNamespace:
    return SimpleNamespace(providers=ProvidersRegistry())


@pytest.fixture
def setup(fake_cli):
    hooks = HookRegistry()
    protocol = hooks.add(ProtocolHook(fake_cli))
    controller = hooks.add(ControllerHook(fake_cli))
    server = hooks.add(ServerHook(fake_cli))
    collector = TaskCollector(hooks, fake_cli.providers)
    return SimpleNamespace(
        cli=fake_cli, hooks=hooks, collector=collector,
        protocol=protocol, controller=controller, server=server,
    )


# ---------------------------------------------------------------------------
# Hooks
# ---------------------------------------------------------------------------


class TestHooks:
    def test_construction_registers_providers(self, setup):
        registry = setup.cli.providers
        assert registry.is_owned_by("protocol", ProtocolHook)
        assert registry.is_owned_by("controller", ControllerHook)
        assert not registry.is_owned_by("server", ProtocolHook)
        assert setup.protocol.provider_values == ["protocol"]

    def test_exec_callbacks_in_registration_order(self, setup):
        hooks = [hook for hook, _ in setup.hooks.exec_callbacks("generate")]
        assert hooks == [setup.protocol, setup.controller, setup.server]

    def test_callbacks_filtered_by_command(self):
        hooks = HookRegistry()
        generic = hooks.add(GenericHook())
        assert [h for h, _ in hooks.exec_callbacks("init")] == [generic]
        assert [h for h, _ in hooks.prompt_callbacks("init")] == [generic]
        assert hooks.prompt_callbacks("generate") == []

    def test_adding_same_hook_twice_is_ignored(self):
        hooks = HookRegistry()
        generic = GenericHook()
        hooks.add(generic)
        hooks.add(generic)
        assert len(hooks) == 1

    @pytest.mark.asyncio
    async def test_second_instance_of_same_class_is_ignored(self):
        hooks = HookRegistry()
        first = hooks.add(GenericHook())
        assert hooks.add(GenericHook()) is first
        assert len(hooks) == 1

        collector = TaskCollector(hooks, ProvidersRegistry())
        tasks = await collector.collect("init", {})
        assert [t.title for t in tasks] == ["generic"]


# ---------------------------------------------------------------------------
# Collection
# ---------------------------------------------------------------------------


class TestCollect:
    @pytest.mark.asyncio
    async def test_only_owning_hook_contributes(self, setup):
        tasks = await setup.collector.collect("generate", {"type": "controller"})

        assert [t.title for t in tasks] == ["ControllerHook task"]
        assert setup.controller.calls == 1
        assert setup.protocol.calls == 0
        assert setup.server.calls == 0

    @pytest.mark.asyncio
    async def test_each_type_dispatches_to_its_owner(self, setup):
        for value, hook in (("protocol", setup.protocol), ("server", setup.server)):
            tasks = await setup.collector.collect("generate", {"type": value})
            assert [t.title for t in tasks] == [f"{type(hook).__name__} task"]

    @pytest.mark.asyncio
    async def test_generic_hooks_always_called_in_order(self, setup):
        generic = setup.hooks.add(GenericHook())
        tasks = await setup.collector.collect("generate", {"type": "server"})
        assert [t.title for t in tasks] == ["ServerHook task", "generic"]
        assert generic.seen == ["server"]

    @pytest.mark.asyncio
    async def test_context_without_type_calls_every_hook(self, setup):
        setup.hooks.add(GenericHook())
        tasks = await setup.collector.collect("generate", {})
        assert [t.title for t in tasks] == [
            "ProtocolHook task", "ControllerHook task", "ServerHook task", "generic",
        ]

    @pytest.mark.asyncio
    async def test_provider_hook_contributes_to_init(self, setup):
        class ProjectProtocolHook(Hook):
            providers = [{"name": "Protocol", "value": "protocol"}]

            @on_exec("init")
            def on_init_exec(self, ctx):
                return [Task("Add protocols directory", lambda c: None)]

        setup.hooks.add(ProjectProtocolHook(setup.cli))
        tasks = await setup.collector.collect("init", {"project_name": "x"})
        assert [t.title for t in tasks] == ["Add protocols directory"]

    @pytest.mark.asyncio
    async def test_unknown_type_raises(self, setup):
        with pytest.raises(UnknownProviderError):
            await setup.collector.collect("generate", {"type": "resolver"})

    @pytest.mark.asyncio
    async def test_type_owned_by_non_hook_yields_nothing(self, setup):
        setup.cli.providers.register(ProviderInfo(name="Model", value="model"), "GenerateCmd")
        assert await setup.collector.collect("generate", {"type": "model"}) == []

    @pytest.mark.asyncio
    async def test_table_rebuilt_after_overwrite(self, setup):
        assert setup.collector.table.resolve("protocol") is setup.protocol

        class OtherProtocolHook(CountingHook):
            providers = [{"name": "Protocol", "value": "protocol"}]

        other = setup.hooks.add(OtherProtocolHook(setup.cli))
        tasks = await setup.collector.collect("generate", {"type": "protocol"})

        assert [t.title for t in tasks] == ["OtherProtocolHook task"]
        assert setup.protocol.calls == 0
        assert other.calls == 1


class TestDispatchTable:
    def test_build_and_resolve(self, setup):
        table = DispatchTable.build(setup.cli.providers, setup.hooks)
        assert table.resolve("server") is setup.server
        assert "controller" in table
        assert "nope" not in table
        with pytest.raises(UnknownProviderError):
            table.resolve("nope")
