"""Command lifecycle controller.

Drives one command invocation through its phases:

INIT -> PROMPTED -> CONTEXT_MAPPED -> PRE_EXEC -> EXECUTING -> DONE

Any error moves the run to FAILED and is re-raised unchanged.  Nothing is
rolled back: files already written stay on disk.

Usage::

    cli = CliService(Config.from_env())
    cli.register_command(GenerateCmd)
    await cli.run_command("generate", {"type": "controller", "name": "Users"})
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar

from plinth.config import Config
from plinth.core.collector import TaskCollector
from plinth.core.hooks import HookRegistry
from plinth.core.prompts import PromptResolver, Prompter, ScriptedPrompter
from plinth.core.registry import ProvidersRegistry, name_of
from plinth.core.tasks import Task, TaskList, TaskReport, TaskRunner
from plinth.services.npm_client import NpmClient
from plinth.services.package_json import ProjectPackageJson
from plinth.services.plugins import CliPlugins
from plinth.services.renderer import TemplateRenderer

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class UnknownCommandError(LookupError):
    """Raised when no command is registered under the requested name."""

    def __init__(self, name: str, available: list[str]) -> None:
        self.name = name
        super().__init__(
            f"Unknown command '{name}' (available: {', '.join(sorted(available)) or 'none'})"
        )


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


class Command:
    """Base class for CLI commands.

    Subclasses override any of the four phase methods; each may be sync or
    async.  ``arguments`` describes the argparse arguments of the command as
    ``(flags, kwargs)`` pairs.
    """

    name: ClassVar[str] = ""
    description: ClassVar[str] = ""
    arguments: ClassVar[list[tuple[tuple[str, ...], dict[str, Any]]]] = []

    def __init__(self, cli: "CliService") -> None:
        self.cli = cli

    def prompt(self, initial: dict[str, Any]) -> Any:
        return []

    def map_context(self, ctx: dict[str, Any]) -> Any:
        return ctx

    def before_exec(self, ctx: dict[str, Any]) -> Any:
        return None

    def exec(self, ctx: dict[str, Any]) -> Any:
        return []


class CommandState(str, Enum):
    INIT = "init"
    PROMPTED = "prompted"
    CONTEXT_MAPPED = "context_mapped"
    PRE_EXEC = "pre_exec"
    EXECUTING = "executing"
    DONE = "done"
    FAILED = "failed"


@dataclass
class CommandRun:
    """Record of one command invocation."""

    command: str
    context: dict[str, Any]
    state: CommandState = CommandState.INIT
    history: list[CommandState] = field(default_factory=lambda: [CommandState.INIT])
    reports: list[TaskReport] = field(default_factory=list)
    error: BaseException | None = None

    def advance(self, state: CommandState) -> None:
        self.state = state
        self.history.append(state)

    def fail(self, error: BaseException) -> None:
        self.error = error
        self.advance(CommandState.FAILED)


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class CliService:
    """Owns the registries and collaborators shared by commands and hooks.

    Attributes:
        config: Global configuration.
        providers: Provider registry.
        hooks: Registered hook instances.
        package_json: Manifest of the target project.
        root_renderer: Renders into the project root.
        src_renderer: Renders into ``<project>/<src_dir>``.
        npm_client: Registry client.
        plugins: Plugin loader.
        runs: Every command run started by this service, in order.
    """

    def __init__(self, config: Config, quiet: bool = False) -> None:
        self.config = config
        self.quiet = quiet
        self.providers = ProvidersRegistry(strict=config.strict_providers)
        self.hooks = HookRegistry()
        self.prompts = PromptResolver(self.hooks)
        self.collector = TaskCollector(self.hooks, self.providers)
        self.package_json = ProjectPackageJson(
            config.project_dir,
            package_manager=config.package_manager,
            skip_install=config.skip_install,
        )
        self.root_renderer = TemplateRenderer(
            config.template_dir, root=lambda: self.package_json.dir
        )
        self.src_renderer = TemplateRenderer(
            config.template_dir, root=lambda: self.package_json.dir / config.src_dir
        )
        self.npm_client = NpmClient(config.registry.url, timeout=config.registry.timeout)
        self.plugins = CliPlugins(self)
        self.commands: dict[str, Command] = {}
        self.runs: list[CommandRun] = []

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register_command(self, command_cls: type[Command]) -> Command:
        command = command_cls(self)
        self.commands[command.name] = command
        return command

    def add_hook(self, hook_cls: type) -> Any:
        existing = self.hooks.get(name_of(hook_cls))
        if existing is not None:
            return existing
        return self.hooks.add(hook_cls(self))

    def get_command(self, name: str) -> Command:
        try:
            return self.commands[name]
        except KeyError:
            raise UnknownCommandError(name, list(self.commands)) from None

    def create_runner(self) -> TaskRunner:
        return TaskRunner(quiet=self.quiet)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def run_command(
        self,
        name: str,
        initial: dict[str, Any] | None = None,
        prompter: Prompter | None = None,
    ) -> CommandRun:
        """Run command *name* end-to-end.

        *initial* is used as the context itself (mutated in place), so the
        caller sees the final context after the run.
        When a command or hook declared new dependencies, an "Install
        dependencies" task is appended after the collected tasks.
        """
        command = self.get_command(name)
        ctx = initial if initial is not None else {}
        run = CommandRun(command=name, context=ctx)
        self.runs.append(run)

        try:
            base = await _resolve(command.prompt(ctx))
            answers = await self.prompts.prompt(
                name, ctx, prompter or ScriptedPrompter(), base=base
            )
            ctx.update(answers)
            run.advance(CommandState.PROMPTED)

            mapped = await _resolve(command.map_context(ctx))
            if mapped is not None and mapped is not ctx:
                ctx.update(mapped)
            run.advance(CommandState.CONTEXT_MAPPED)

            run.advance(CommandState.PRE_EXEC)
            await _resolve(command.before_exec(ctx))

            run.advance(CommandState.EXECUTING)
            tasks = await self._exec_tasks(command, ctx)
            if self.package_json.changed:
                tasks.append(
                    Task("Install dependencies", lambda _ctx: self.package_json.install())
                )
            runner = self.create_runner()
            try:
                await runner.run(tasks, ctx)
            finally:
                run.reports = runner.reports
            run.advance(CommandState.DONE)
        except Exception as exc:
            run.fail(exc)
            raise

        return run

    async def get_tasks(self, name: str, ctx: dict[str, Any]) -> list[Task | TaskList]:
        """Return the exec tasks of command *name* for *ctx*, without running them.

        The context is copied and mapped first, so nested commands can be
        embedded in a parent's task tree without leaking keys into it.
        """
        command = self.get_command(name)
        sub_ctx = dict(ctx)
        mapped = await _resolve(command.map_context(sub_ctx))
        if mapped is not None and mapped is not sub_ctx:
            sub_ctx.update(mapped)
        return await self._exec_tasks(command, sub_ctx)

    async def _exec_tasks(self, command: Command, ctx: dict[str, Any]) -> list[Task | TaskList]:
        tasks: list[Task | TaskList] = list(await _resolve(command.exec(ctx)) or [])
        tasks.extend(await self.collector.collect(command.name, ctx))
        return tasks
