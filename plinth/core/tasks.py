"""Task runner.

Executes a tree of titled tasks against one shared, mutable context::

    await create_tasks_runner(
        [
            Task("Install plugins", lambda ctx: package_json.install()),
            Task("Generate files", lambda ctx: TaskList([...], concurrent=True)),
        ],
        ctx,
    )

* Sequential lists run strictly in order and stop at the first failure.
* Concurrent lists start every child, wait for all of them to settle, then
  fail if any child failed.
* An action that returns a ``Task`` list or a :class:`TaskList` has that list
  run to completion, with the same context, as part of the parent task.
* String titles are Jinja2 templates rendered against the context when the
  task starts, so they show the final resolved values.
"""

from __future__ import annotations

import asyncio
import inspect
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Union

from jinja2 import Environment
from rich.markup import escape

from plinth.utils import console, format_duration

Context = dict[str, Any]


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class TaskExecutionError(RuntimeError):
    """Raised when a task action fails.

    ``title`` is the rendered title of the innermost failing task.  For a
    concurrent group, failures of the other siblings are kept in ``errors``.
    """

    def __init__(self, title: str, cause: BaseException) -> None:
        self.title = title
        self.cause = cause
        self.errors: list[BaseException] = []
        super().__init__(f"Task '{title}' failed: {cause}")


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


@dataclass
class Task:
    """A titled unit of work.

    ``action(ctx)`` may return ``None``, an awaitable, or a nested task list.
    ``skip(ctx)`` returning a truthy value skips the task; a string is shown
    as the reason.
    """

    title: str | Callable[[Context], str]
    action: Callable[[Context], Any]
    skip: Callable[[Context], bool | str] | None = None


@dataclass
class TaskList:
    tasks: list[Union[Task, "TaskList"]] = field(default_factory=list)
    concurrent: bool = False


PENDING = "pending"
RUNNING = "running"
DONE = "done"
SKIPPED = "skipped"
FAILED = "failed"


@dataclass
class TaskReport:
    """Execution record of one task."""

    title: str
    depth: int = 0
    status: str = PENDING
    duration: float = 0.0
    error: str | None = None


def as_task_list(value: Any, concurrent: bool = False) -> TaskList | None:
    """Coerce an action result into a :class:`TaskList`, or ``None``."""
    if isinstance(value, TaskList):
        return value
    if isinstance(value, Task):
        return TaskList([value], concurrent=concurrent)
    if isinstance(value, (list, tuple)) and all(isinstance(t, (Task, TaskList)) for t in value):
        return TaskList(list(value), concurrent=concurrent)
    return None


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------

_STATUS_MARKS: dict[str, str] = {
    DONE: "[green]✔[/green]",
    SKIPPED: "[yellow]↓[/yellow]",
    FAILED: "[red]✖[/red]",
    RUNNING: "[cyan]❯[/cyan]",
}


class TaskRunner:
    """Runs task trees and records a :class:`TaskReport` per task."""

    def __init__(self, quiet: bool = False) -> None:
        self.quiet = quiet
        self.reports: list[TaskReport] = []
        self._env = Environment(keep_trailing_newline=False)

    async def run(self, tasks: Any, ctx: Context, concurrent: bool = False) -> Context:
        group = as_task_list(tasks, concurrent)
        if group is None:
            raise TypeError(f"Expected a task list, got {type(tasks).__name__}")
        await self._run_list(group, ctx, 0)
        return ctx

    def render_title(self, task: Task, ctx: Context) -> str:
        if callable(task.title):
            return str(task.title(ctx))
        if "{{" in task.title or "{%" in task.title:
            return self._env.from_string(task.title).render(ctx)
        return task.title

    # -- internals ---------------------------------------------------------

    async def _run_list(self, group: TaskList, ctx: Context, depth: int) -> None:
        if not group.concurrent:
            for child in group.tasks:
                await self._run_node(child, ctx, depth)
            return

        results = await asyncio.gather(
            *(self._run_node(child, ctx, depth) for child in group.tasks),
            return_exceptions=True,
        )
        failures: list[BaseException] = []
        for result in results:
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                failures.append(result)
        if failures:
            first = failures[0]
            if isinstance(first, TaskExecutionError):
                first.errors.extend(failures[1:])
            raise first

    async def _run_node(self, node: Task | TaskList, ctx: Context, depth: int) -> None:
        if isinstance(node, TaskList):
            await self._run_list(node, ctx, depth)
        else:
            await self._run_task(node, ctx, depth)

    async def _run_task(self, task: Task, ctx: Context, depth: int) -> None:
        report = TaskReport(title=_raw_title(task), depth=depth)
        self.reports.append(report)
        start = time.monotonic()
        try:
            report.title = self.render_title(task, ctx)
            if task.skip is not None:
                reason = task.skip(ctx)
                if reason:
                    report.status = SKIPPED
                    self._print(report, reason if isinstance(reason, str) else None)
                    return

            report.status = RUNNING
            result = task.action(ctx)
            if inspect.isawaitable(result):
                result = await result
            nested = as_task_list(result)
            if nested is not None:
                self._print(report)
                await self._run_list(nested, ctx, depth + 1)
        except TaskExecutionError as exc:
            report.status = FAILED
            report.error = str(exc.cause)
            report.duration = time.monotonic() - start
            self._print(report)
            raise
        except Exception as exc:
            report.status = FAILED
            report.error = str(exc)
            report.duration = time.monotonic() - start
            self._print(report)
            raise TaskExecutionError(report.title, exc) from exc

        report.status = DONE
        report.duration = time.monotonic() - start
        self._print(report)

    def _print(self, report: TaskReport, note: str | None = None) -> None:
        if self.quiet:
            return
        indent = "  " * report.depth
        line = f"{indent}{_STATUS_MARKS.get(report.status, ' ')} {escape(report.title)}"
        if report.status == DONE and report.duration >= 1:
            line += f" [dim]({format_duration(report.duration)})[/dim]"
        if note:
            line += f" [dim]{escape(f'[{note}]')}[/dim]"
        if report.status == FAILED and report.error:
            line += f"\n{indent}  [red]{escape(report.error)}[/red]"
        console.print(line)


def _raw_title(task: Task) -> str:
    if isinstance(task.title, str):
        return task.title
    return getattr(task.title, "__name__", repr(task.title))


async def create_tasks_runner(tasks: Any, ctx: Context, **options: Any) -> TaskRunner:
    """Run *tasks* against *ctx* and return the runner (for its reports)."""
    concurrent = options.pop("concurrent", False)
    runner = TaskRunner(**options)
    await runner.run(tasks, ctx, concurrent=concurrent)
    return runner
