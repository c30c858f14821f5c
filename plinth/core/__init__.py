"""Provider registration and command lifecycle engine.

* :mod:`registry` -- who owns which provider type.
* :mod:`hooks` -- the ``on_prompt`` / ``on_exec`` contribution protocol.
* :mod:`prompts` -- question collection and resolution.
* :mod:`collector` -- task collection with provider dispatch.
* :mod:`tasks` -- the task runner.
* :mod:`lifecycle` -- commands and the phase controller.
"""

from plinth.core.collector import DispatchTable, TaskCollector
from plinth.core.hooks import Hook, HookRegistry, on_exec, on_prompt
from plinth.core.lifecycle import CliService, Command, CommandRun, CommandState, UnknownCommandError
from plinth.core.prompts import (
    AutocompleteSource,
    ConsolePrompter,
    MissingAnswerError,
    PromptDataFetchError,
    PromptResolver,
    Question,
    ScriptedPrompter,
)
from plinth.core.registry import (
    ProviderConflictError,
    ProviderInfo,
    ProvidersRegistry,
    UnknownProviderError,
    name_of,
)
from plinth.core.tasks import Task, TaskExecutionError, TaskList, TaskReport, TaskRunner, create_tasks_runner

__all__ = [
    "AutocompleteSource",
    "CliService",
    "Command",
    "CommandRun",
    "CommandState",
    "ConsolePrompter",
    "DispatchTable",
    "Hook",
    "HookRegistry",
    "MissingAnswerError",
    "PromptDataFetchError",
    "PromptResolver",
    "ProviderConflictError",
    "ProviderInfo",
    "ProvidersRegistry",
    "Question",
    "ScriptedPrompter",
    "Task",
    "TaskCollector",
    "TaskExecutionError",
    "TaskList",
    "TaskReport",
    "TaskRunner",
    "UnknownCommandError",
    "UnknownProviderError",
    "create_tasks_runner",
    "name_of",
    "on_exec",
    "on_prompt",
]
