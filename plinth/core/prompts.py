"""Prompt resolution.

Collects the questions every hook contributes for a command and asks them as
one form.  Each question's ``when`` predicate is evaluated against the answers
accumulated so far (the caller's partial context plus every answer already
given in the same form), so later questions can depend on earlier ones.

Asking is delegated to a *prompter*: :class:`ConsolePrompter` talks to the
terminal through ``rich.prompt``; :class:`ScriptedPrompter` answers from a
dict and is what ``--yes`` and the test-suite use.
"""

from __future__ import annotations

import asyncio
import inspect
from collections import ChainMap
from collections.abc import Awaitable, Callable, MutableMapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

from rich.markup import escape
from rich.prompt import Confirm, Prompt

from plinth.utils import console

if TYPE_CHECKING:
    from plinth.core.hooks import HookRegistry


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class PromptDataFetchError(RuntimeError):
    """Raised when loading the data behind a question fails."""

    def __init__(self, name: str, cause: BaseException) -> None:
        self.name = name
        self.cause = cause
        super().__init__(f"Could not load choices for '{name}': {cause}")


class MissingAnswerError(ValueError):
    """Raised by :class:`ScriptedPrompter` when a question has no answer."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"No answer provided for '{name}'")


# ---------------------------------------------------------------------------
# Questions
# ---------------------------------------------------------------------------

State = MutableMapping[str, Any]


@dataclass
class Question:
    """One question of a prompt form.

    ``type`` is one of ``input``, ``list``, ``confirm``, ``checkbox`` or
    ``autocomplete``.  ``choices`` and ``default`` may be callables taking the
    current state; ``source`` is an (async) callable ``(state, keyword)``
    returning choices for autocomplete questions.
    """

    name: str
    type: str = "input"
    message: str = ""
    when: bool | Callable[[State], bool] = True
    default: Any = None
    choices: list[Any] | Callable[[State], list[Any]] | None = None
    source: Callable[[State, str], Any] | None = None
    transformer: Callable[[str], str] | None = None
    filter: Callable[[Any], Any] | None = None

    def is_enabled(self, state: State) -> bool:
        if callable(self.when):
            return bool(self.when(state))
        return bool(self.when)

    def resolve_default(self, state: State) -> Any:
        if callable(self.default):
            return self.default(state)
        return self.default

    async def resolve_choices(self, state: State, keyword: str = "") -> list[dict[str, Any]]:
        """Return normalised ``{name, value}`` choices, loading them if needed."""
        try:
            if self.source is not None:
                raw = self.source(state, keyword)
            elif callable(self.choices):
                raw = self.choices(state)
            else:
                raw = self.choices or []
            if inspect.isawaitable(raw):
                raw = await raw
        except PromptDataFetchError:
            raise
        except Exception as exc:
            raise PromptDataFetchError(self.name, exc) from exc
        return normalize_choices(raw)


def normalize_choices(raw: list[Any]) -> list[dict[str, Any]]:
    choices: list[dict[str, Any]] = []
    for item in raw:
        if isinstance(item, dict):
            value = item.get("value", item.get("name"))
            choices.append({"name": str(item.get("name", value)), "value": value})
        else:
            choices.append({"name": str(getattr(item, "name", item)), "value": item})
    return choices


def as_question(item: Question | dict[str, Any]) -> Question:
    if isinstance(item, Question):
        return item
    return Question(**item)


class AutocompleteSource:
    """Choice source for autocomplete questions.

    The underlying list is fetched once, on first use; every keystroke then
    re-filters that list by case-insensitive substring on the choice name.
    When ``store_as`` is set the raw fetched items are written into the prompt
    state under that key, so later phases can use them without fetching again.
    """

    def __init__(
        self,
        fetch: Callable[[], Awaitable[list[Any]] | list[Any]],
        to_choice: Callable[[Any], dict[str, Any]] | None = None,
        store_as: str | None = None,
    ) -> None:
        self._fetch = fetch
        self._to_choice = to_choice
        self.store_as = store_as
        self._items: list[Any] | None = None
        self._choices: list[dict[str, Any]] = []

    async def load(self) -> list[dict[str, Any]]:
        if self._items is None:
            items = self._fetch()
            if inspect.isawaitable(items):
                items = await items
            self._items = list(items)
            self._choices = normalize_choices(
                [self._to_choice(item) for item in self._items] if self._to_choice else self._items
            )
        return self._choices

    async def __call__(self, state: State, keyword: str = "") -> list[dict[str, Any]]:
        choices = await self.load()
        if self.store_as:
            state[self.store_as] = self._items
        if not keyword:
            return list(choices)
        needle = keyword.lower()
        return [c for c in choices if needle in c["name"].lower()]


# ---------------------------------------------------------------------------
# Prompters
# ---------------------------------------------------------------------------


class Prompter(Protocol):
    async def ask(self, question: Question, state: State) -> Any: ...


class ScriptedPrompter:
    """Answers questions from a mapping, falling back to question defaults.

    Questions backed by choices still load them, so data-fetch failures and
    stored source data behave exactly as in an interactive session.
    """

    def __init__(self, answers: dict[str, Any] | None = None) -> None:
        self.answers = dict(answers or {})
        self.asked: list[str] = []

    async def ask(self, question: Question, state: State) -> Any:
        self.asked.append(question.name)
        if question.type in ("list", "autocomplete", "checkbox"):
            keyword = self.answers.get(question.name)
            await question.resolve_choices(
                state, keyword if isinstance(keyword, str) and question.type == "autocomplete" else ""
            )

        if question.name in self.answers:
            return self.answers[question.name]

        default = question.resolve_default(state)
        if default is not None:
            return default
        if question.type == "confirm":
            return False
        if question.type == "checkbox":
            return []
        raise MissingAnswerError(question.name)


class ConsolePrompter:
    """Interactive prompter built on ``rich.prompt``."""

    async def ask(self, question: Question, state: State) -> Any:
        default = question.resolve_default(state)
        message = question.message or question.name

        if question.type == "confirm":
            return await asyncio.to_thread(Confirm.ask, message, default=bool(default), console=console)

        if question.type == "input":
            value = await asyncio.to_thread(Prompt.ask, message, default=default, console=console)
            if question.transformer and value:
                console.print(f"  [dim]{question.transformer(value)}[/dim]")
            return value

        if question.type == "autocomplete":
            while True:
                keyword = await asyncio.to_thread(
                    Prompt.ask, f"{message} [dim](type to search)[/dim]", default="", console=console
                )
                choices = await question.resolve_choices(state, keyword)
                if choices:
                    return await self._pick(message, choices[:20])
                console.print("  [yellow]No match, try again.[/yellow]")

        choices = await question.resolve_choices(state)
        if question.type == "checkbox":
            return await self._pick_many(message, choices)
        return await self._pick(message, choices, default)

    async def _pick(self, message: str, choices: list[dict[str, Any]], default: Any = None) -> Any:
        for index, choice in enumerate(choices, start=1):
            console.print(f"  [cyan]{index}[/cyan]) {escape(str(choice['name']))}")
        default_index = next(
            (str(i) for i, c in enumerate(choices, start=1) if c["value"] == default), "1"
        )
        picked = await asyncio.to_thread(
            Prompt.ask,
            message,
            choices=[str(i) for i in range(1, len(choices) + 1)],
            default=default_index,
            console=console,
        )
        return choices[int(picked) - 1]["value"]

    async def _pick_many(self, message: str, choices: list[dict[str, Any]]) -> list[Any]:
        for index, choice in enumerate(choices, start=1):
            console.print(f"  [cyan]{index}[/cyan]) {escape(str(choice['name']))}")
        raw = await asyncio.to_thread(
            Prompt.ask, f"{message} [dim](comma-separated numbers)[/dim]", default="", console=console
        )
        picked: list[Any] = []
        for part in raw.split(","):
            part = part.strip()
            if part.isdigit() and 1 <= int(part) <= len(choices):
                picked.append(choices[int(part) - 1]["value"])
        return picked


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


@dataclass
class PromptResolver:
    """Gathers hook questions for a command and resolves them into answers."""

    hooks: "HookRegistry"
    asked: list[str] = field(default_factory=list)

    async def collect(
        self,
        command: str,
        initial: dict[str, Any],
        base: list[Question | dict[str, Any]] | None = None,
    ) -> list[Question]:
        """Concatenate *base* questions and every hook's contribution, in order."""
        questions = [as_question(q) for q in base or []]
        for hook, callback in self.hooks.prompt_callbacks(command):
            try:
                contributed = callback(initial)
                if inspect.isawaitable(contributed):
                    contributed = await contributed
            except PromptDataFetchError:
                raise
            except Exception as exc:
                raise PromptDataFetchError(type(hook).__name__, exc) from exc
            questions.extend(as_question(q) for q in contributed or [])
        return questions

    async def resolve(
        self,
        questions: list[Question],
        initial: dict[str, Any],
        prompter: Prompter,
    ) -> dict[str, Any]:
        """Ask every enabled question and return only the new answers.

        Questions whose name is already present in *initial* are not asked.
        Nothing is returned if any question fails.
        """
        answers: dict[str, Any] = {}
        state: ChainMap[str, Any] = ChainMap(answers, initial)

        for question in questions:
            if question.name in initial:
                continue
            if not question.is_enabled(state):
                continue
            value = await prompter.ask(question, state)
            if question.filter is not None:
                value = question.filter(value)
            answers[question.name] = value
            self.asked.append(question.name)

        return answers

    async def prompt(
        self,
        command: str,
        initial: dict[str, Any],
        prompter: Prompter,
        base: list[Question | dict[str, Any]] | None = None,
    ) -> dict[str, Any]:
        questions = await self.collect(command, initial, base)
        return await self.resolve(questions, initial, prompter)
