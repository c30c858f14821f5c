"""``plinth generate`` -- render one provider file into the project."""

from __future__ import annotations

from pathlib import PurePosixPath
from typing import Any

from plinth.core.lifecycle import Command
from plinth.core.prompts import Question
from plinth.core.registry import ProviderInfo, UnknownProviderError
from plinth.core.tasks import Task
from plinth.utils import kebab_case, pascal_case

# Providers rendered by the command itself.  Plugins add their own.
BUILTIN_PROVIDERS: list[ProviderInfo] = [
    ProviderInfo(name="Controller", value="controller", base_dir="controllers"),
    ProviderInfo(name="Service", value="service", base_dir="services"),
    ProviderInfo(name="Middleware", value="middleware", base_dir="middlewares"),
    ProviderInfo(name="Model", value="model", base_dir="models"),
    ProviderInfo(name="Server", value="server", base_dir=""),
]

ROUTED_TYPES = ("controller", "server")


class GenerateCmd(Command):
    name = "generate"
    description = "Generate a new provider class"
    arguments = [
        (("type",), {"nargs": "?", "help": "Type of the provider (controller, service, ...)"}),
        (("name",), {"nargs": "?", "help": "Name of the class"}),
        (("-r", "--route"), {"help": "The route for the controller generated file"}),
    ]

    def __init__(self, cli: Any) -> None:
        super().__init__(cli)
        for info in BUILTIN_PROVIDERS:
            cli.providers.register(info, self)

    def prompt(self, initial: dict[str, Any]) -> list[Question]:
        return [
            Question(
                type="list",
                name="type",
                message="Which type of provider ?",
                choices=lambda state: self.cli.providers.choices(),
            ),
            Question(
                type="input",
                name="name",
                message="Which name ?",
                default=lambda state: pascal_case(state["type"]),
            ),
            Question(
                type="input",
                name="route",
                message="Which route ?",
                when=lambda state: state.get("type") in ROUTED_TYPES,
                default=lambda state: f"/{kebab_case(state.get('name') or state['type'])}",
            ),
        ]

    def map_context(self, ctx: dict[str, Any]) -> dict[str, Any]:
        provider_type = ctx.get("type")
        info = self.cli.providers.lookup(provider_type) if provider_type else None
        if info is None:
            raise UnknownProviderError(str(provider_type))

        name = ctx.get("name") or info.name
        class_name = pascal_case(name)
        suffix = pascal_case(provider_type)

        ctx["name"] = name
        ctx["symbol_name"] = class_name if class_name.endswith(suffix) else f"{class_name}{suffix}"
        ctx["symbol_param_name"] = kebab_case(name)
        ctx["symbol_path"] = symbol_path(info, name)
        if ctx.get("route"):
            ctx["route"] = "/" + str(ctx["route"]).strip("/")
        ctx.setdefault("src_dir", self.cli.config.src_dir)
        return ctx

    def exec(self, ctx: dict[str, Any]) -> list[Task]:
        if not self.cli.providers.is_owned_by(ctx["type"], self):
            return []

        data = dict(ctx)
        template = f"generate/{ctx['type']}.ts.j2"
        output = f"{ctx['symbol_path']}.ts"
        return [
            Task(
                title=f"Generate {ctx['type']} file to '{output}'",
                action=lambda _ctx: self.cli.src_renderer.render(template, data, output=output),
            )
        ]


def symbol_path(info: ProviderInfo, name: str) -> str:
    """Path of the generated file relative to the source dir, without extension."""
    if info.value == "server":
        return pascal_case(name)
    base_dir = info.base_dir if info.base_dir is not None else f"{info.value}s"
    return str(PurePosixPath(base_dir) / f"{kebab_case(name)}.{info.value}")
