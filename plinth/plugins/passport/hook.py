"""Generate hook contributing the ``protocol`` provider.

Asks which Passport strategy package to use, declares it as a dependency of
the project and renders a protocol class from the package's own template or
the generic one.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from plinth.core.hooks import Hook, on_exec, on_prompt
from plinth.core.prompts import AutocompleteSource, Question
from plinth.core.tasks import Task
from plinth.plugins.passport.client import PassportClient
from plinth.services.npm_client import PackageInfo
from plinth.utils import kebab_case

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"

PACKAGES_KEY = "passport_packages"


class PassportGenerateHook(Hook):
    providers = [{"name": "Protocol", "value": "protocol", "base_dir": "protocols"}]
    feature = "passport"
    dependencies = {"@tsed/passport": "{{ tsed_version }}", "passport": "latest"}
    dev_dependencies = {"@types/passport": "latest"}

    def __init__(self, cli: Any) -> None:
        super().__init__(cli)
        self.passport_client = PassportClient(cli.npm_client)

    @on_prompt("generate")
    def on_generate_prompt(self, initial: dict[str, Any]) -> list[Question]:
        source = AutocompleteSource(
            self.passport_client.get_packages,
            to_choice=lambda pkg: {"name": f"{pkg.name} - {pkg.description}", "value": pkg.name},
            store_as=PACKAGES_KEY,
        )
        return [
            Question(
                type="autocomplete",
                name="passport_package",
                message="Which passport package ?",
                when=lambda state: state.get("type") in ("protocol",),
                source=source,
            )
        ]

    @on_exec("generate")
    async def on_generate_exec(self, ctx: dict[str, Any]) -> list[Task]:
        data = self.map_options(ctx)
        passport_package = ctx["passport_package"]
        symbol_path = data["symbol_path"]

        version = await self.get_passport_package_version(ctx)
        self.cli.package_json.add_dependency(passport_package, version)
        template = self.get_template(passport_package)

        return [
            Task(
                title=f"Generate {ctx['type']} file to '{symbol_path}.ts'",
                action=lambda _ctx: self.cli.src_renderer.render(
                    template, data, output=f"{symbol_path}.ts", template_dir=TEMPLATE_DIR
                ),
            )
        ]

    def map_options(self, ctx: dict[str, Any]) -> dict[str, Any]:
        data = {k: v for k, v in ctx.items() if k != PACKAGES_KEY}
        data["protocol_name"] = kebab_case(ctx["name"])
        return data

    def get_template(self, passport_package: str) -> str:
        template = f"{passport_package}.protocol.ts.j2"
        if self.cli.src_renderer.exists(template, template_dir=TEMPLATE_DIR):
            return template
        return "generic.protocol.ts.j2"

    async def get_passport_package_version(self, ctx: dict[str, Any]) -> str | None:
        """Latest version of the chosen package.

        Uses the package list fetched while prompting when it is in the
        context, and asks the registry otherwise.
        """
        passport_package = ctx["passport_package"]
        packages: list[PackageInfo] | None = ctx.get(PACKAGES_KEY)
        if packages is None:
            return (await self.cli.npm_client.info(passport_package)).latest
        for pkg in packages:
            if pkg.name == passport_package:
                return pkg.latest
        return None
