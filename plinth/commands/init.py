"""``plinth init`` -- create a new Ts.ED project."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from plinth.core.lifecycle import Command
from plinth.core.prompts import Question
from plinth.core.tasks import Task, TaskList, create_tasks_runner
from plinth.services.features import feature_questions, to_features
from plinth.utils import camel_case, ensure_dir, kebab_case

ROOT_TEMPLATES = [
    "init/.dockerignore.j2",
    "init/.gitignore.j2",
    "init/docker-compose.yml.j2",
    "init/Dockerfile.j2",
    "init/README.md.j2",
    "init/tsconfig.compile.json.j2",
    "init/tsconfig.json.j2",
]

SRC_TEMPLATES = ["init/index.ts.j2"]

DEPENDENCIES: dict[str, str] = {
    "@tsed/common": "{{ tsed_version }}",
    "@tsed/core": "{{ tsed_version }}",
    "@tsed/di": "{{ tsed_version }}",
    "@tsed/ajv": "{{ tsed_version }}",
    "@tsed/exceptions": "{{ tsed_version }}",
    "@tsed/platform-express": "{{ tsed_version }}",
    "ajv": "latest",
    "body-parser": "latest",
    "cors": "latest",
    "compression": "latest",
    "concurrently": "latest",
    "cookie-parser": "latest",
    "express": "latest",
    "method-override": "latest",
    "cross-env": "latest",
}

DEV_DEPENDENCIES: dict[str, str] = {
    "@types/cors": "2.8.6",
    "@types/express": "latest",
    "@types/node": "latest",
    "@types/compression": "latest",
    "@types/cookie-parser": "latest",
    "@types/method-override": "latest",
    "concurrently": "latest",
    "nodemon": "latest",
    "ts-node": "latest",
    "typescript": "latest",
}

SCRIPTS: dict[str, str] = {
    "build": "yarn tsc",
    "tsc": "tsc --project tsconfig.compile.json",
    "tsc:w": "tsc --project tsconfig.json -w",
    "start": 'nodemon --watch "src/**/*.ts" --ignore "node_modules/**/*" --exec ts-node src/index.ts',
    "start:prod": "cross-env NODE_ENV=production node dist/index.js",
}


class InitCmd(Command):
    name = "init"
    description = "Init a new Ts.ED project"
    arguments = [
        (("root",), {"nargs": "?", "default": ".", "help": "Root directory to initialize the Ts.ED project"}),
        (("-t", "--tsed-version"), {"dest": "tsed_version", "help": "Use a specific version of Ts.ED (format: 5.x.x)"}),
        (("--features",), {"help": "Comma-separated feature types (e.g. swagger,db:typeorm)"}),
    ]

    def prompt(self, initial: dict[str, Any]) -> list[Question]:
        root = initial.get("root") or "."
        return [
            Question(
                type="input",
                name="project_name",
                message="What is your project name",
                default=kebab_case(Path(root).name),
                when=root != ".",
                transformer=kebab_case,
            ),
            *feature_questions(),
        ]

    def map_context(self, ctx: dict[str, Any]) -> dict[str, Any]:
        package_json = self.cli.package_json
        root = ctx.get("root")
        default_name = Path(root).name if root and root != "." else package_json.dir.resolve().name
        ctx["project_name"] = kebab_case(ctx.get("project_name") or default_name)

        if root and root != "." and not str(package_json.dir).endswith(root):
            package_json.dir = package_json.dir / ctx["project_name"]

        features = []
        for key in [k for k in ctx if k.startswith("features")]:
            features.extend(to_features(ctx.pop(key)))

        for feature in features:
            for part in feature.type.split(":"):
                ctx[camel_case(part)] = True

        ctx["features"] = features
        ctx["src_dir"] = self.cli.config.src_dir
        ctx["tsed_version"] = ctx.get("tsed_version") or self.cli.config.tsed_version
        return ctx

    async def before_exec(self, ctx: dict[str, Any]) -> None:
        package_json = self.cli.package_json
        ensure_dir(package_json.dir)

        package_json.name = ctx["project_name"]
        package_json.add_dependencies(DEPENDENCIES, ctx)
        package_json.add_dev_dependencies(DEV_DEPENDENCIES, ctx)
        package_json.add_scripts(SCRIPTS)
        self.add_features(ctx)

        await create_tasks_runner(
            [
                Task("Install plugins", lambda _ctx: package_json.install()),
                Task("Load plugins", lambda _ctx: self.cli.plugins.load_plugins()),
                Task("Install plugins dependencies", self._install_plugins_dependencies),
            ],
            ctx,
            quiet=self.cli.quiet,
        )

    async def _install_plugins_dependencies(self, ctx: dict[str, Any]) -> None:
        self.cli.plugins.add_plugins_dependencies(ctx)
        await self.cli.package_json.install()

    async def exec(self, ctx: dict[str, Any]) -> list[Task]:
        sub_tasks = [
            *await self.cli.get_tasks(
                "generate", {**ctx, "type": "server", "name": "Server", "route": "/rest"}
            ),
            *await self.cli.get_tasks(
                "generate", {"type": "controller", "route": "hello-world", "name": "HelloWorld"}
            ),
        ]

        return [
            Task(
                title="Generate project files for {{ project_name }}",
                action=lambda _ctx: TaskList(
                    [
                        Task(
                            "Root files",
                            lambda c: self.cli.root_renderer.render_all(ROOT_TEMPLATES, c),
                        ),
                        Task(
                            "Create index",
                            lambda c: self.cli.src_renderer.render_all(SRC_TEMPLATES, c),
                        ),
                        *sub_tasks,
                    ],
                    concurrent=False,
                ),
            )
        ]

    def add_features(self, ctx: dict[str, Any]) -> None:
        for feature in ctx["features"]:
            if feature.dependencies:
                self.cli.package_json.add_dependencies(feature.dependencies, ctx)
            if feature.dev_dependencies:
                self.cli.package_json.add_dev_dependencies(feature.dev_dependencies, ctx)
