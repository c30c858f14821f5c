"""CLI entry point for ``plinth`` / ``python -m plinth``."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any

from rich.markup import escape

from plinth import __version__
from plinth.commands import COMMANDS
from plinth.config import Config
from plinth.core.lifecycle import CliService, CommandRun
from plinth.core.prompts import ConsolePrompter, ScriptedPrompter
from plinth.utils import console, format_duration, print_error, print_success, print_summary_table

# Options that configure the service rather than feed the command context.
_GLOBAL_DESTS = {"command", "project_dir", "yes", "skip_install", "verbose", "quiet", "set", "package_manager"}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="plinth",
        description="plinth -- plugin-extensible project scaffolding",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  plinth init my-app --features swagger,db:typeorm\n"
            "  plinth generate controller Users --route /users\n"
            "  plinth generate protocol Local -s passport_package=passport-local -y\n"
        ),
    )
    parser.add_argument("--version", action="version", version=f"plinth {__version__}")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "-C", "--project-dir", type=Path, default=None,
        help="Directory of the target project (default: current directory)",
    )
    common.add_argument(
        "-y", "--yes", action="store_true",
        help="Do not prompt; use given values and question defaults",
    )
    common.add_argument(
        "-s", "--set", action="append", default=[], metavar="KEY=VALUE",
        help="Answer a question up-front (repeatable)",
    )
    common.add_argument("--package-manager", choices=["npm", "yarn"], default=None)
    common.add_argument("--skip-install", action="store_true", default=None)
    common.add_argument("-v", "--verbose", action="store_true", default=None)
    common.add_argument("-q", "--quiet", action="store_true")

    subparsers = parser.add_subparsers(dest="command", metavar="<command>")
    subparsers.required = True
    for command_cls in COMMANDS:
        sub = subparsers.add_parser(
            command_cls.name, help=command_cls.description, parents=[common]
        )
        for flags, kwargs in command_cls.arguments:
            sub.add_argument(*flags, **kwargs)

    return parser


def parse_set_options(values: list[str]) -> dict[str, Any]:
    """Turn ``KEY=VALUE`` strings into a dict."""
    parsed: dict[str, Any] = {}
    for item in values:
        if "=" not in item:
            raise ValueError(f"Invalid --set value '{item}' (expected KEY=VALUE)")
        key, value = item.split("=", 1)
        parsed[key.strip().replace("-", "_")] = value
    return parsed


def initial_context(args: argparse.Namespace) -> dict[str, Any]:
    """Raw command context from parsed arguments (``None`` values dropped)."""
    ctx = {
        key: value
        for key, value in vars(args).items()
        if key not in _GLOBAL_DESTS and value is not None
    }
    if isinstance(ctx.get("features"), str):
        ctx["features"] = [f.strip() for f in ctx["features"].split(",") if f.strip()]
    ctx.update(parse_set_options(args.set))
    return ctx


def create_service(args: argparse.Namespace) -> CliService:
    config = Config.from_env(
        project_dir=args.project_dir,
        package_manager=args.package_manager,
        skip_install=args.skip_install,
        verbose=args.verbose,
    )
    cli = CliService(config, quiet=args.quiet)
    for command_cls in COMMANDS:
        cli.register_command(command_cls)
    cli.plugins.load_plugins()
    return cli


def print_run_summary(run: CommandRun) -> None:
    durations = sum(r.duration for r in run.reports if r.depth == 0)
    print_summary_table(
        {
            "Command": run.command,
            "Tasks": str(len(run.reports)),
            "Duration": format_duration(durations),
        },
        title="plinth",
    )


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        ctx = initial_context(args)
    except ValueError as exc:
        parser.error(str(exc))

    cli = create_service(args)
    prompter = ScriptedPrompter(ctx) if args.yes else ConsolePrompter()

    try:
        run = asyncio.run(cli.run_command(args.command, ctx, prompter))
    except KeyboardInterrupt:
        console.print()
        print_error("Aborted.")
        sys.exit(130)
    except Exception as exc:
        print_error(f"{args.command} failed: {escape(str(exc))}")
        if cli.config.verbose:
            console.print_exception()
        sys.exit(1)

    if not args.quiet:
        print_run_summary(run)
    print_success(f"{args.command} completed successfully!")


if __name__ == "__main__":
    main()
