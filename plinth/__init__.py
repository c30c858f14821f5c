"""plinth -- plugin-extensible project scaffolding.

Quick usage::

    from plinth import CliService, Config
    from plinth.commands import GenerateCmd

    cli = CliService(Config.from_env())
    cli.register_command(GenerateCmd)
    await cli.run_command("generate", {"type": "controller", "name": "Users"})
"""

from plinth.config import Config
from plinth.core.lifecycle import CliService, Command, CommandRun, CommandState

__version__ = "0.1.0"

__all__ = [
    "CliService",
    "Command",
    "CommandRun",
    "CommandState",
    "Config",
]
