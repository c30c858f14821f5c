from plinth.commands.generate import GenerateCmd
from plinth.commands.init import InitCmd

COMMANDS = [InitCmd, GenerateCmd]

__all__ = [
    "COMMANDS",
    "GenerateCmd",
    "InitCmd",
]
