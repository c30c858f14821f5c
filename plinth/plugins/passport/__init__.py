"""Passport.js plugin: adds the ``protocol`` provider to ``plinth generate``."""

from plinth.plugins.passport.client import PassportClient
from plinth.plugins.passport.hook import PassportGenerateHook

__all__ = [
    "PassportClient",
    "PassportGenerateHook",
]
