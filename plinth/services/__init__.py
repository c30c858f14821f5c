"""I/O collaborators used by commands and hooks."""

from plinth.services.npm_client import NpmClient, PackageIndexError, PackageInfo
from plinth.services.package_json import InstallError, ProjectPackageJson
from plinth.services.renderer import TemplateRenderer

__all__ = [
    "InstallError",
    "NpmClient",
    "PackageIndexError",
    "PackageInfo",
    "ProjectPackageJson",
    "TemplateRenderer",
]
