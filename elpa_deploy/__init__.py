"""Deploy Emacs Lisp packages into an ELPA-style archive directory.

Public API:
    deploy(path, target_dir, *, publisher=None, archiver=None, clock=None) -> DeployResult
"""

from elpa_deploy.deployer import deploy
from elpa_deploy.types import (
    ArchiveError,
    Artifact,
    DeployError,
    DeployResult,
    InvalidInput,
    MalformedDefinition,
    MissingDefinitionFile,
    MissingHeader,
    PackageKind,
    RenameRule,
)

__version__ = "0.1.0"

__all__ = [
    "deploy",
    "ArchiveError",
    "Artifact",
    "DeployError",
    "DeployResult",
    "InvalidInput",
    "MalformedDefinition",
    "MissingDefinitionFile",
    "MissingHeader",
    "PackageKind",
    "RenameRule",
]
