"""Shared types for the deploy pipeline.

Artifact and RenameRule travel between the dispatcher, the archiver and the
publisher. DeployResult is what a finished deploy reports back.
The error hierarchy lives here too so every stage raises from one place.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional


class PackageKind(str, Enum):
    """How a package source is laid out on disk."""

    SIMPLE = "simple"
    MULTI = "multi"

    @property
    def extension(self) -> str:
        return "el" if self is PackageKind.SIMPLE else "tar"


@dataclass(frozen=True)
class Artifact:
    """A file ready to be published into the target archive.

    For simple packages `path` is the source file itself; for multi-file
    packages it is the transient tarball next to the source directory.
    """

    path: Path
    package: str
    version: str
    extension: str

    @property
    def filename(self) -> str:
        return f"{self.package}-{self.version}.{self.extension}"


@dataclass(frozen=True)
class RenameRule:
    """Rename the top-level directory `source` to `target` inside an archive."""

    source: str
    target: str


@dataclass
class DeployResult:
    kind: PackageKind
    package: str
    version: str
    published_path: Optional[Path] = None
    removed: list[Path] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "package": self.package,
            "version": self.version,
            "published_path": str(self.published_path) if self.published_path else None,
            "removed": [str(p) for p in self.removed],
        }


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class DeployError(Exception):
    """Base class for every failure the deploy pipeline reports."""

    def __init__(self, path: Optional[Path], message: str):
        self.path = path
        super().__init__(message)


class InvalidInput(DeployError):
    """Raised when the source path is neither a regular file nor a directory,
    or when a package directory would be archived into its own target."""

    def __init__(self, path: Path, message: str = ""):
        super().__init__(path, message or f"Not a package file or directory: {path}")


class MissingHeader(DeployError):
    """Raised when a simple package has no Package-Version or Version header."""

    def __init__(self, path: Path):
        super().__init__(path, f"No Package-Version or Version header in {path}")


class MissingDefinitionFile(DeployError):
    """Raised when a multi-file package directory lacks its -pkg.el file."""

    def __init__(self, path: Path):
        super().__init__(path, f"Package definition file not found: {path}")


class MalformedDefinition(DeployError):
    """Raised when the -pkg.el file has no usable define-package form."""

    def __init__(self, path: Optional[Path], reason: str = ""):
        self.reason = reason
        detail = f": {reason}" if reason else ""
        where = f" in {path}" if path else ""
        super().__init__(path, f"No valid define-package form{where}{detail}")


class ArchiveError(DeployError):
    """Raised when the archiver fails to produce the package tarball.

    Carries the command (when an external tool was used) and its stderr
    for the operator.
    """

    def __init__(self, path: Path, message: str, command: Optional[list[str]] = None, stderr: str = ""):
        self.command = command or []
        self.stderr = stderr
        super().__init__(path, message)
