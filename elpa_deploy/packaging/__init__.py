"""Packaging module for archive creation and publishing.

Public API:
    get_archiver(settings) -> Archiver
    DirectoryPublisher(target_dir).publish(artifact) -> Path
    remove_stale(publisher, package, extension) -> list[Path]
"""

from elpa_deploy.packaging.archiver import (
    Archiver,
    TarArchiver,
    TarfileArchiver,
    default_excludes,
    get_archiver,
)
from elpa_deploy.packaging.publisher import ArchivePublisher, DirectoryPublisher, remove_stale

__all__ = [
    "ArchivePublisher",
    "Archiver",
    "DirectoryPublisher",
    "TarArchiver",
    "TarfileArchiver",
    "default_excludes",
    "get_archiver",
    "remove_stale",
]
