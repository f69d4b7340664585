"""Publishing artifacts into an archive directory.

The deploy pipeline talks to an ArchivePublisher, so anything that can
list, remove and accept artifacts can stand in for the plain directory
used by default.
"""

import logging
import re
import shutil
from pathlib import Path
from typing import Protocol

from elpa_deploy.stamping.version import artifact_pattern
from elpa_deploy.types import Artifact

logger = logging.getLogger(__name__)


class ArchivePublisher(Protocol):
    def publish(self, artifact: Artifact) -> Path:
        ...

    def list_existing(self, pattern: re.Pattern) -> list[Path]:
        ...

    def remove(self, path: Path) -> None:
        ...


class DirectoryPublisher:
    """Publish artifacts by copying them into a local directory."""

    def __init__(self, target_dir: Path):
        self.target_dir = Path(target_dir)

    def publish(self, artifact: Artifact) -> Path:
        self.target_dir.mkdir(parents=True, exist_ok=True)
        dest = self.target_dir / artifact.filename
        shutil.copy2(artifact.path, dest)
        logger.info("Published %s to %s", artifact.path.name, dest)
        return dest

    def list_existing(self, pattern: re.Pattern) -> list[Path]:
        """Return the entries whose whole name matches `pattern`, sorted by name."""
        if not self.target_dir.is_dir():
            return []
        return sorted(
            entry for entry in self.target_dir.iterdir()
            if pattern.fullmatch(entry.name) and not entry.is_dir()
        )

    def remove(self, path: Path) -> None:
        path.unlink()
        logger.info("Removed stale artifact %s", path)


def remove_stale(publisher: ArchivePublisher, package: str, extension: str) -> list[Path]:
    """Remove every published version of `package` and return what was removed."""
    stale = publisher.list_existing(artifact_pattern(package, extension))
    for path in stale:
        publisher.remove(path)
    if stale:
        logger.info("Removed %d stale artifact(s) for %s", len(stale), package)
    return stale
