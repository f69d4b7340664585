"""Archive creation for multi-file packages.

The archive holds the package directory renamed to `<package>-<version>`,
minus version-control metadata, backup files, byte-compiled files and the
generated autoloads file.

Two backends implement the Archiver protocol:
  - TarArchiver shells out to GNU tar (`--transform` does the rename).
  - TarfileArchiver builds the same archive in-process with `tarfile`.
"""

import fnmatch
import logging
import subprocess
import tarfile
from pathlib import Path
from typing import Optional, Protocol, Sequence

from elpa_deploy.core.config import Settings
from elpa_deploy.types import ArchiveError, RenameRule

logger = logging.getLogger(__name__)

VCS_EXCLUDES = (".git", ".hg", ".svn", ".bzr", "_darcs", "CVS")
BACKUP_EXCLUDES = ("*~", "#*#", ".#*")
COMPILED_EXCLUDES = ("*.elc",)

DEFAULT_TIMEOUT = 120


def default_excludes(package: str) -> list[str]:
    """Return the exclude patterns for a package's archive."""
    return [
        *VCS_EXCLUDES,
        *BACKUP_EXCLUDES,
        *COMPILED_EXCLUDES,
        f"{package}-autoloads.el",
    ]


_BRE_SPECIAL = frozenset("\\.[]*^$|")
_REPLACEMENT_SPECIAL = frozenset("\\&|")


def _escape(text: str, special: frozenset) -> str:
    return "".join(f"\\{ch}" if ch in special else ch for ch in text)


def transform_expression(rename_rule: RenameRule) -> str:
    """Build the GNU tar `--transform` expression for a rename rule.

    The `S` flag keeps symlink targets as they are; only member names are
    renamed.
    """
    source = _escape(rename_rule.source, _BRE_SPECIAL)
    target = _escape(rename_rule.target, _REPLACEMENT_SPECIAL)
    return f"s|^{source}|{target}|S"


class Archiver(Protocol):
    def create(
        self,
        source_dir: Path,
        dest_file: Path,
        rename_rule: RenameRule,
        exclude_patterns: Sequence[str],
    ) -> None:
        ...


class TarArchiver:
    """Create archives with the external tar command."""

    def __init__(self, tar_command: str = "tar", timeout: int = DEFAULT_TIMEOUT):
        self.tar_command = tar_command
        self.timeout = timeout

    def build_command(
        self,
        source_dir: Path,
        dest_file: Path,
        rename_rule: RenameRule,
        exclude_patterns: Sequence[str],
    ) -> list[str]:
        cmd = [
            self.tar_command,
            "-cf", str(dest_file),
            f"--transform={transform_expression(rename_rule)}",
        ]
        cmd.extend(f"--exclude={pattern}" for pattern in exclude_patterns)
        cmd.extend(["-C", str(source_dir.parent), source_dir.name])
        return cmd

    def create(
        self,
        source_dir: Path,
        dest_file: Path,
        rename_rule: RenameRule,
        exclude_patterns: Sequence[str],
    ) -> None:
        cmd = self.build_command(source_dir, dest_file, rename_rule, exclude_patterns)
        logger.debug("Running %s", " ".join(cmd))

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as exc:
            raise ArchiveError(
                dest_file, f"tar executable not found: {self.tar_command}", command=cmd,
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise ArchiveError(
                dest_file, f"tar timed out after {self.timeout}s", command=cmd,
            ) from exc

        if result.returncode != 0:
            raise ArchiveError(
                dest_file,
                f"tar failed (exit {result.returncode}): {result.stderr.strip()}",
                command=cmd,
                stderr=result.stderr,
            )

        logger.info("Created archive %s", dest_file)


class TarfileArchiver:
    """Create archives in-process with the tarfile module."""

    def create(
        self,
        source_dir: Path,
        dest_file: Path,
        rename_rule: RenameRule,
        exclude_patterns: Sequence[str],
    ) -> None:
        patterns = list(exclude_patterns)

        def exclude_filter(tarinfo: tarfile.TarInfo) -> Optional[tarfile.TarInfo]:
            for part in Path(tarinfo.name).parts:
                if any(fnmatch.fnmatchcase(part, p) for p in patterns):
                    return None
            if tarinfo.name == rename_rule.source or tarinfo.name.startswith(rename_rule.source + "/"):
                tarinfo.name = rename_rule.target + tarinfo.name[len(rename_rule.source):]
            return tarinfo

        try:
            with tarfile.open(dest_file, "w") as tar:
                tar.add(source_dir, arcname=source_dir.name, filter=exclude_filter)
        except OSError as exc:
            dest_file.unlink(missing_ok=True)
            raise ArchiveError(dest_file, f"Could not write archive: {exc}") from exc

        logger.info("Created archive %s", dest_file)


def get_archiver(settings: Settings) -> Archiver:
    """Build the archiver selected by configuration."""
    if settings.archiver == "tarfile":
        return TarfileArchiver()
    return TarArchiver(tar_command=settings.tar_command, timeout=settings.archive_timeout)
