"""Deploy a package into an ELPA-style archive directory.

deploy() dispatches on the source path:
  - a regular file is a simple package: stamp its version header, then
    publish the file itself;
  - a directory is a multi-file package: stamp its -pkg.el, bundle the
    directory into a tarball next to it, publish the tarball, then delete
    the local copy.

Previously published versions of the same package are removed from the
target directory before the new artifact goes in.

There is no rollback. A failure after stamping leaves the source stamped.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from elpa_deploy.core.config import get_settings
from elpa_deploy.packaging.archiver import Archiver, default_excludes, get_archiver
from elpa_deploy.packaging.publisher import ArchivePublisher, DirectoryPublisher, remove_stale
from elpa_deploy.stamping.definition import stamp_multi_package
from elpa_deploy.stamping.headers import stamp_simple_package
from elpa_deploy.stamping.version import make_version
from elpa_deploy.types import Artifact, DeployResult, InvalidInput, PackageKind, RenameRule

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def deploy(
    path: Path,
    target_dir: Path,
    *,
    publisher: Optional[ArchivePublisher] = None,
    archiver: Optional[Archiver] = None,
    clock: Optional[Clock] = None,
) -> DeployResult:
    """Deploy the package at `path` into `target_dir`.

    Args:
        path: A single package file or a multi-file package directory.
        target_dir: The archive directory; used to build the default
            DirectoryPublisher when `publisher` is not given.
        publisher: Where artifacts are listed, removed and published.
        archiver: Archive backend for multi-file packages. Defaults to the
            configured one.
        clock: Source of the current time for the version string.

    Raises:
        InvalidInput: If `path` is neither a regular file nor a directory, or
            if it is a directory whose parent is `target_dir`.
    """
    path = Path(path).expanduser().resolve()
    if publisher is None:
        publisher = DirectoryPublisher(Path(target_dir).expanduser())

    if path.is_file():
        return deploy_simple(path, publisher, clock=clock)
    if path.is_dir():
        # The tarball is built next to the directory and would match the
        # stale-artifact pattern there.
        if Path(target_dir).expanduser().resolve() == path.parent:
            raise InvalidInput(
                path,
                f"Target directory {path.parent} is the parent of package directory {path}",
            )
        if archiver is None:
            archiver = get_archiver(get_settings())
        return deploy_multi(path, publisher, archiver, clock=clock)
    raise InvalidInput(path)


def deploy_simple(
    path: Path,
    publisher: ArchivePublisher,
    *,
    clock: Optional[Clock] = None,
) -> DeployResult:
    """Stamp and publish a single-file package."""
    package = path.stem
    extension = path.suffix.lstrip(".") or PackageKind.SIMPLE.extension
    version = make_version(clock)
    logger.info("Deploying simple package %s version %s", package, version)

    stamp_simple_package(path, version)

    removed = remove_stale(publisher, package, extension)
    published = publisher.publish(Artifact(
        path=path, package=package, version=version, extension=extension,
    ))

    return DeployResult(
        kind=PackageKind.SIMPLE,
        package=package,
        version=version,
        published_path=published,
        removed=removed,
    )


def deploy_multi(
    directory: Path,
    publisher: ArchivePublisher,
    archiver: Archiver,
    *,
    clock: Optional[Clock] = None,
) -> DeployResult:
    """Stamp, archive and publish a multi-file package directory."""
    package = directory.name
    extension = PackageKind.MULTI.extension
    version = make_version(clock)
    logger.info("Deploying multi-file package %s version %s", package, version)

    stamp_multi_package(directory, version)

    artifact = Artifact(
        path=directory.parent / f"{package}-{version}.{extension}",
        package=package,
        version=version,
        extension=extension,
    )
    archiver.create(
        directory,
        artifact.path,
        RenameRule(source=directory.name, target=f"{package}-{version}"),
        default_excludes(package),
    )

    try:
        removed = remove_stale(publisher, package, extension)
        published = publisher.publish(artifact)
    finally:
        artifact.path.unlink(missing_ok=True)
        logger.debug("Deleted local archive %s", artifact.path)

    return DeployResult(
        kind=PackageKind.MULTI,
        package=package,
        version=version,
        published_path=published,
        removed=removed,
    )
