"""Version stamping for simple and multi-file packages.

Public API:
    make_version(clock) -> str
    stamp_simple_package(path, version) -> Header
    stamp_multi_package(directory, version) -> PackageDefinition
"""

from elpa_deploy.stamping.definition import stamp_multi_package
from elpa_deploy.stamping.headers import stamp_simple_package
from elpa_deploy.stamping.version import artifact_pattern, make_version

__all__ = [
    "artifact_pattern",
    "make_version",
    "stamp_multi_package",
    "stamp_simple_package",
]
