"""Date-based version strings and the artifact naming pattern.

Versions are `YYYYMMDD.HHMM` taken from the local wall clock. Nothing is
persisted between deploys, so two deploys in the same minute produce the
same version.
"""

import re
from datetime import datetime
from typing import Callable, Optional

VERSION_FORMAT = "%Y%m%d.%H%M"

# Published names: <package>-<8 digits>.<3-4 digits>.<ext>. Three digits
# covers archives that dropped the leading zero of the time component.
_ARTIFACT_VERSION_RE = r"\d{8}\.\d{3,4}"


def make_version(clock: Optional[Callable[[], datetime]] = None) -> str:
    """Return the version string for a deploy happening now."""
    now = clock() if clock is not None else datetime.now()
    return now.strftime(VERSION_FORMAT)


def artifact_pattern(package: str, extension: str) -> re.Pattern:
    """Compile the full-name pattern matching every published version of a package."""
    return re.compile(
        rf"^{re.escape(package)}-{_ARTIFACT_VERSION_RE}\.{re.escape(extension)}$"
    )
