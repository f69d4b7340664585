"""Version stamping for simple (single-file) packages.

A simple package declares its metadata in comment headers near the top of
the file:

    ;;; foo.el --- Frobnicate things  -*- lexical-binding: t -*-
    ;; Author: Someone <someone@example.com>
    ;; Version: 0.1
    ;;; Code:

Only lines before the `;;; Code:` marker are considered headers. When both
`Package-Version` and `Version` are present, `Package-Version` wins.

The file is parsed into a HeaderBlock, the chosen header's value is
replaced, and the block is rendered back. Lines other than the stamped one
come out byte-for-byte identical, line endings included.
"""

import logging
import re
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

from elpa_deploy.types import MissingHeader

logger = logging.getLogger(__name__)

# Version headers in lookup order
VERSION_HEADERS = ("Package-Version", "Version")

_HEADER_RE = re.compile(
    r"^(?P<prefix>;+[ \t]+(?:@\(#\))?[ \t]*\$?"
    r"(?P<name>[A-Za-z][A-Za-z0-9_-]*)[ \t]*:)"
    r"[ \t]*(?P<value>\S*)(?P<rest>.*)$",
)
_CODE_MARKER_RE = re.compile(r"^;;;[ \t]*Code[ \t]*:", re.IGNORECASE)
_LINE_RE = re.compile(r"[^\n]*\n|[^\n]+\Z")


@dataclass(frozen=True)
class Header:
    """One `;; Name: value` line in the header region."""

    name: str
    line_index: int
    prefix: str  # everything up to and including the colon
    value: str
    rest: str = ""

    def render(self) -> str:
        if not self.value:
            return self.prefix
        return f"{self.prefix} {self.value}{self.rest}"


@dataclass(frozen=True)
class HeaderBlock:
    """A package file split into lines, with its parsed headers."""

    lines: tuple[str, ...]
    headers: tuple[Header, ...]

    def get(self, name: str) -> Optional[Header]:
        """Return the first header called `name` (case-insensitive)."""
        wanted = name.lower()
        for header in self.headers:
            if header.name.lower() == wanted:
                return header
        return None

    def version_header(self) -> Optional[Header]:
        for name in VERSION_HEADERS:
            header = self.get(name)
            if header is not None:
                return header
        return None

    def with_value(self, header: Header, value: str) -> "HeaderBlock":
        """Return a new block with `header`'s value replaced."""
        updated = replace(header, value=value)
        lines = list(self.lines)
        lines[header.line_index] = updated.render() + _line_ending(lines[header.line_index])
        headers = tuple(updated if h is header else h for h in self.headers)
        return HeaderBlock(lines=tuple(lines), headers=headers)

    def render(self) -> str:
        return "".join(self.lines)


def _line_ending(line: str) -> str:
    if line.endswith("\r\n"):
        return "\r\n"
    if line.endswith("\n"):
        return "\n"
    return ""


def parse_headers(text: str) -> HeaderBlock:
    """Split `text` into lines and collect the headers before `;;; Code:`."""
    lines = tuple(_LINE_RE.findall(text))
    headers: list[Header] = []

    for index, line in enumerate(lines):
        content = line[: len(line) - len(_line_ending(line))]
        if _CODE_MARKER_RE.match(content):
            break
        match = _HEADER_RE.match(content)
        if match is None:
            continue
        headers.append(Header(
            name=match.group("name"),
            line_index=index,
            prefix=match.group("prefix"),
            value=match.group("value"),
            rest=match.group("rest") if match.group("value") else "",
        ))

    return HeaderBlock(lines=lines, headers=tuple(headers))


def stamp_simple_package(path: Path, version: str) -> Header:
    """Rewrite the version header of the package file at `path` in place.

    Returns the updated header. Raises MissingHeader, without touching the
    file, when neither Package-Version nor Version is declared.
    """
    with path.open(encoding="utf-8", errors="surrogateescape", newline="") as fh:
        block = parse_headers(fh.read())

    header = block.version_header()
    if header is None:
        raise MissingHeader(path)

    updated = block.with_value(header, version)
    with path.open("w", encoding="utf-8", errors="surrogateescape", newline="") as fh:
        fh.write(updated.render())

    logger.info(
        "Stamped %s header of %s: %s -> %s",
        header.name, path, header.value or "(empty)", version,
    )
    return updated.headers[block.headers.index(header)]
