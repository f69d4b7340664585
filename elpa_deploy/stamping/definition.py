"""Version stamping for multi-file packages.

A multi-file package directory `foo/` carries a definition file
`foo/foo-pkg.el` whose first form is a define-package call:

    (define-package "foo" "0.3" "Frobnicate things"
      '((emacs "27.1")))

The version is the third element of that form. The reader below parses
just enough Emacs Lisp syntax to find the first top-level form and the
source span of each of its elements, so the version literal can be swapped
without disturbing comments, indentation or the remaining arguments.
"""

import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

from elpa_deploy.types import MalformedDefinition, MissingDefinitionFile

logger = logging.getLogger(__name__)

DEFINE_FORM = "define-package"

_OPENERS = {"(": ")", "[": "]"}
_CLOSERS = frozenset(")]")
_PREFIXES = ("'", "`", ",@", ",", "#'")
_DELIMITERS = frozenset("()[]\";'`,")


class _ReadError(ValueError):
    pass


@dataclass(frozen=True)
class Node:
    """A parsed Lisp datum and the [start, end) span it occupies in the source."""

    kind: str  # "list", "vector", "string", "atom", "quoted"
    start: int
    end: int
    value: object = None
    children: tuple["Node", ...] = ()


class _Reader:
    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    def skip_blank(self) -> None:
        text = self.text
        while self.pos < len(text):
            ch = text[self.pos]
            if ch.isspace():
                self.pos += 1
            elif ch == ";":
                newline = text.find("\n", self.pos)
                self.pos = len(text) if newline == -1 else newline + 1
            else:
                break

    def read(self) -> Optional[Node]:
        """Read the next datum, or return None at end of input."""
        self.skip_blank()
        if self.pos >= len(self.text):
            return None

        ch = self.text[self.pos]
        if ch in _OPENERS:
            return self._read_sequence(ch)
        if ch in _CLOSERS:
            raise _ReadError(f"unexpected '{ch}' at offset {self.pos}")
        if ch == '"':
            return self._read_string()
        for prefix in _PREFIXES:
            if self.text.startswith(prefix, self.pos):
                return self._read_quoted(prefix)
        if ch == "?":
            return self._read_char()
        return self._read_atom()

    def _read_sequence(self, opener: str) -> Node:
        start = self.pos
        closer = _OPENERS[opener]
        self.pos += 1
        children: list[Node] = []
        while True:
            self.skip_blank()
            if self.pos >= len(self.text):
                raise _ReadError(f"unterminated '{opener}' opened at offset {start}")
            ch = self.text[self.pos]
            if ch == closer:
                self.pos += 1
                break
            if ch in _CLOSERS:
                raise _ReadError(f"mismatched '{ch}' at offset {self.pos}")
            child = self.read()
            if child is None:
                raise _ReadError(f"unterminated '{opener}' opened at offset {start}")
            children.append(child)
        kind = "list" if opener == "(" else "vector"
        return Node(kind=kind, start=start, end=self.pos, children=tuple(children))

    def _read_string(self) -> Node:
        start = self.pos
        self.pos += 1
        chars: list[str] = []
        text = self.text
        while self.pos < len(text):
            ch = text[self.pos]
            if ch == "\\":
                if self.pos + 1 >= len(text):
                    break
                nxt = text[self.pos + 1]
                # Backslash-newline is a line continuation inside strings
                if nxt != "\n":
                    chars.append({"n": "\n", "t": "\t"}.get(nxt, nxt))
                self.pos += 2
                continue
            if ch == '"':
                self.pos += 1
                return Node(kind="string", start=start, end=self.pos, value="".join(chars))
            chars.append(ch)
            self.pos += 1
        raise _ReadError(f"unterminated string at offset {start}")

    def _read_quoted(self, prefix: str) -> Node:
        start = self.pos
        self.pos += len(prefix)
        inner = self.read()
        if inner is None:
            raise _ReadError(f"nothing after '{prefix}' at offset {start}")
        return Node(kind="quoted", start=start, end=inner.end, value=prefix, children=(inner,))

    def _read_char(self) -> Node:
        start = self.pos
        self.pos += 1
        if self.pos < len(self.text) and self.text[self.pos] == "\\":
            self.pos += 1
        if self.pos >= len(self.text):
            raise _ReadError(f"incomplete character literal at offset {start}")
        self.pos += 1
        return Node(kind="atom", start=start, end=self.pos, value=self.text[start:self.pos])

    def _read_atom(self) -> Node:
        start = self.pos
        text = self.text
        while self.pos < len(text):
            ch = text[self.pos]
            if ch == "\\" and self.pos + 1 < len(text):
                self.pos += 2
                continue
            if ch.isspace() or ch in _DELIMITERS:
                break
            self.pos += 1
        return Node(kind="atom", start=start, end=self.pos, value=text[start:self.pos])


def quote_string(value: str) -> str:
    """Render `value` as an Emacs Lisp string literal."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


@dataclass(frozen=True)
class PackageDefinition:
    """The define-package form of a -pkg.el file.

    `text` is the whole file; `version_span` locates the version literal so
    render() can replace it and nothing else.
    """

    text: str
    name: str
    version: str
    version_span: tuple[int, int]
    extra_args: tuple[str, ...] = ()

    def with_version(self, version: str) -> "PackageDefinition":
        return replace(self, version=version)

    def render(self) -> str:
        start, end = self.version_span
        return self.text[:start] + quote_string(self.version) + self.text[end:]


def parse_definition(text: str, path: Optional[Path] = None) -> PackageDefinition:
    """Parse the first top-level form of a -pkg.el file.

    Raises MalformedDefinition when the form is missing, unreadable, not a
    define-package call, or has no string version as its third element.
    """
    try:
        form = _Reader(text).read()
    except _ReadError as exc:
        raise MalformedDefinition(path, str(exc)) from exc

    if form is None:
        raise MalformedDefinition(path, "file is empty")
    if form.kind != "list" or not form.children:
        raise MalformedDefinition(path, "first form is not a list")

    head = form.children[0]
    if head.kind != "atom" or head.value != DEFINE_FORM:
        raise MalformedDefinition(path, f"first form does not start with {DEFINE_FORM}")
    if len(form.children) < 3:
        raise MalformedDefinition(path, "define-package form has no version")

    name_node, version_node = form.children[1], form.children[2]
    if version_node.kind != "string":
        raise MalformedDefinition(path, "version is not a string literal")

    name = name_node.value if name_node.kind == "string" else text[name_node.start:name_node.end]
    return PackageDefinition(
        text=text,
        name=str(name),
        version=str(version_node.value),
        version_span=(version_node.start, version_node.end),
        extra_args=tuple(text[n.start:n.end] for n in form.children[3:]),
    )


def find_definition_file(directory: Path) -> Path:
    """Return `<directory>/<base>-pkg.el`, raising MissingDefinitionFile if absent."""
    path = directory / f"{directory.name}-pkg.el"
    if not path.is_file():
        raise MissingDefinitionFile(path)
    return path


def stamp_multi_package(directory: Path, version: str) -> PackageDefinition:
    """Rewrite the define-package version of the package in `directory` in place."""
    path = find_definition_file(directory)
    with path.open(encoding="utf-8", errors="surrogateescape", newline="") as fh:
        definition = parse_definition(fh.read(), path)

    updated = definition.with_version(version)
    with path.open("w", encoding="utf-8", errors="surrogateescape", newline="") as fh:
        fh.write(updated.render())

    logger.info(
        "Stamped define-package version of %s: %s -> %s",
        path, definition.version, version,
    )
    return updated
