"""Command-line entry point: `elpa-deploy [PATH] [TARGET_DIR]`.

Missing arguments are prompted for. TARGET_DIR falls back to
ELPA_DEPLOY_TARGET_DIR before prompting.

Exit status: 0 on success, 1 when the deploy fails, 2 on usage or
configuration errors.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

import structlog
from pydantic import ValidationError

from elpa_deploy import __version__
from elpa_deploy.core.config import Settings, get_settings
from elpa_deploy.core.logging import configure_structlog
from elpa_deploy.deployer import deploy
from elpa_deploy.packaging.archiver import get_archiver
from elpa_deploy.types import DeployError

EXIT_OK = 0
EXIT_DEPLOY_FAILED = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="elpa-deploy",
        description=(
            "Stamp a date-based version into an Emacs Lisp package and publish "
            "it into an ELPA-style archive directory."
        ),
    )
    parser.add_argument(
        "path",
        nargs="?",
        help="Package file (simple package) or directory (multi-file package).",
    )
    parser.add_argument(
        "target_dir",
        nargs="?",
        help="Archive directory to publish into (default: $ELPA_DEPLOY_TARGET_DIR).",
    )
    parser.add_argument(
        "--archiver",
        choices=("tar", "tarfile"),
        help="Archive backend for multi-file packages.",
    )
    parser.add_argument("--tar-command", help="tar executable to run.")
    parser.add_argument("--json-logs", action="store_true", help="Emit JSON log lines.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _prompt(label: str) -> str:
    try:
        return input(label).strip()
    except EOFError:
        return ""


def _apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    updates: dict = {}
    if args.archiver:
        updates["archiver"] = args.archiver
    if args.tar_command:
        updates["tar_command"] = args.tar_command
    if args.json_logs:
        updates["json_logs"] = True
    if args.verbose:
        updates["debug"] = True
    if not updates:
        return settings
    return Settings.model_validate({**settings.model_dump(), **updates})


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = _apply_overrides(get_settings(), args)
    except ValidationError as exc:
        print(f"elpa-deploy: invalid configuration:\n{exc}", file=sys.stderr)
        return EXIT_USAGE

    configure_structlog(debug=settings.debug, json_logs=settings.json_logs)
    log = structlog.get_logger("elpa_deploy")

    path = args.path or _prompt("Package file or directory: ")
    if not path:
        parser.print_usage(sys.stderr)
        print("elpa-deploy: a package path is required", file=sys.stderr)
        return EXIT_USAGE

    target = args.target_dir or settings.target_dir or _prompt("Archive directory: ")
    if not target:
        parser.print_usage(sys.stderr)
        print("elpa-deploy: a target archive directory is required", file=sys.stderr)
        return EXIT_USAGE

    try:
        result = deploy(
            Path(path),
            Path(target),
            archiver=get_archiver(settings),
        )
    except DeployError as exc:
        log.error("deploy_failed", error=str(exc), path=str(exc.path) if exc.path else None)
        return EXIT_DEPLOY_FAILED

    log.info("deployed", **result.to_dict())
    print(result.published_path)
    return EXIT_OK
