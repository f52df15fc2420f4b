#!/usr/bin/env python3
"""
Increment the version declared in Cargo.toml and rewrite the file in place.

The first line of the form ``version = "X.Y.Z"`` has its patch number bumped;
every other byte of the file is left as it was.

Usage:
    python increment_cargo_version.py [path] [--field NAME]
        [--component {major,minor,patch}] [--dry-run]
"""

from __future__ import annotations

import argparse
import os
import re
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, NoReturn, Optional, Tuple


DEFAULT_PATH = "Cargo.toml"
DEFAULT_FIELD = "version"
COMPONENTS: Tuple[str, ...] = ("major", "minor", "patch")
TRIPLET_PATTERN = r"(\d+)\.(\d+)\.(\d+)"

Emitter = Callable[[str], None]


def info(message: str) -> None:
    """Print an informational line to stdout."""
    print(f"[INFO] {message}")


def error(message: str) -> None:
    """Print an error line to stderr."""
    print(f"[ERROR] {message}", file=sys.stderr)


class VersionBumpError(Exception):
    """Base class for failures that abort a version bump."""

    exit_code = 1


class ManifestNotFoundError(VersionBumpError):
    """The manifest does not exist or cannot be read."""

    exit_code = 2


class NoMatchError(VersionBumpError):
    """The manifest holds no version declaration."""

    exit_code = 3


class ParseError(VersionBumpError, ValueError):
    """A version value is not three dot-separated integers."""

    exit_code = 4


class ManifestWriteError(VersionBumpError):
    """The manifest could not be written back."""

    exit_code = 5


@dataclass(frozen=True)
class BumpConfig:
    """Which file, which field and which version component to increment."""

    path: Path = Path(DEFAULT_PATH)
    field_name: str = DEFAULT_FIELD
    component: str = "patch"

    def __post_init__(self) -> None:
        if self.component not in COMPONENTS:
            raise ValueError(f"Unknown version component: {self.component}")
        if not self.field_name:
            raise ValueError("Field name must not be empty")

    def line_pattern(self) -> str:
        """Return the expression recognising a declaration of the configured field."""
        return rf'\s*{re.escape(self.field_name)}\s*=\s*"(.*)"'


@dataclass(frozen=True)
class VersionLine:
    """A declaration line and the span of its quoted version value."""

    text: str
    version: str
    start: int
    end: int

    def replace_version(self, new_version: str) -> str:
        """Return the line with only the quoted value replaced."""
        return self.text[: self.start] + new_version + self.text[self.end :]


@dataclass(frozen=True)
class BumpResult:
    content: str
    source_line: str
    new_line: str
    old_version: str
    new_version: str
    line_number: int


def matches(
    text: str, expression: str, emit: Emitter = info, full: bool = False
) -> Optional[re.Match]:
    """Apply ``expression`` to ``text`` and log whether it matched."""
    if full:
        match = re.fullmatch(expression, text, re.ASCII)
    else:
        match = re.search(expression, text, re.ASCII)
    if match is None:
        emit(f"NOT MATCHED for expression [{expression}]")
        return None
    emit(f"MATCHED for expression [{expression}]")
    return match


def increment_version(version: str, component: str = "patch", emit: Emitter = info) -> str:
    """Return ``version`` with one component incremented and lower ones reset."""
    if component not in COMPONENTS:
        raise ValueError(f"Unknown version component: {component}")

    match = matches(version, TRIPLET_PATTERN, emit, full=True)
    if match is None:
        raise ParseError(f"Invalid semver version: {version}")

    parts = list(match.groups())
    index = COMPONENTS.index(component)
    try:
        parts[index] = str(int(parts[index]) + 1)
    except ValueError as exc:
        # int() refuses digit strings beyond sys.get_int_max_str_digits().
        raise ParseError(f"Invalid semver version: {version}") from exc
    for lower in range(index + 1, len(parts)):
        parts[lower] = "0"
    return ".".join(parts)


def read_version_line(
    line: str, config: Optional[BumpConfig] = None, emit: Emitter = info
) -> Optional[VersionLine]:
    """Return the declaration carried by ``line``, or None for any other line."""
    config = config or BumpConfig()
    if not line.strip().startswith(config.field_name):
        return None

    match = matches(line, config.line_pattern(), emit)
    if match is None or not match.group(1):
        return None
    return VersionLine(line, match.group(1), match.start(1), match.end(1))


def _split_line_ending(line: str) -> Tuple[str, str]:
    body = line.rstrip("\r\n")
    return body, line[len(body) :]


def increment_content(
    text: str, config: Optional[BumpConfig] = None, emit: Emitter = info
) -> BumpResult:
    """Bump the first version declaration in ``text`` and return the new content."""
    config = config or BumpConfig()
    lines = re.split(r"(?<=\n)", text)

    for index, raw in enumerate(lines):
        line, ending = _split_line_ending(raw)
        declaration = read_version_line(line, config, emit)
        if declaration is None:
            continue

        try:
            new_version = increment_version(declaration.version, config.component, emit)
        except ParseError as exc:
            raise ParseError(f"{exc} (line {index + 1}: {line})") from exc

        new_line = declaration.replace_version(new_version)
        emit(f"AFFECTED LINE:\n        SRC [{line}]\n        NEW [{new_line}]")
        lines[index] = new_line + ending
        return BumpResult(
            content="".join(lines),
            source_line=line,
            new_line=new_line,
            old_version=declaration.version,
            new_version=new_version,
            line_number=index + 1,
        )

    raise NoMatchError(f"No line matching [{config.line_pattern()}] found")


def read_manifest(path: Path) -> str:
    """Read the manifest as UTF-8 text with its line endings untouched."""
    if not path.is_file():
        raise ManifestNotFoundError(f"Manifest not found: {path}")
    try:
        return path.read_bytes().decode("utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ManifestNotFoundError(f"Manifest not readable: {path}: {exc}") from exc


def write_manifest(path: Path, content: str) -> None:
    """Overwrite the manifest with ``content``."""
    try:
        path.write_bytes(content.encode("utf-8"))
    except OSError as exc:
        raise ManifestWriteError(f"Failed to write {path}: {exc}") from exc


def increment_manifest(
    config: Optional[BumpConfig] = None, emit: Emitter = info, dry_run: bool = False
) -> BumpResult:
    """Read, bump and (unless ``dry_run``) rewrite the configured manifest."""
    config = config or BumpConfig()
    result = increment_content(read_manifest(config.path), config, emit)
    if not dry_run:
        write_manifest(config.path, result.content)
    return result


def write_github_output(result: BumpResult, github_output: str) -> None:
    """Append the old and new versions to the GitHub Actions output file."""
    with open(github_output, "a", encoding="utf-8") as fh:
        fh.write(f"previous_version={result.old_version}\n")
        fh.write(f"version={result.new_version}\n")


class ArgumentParser(argparse.ArgumentParser):
    """Argument parser that exits 1 on bad usage; 2 means a missing manifest."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = ArgumentParser(
        prog="increment-cargo-version",
        description="Increment the version declared in a Cargo.toml file.",
    )
    parser.add_argument(
        "path",
        nargs="?",
        default=DEFAULT_PATH,
        help=f"manifest to rewrite (default: {DEFAULT_PATH})",
    )
    parser.add_argument(
        "--field",
        default=DEFAULT_FIELD,
        help=f"name of the version field (default: {DEFAULT_FIELD})",
    )
    parser.add_argument(
        "--component",
        choices=COMPONENTS,
        default="patch",
        help="version component to increment (default: patch)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="report the change without rewriting the file",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Bump the manifest version and report the outcome through the exit status."""
    args = parse_args(argv)
    try:
        config = BumpConfig(Path(args.path), args.field, args.component)
    except ValueError as exc:
        error(str(exc))
        return 1

    try:
        result = increment_content(read_manifest(config.path), config)
    except VersionBumpError as exc:
        error(str(exc))
        return exc.exit_code

    if args.dry_run:
        info(f"Dry run: {config.path} left unchanged")
        return 0

    # GITHUB_OUTPUT is written first; a failure there leaves the manifest untouched.
    github_output = os.environ.get("GITHUB_OUTPUT")
    if github_output:
        try:
            write_github_output(result, github_output)
        except OSError as exc:
            error(f"Failed to write to GITHUB_OUTPUT: {exc}")
            return 1

    try:
        write_manifest(config.path, result.content)
    except ManifestWriteError as exc:
        error(str(exc))
        return exc.exit_code
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
