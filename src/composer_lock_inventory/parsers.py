"""
Parser for Composer lock files.

A composer.lock is a JSON document whose ``packages`` (runtime, the resolved
``require`` graph) and ``packages-dev`` (the resolved ``require-dev`` graph)
arrays list every installed package with its exact version. Everything else
in the document is ignored.
"""

import json
import logging
from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from typing import Any, BinaryIO, Dict, Iterator, List, Tuple

from .cli_config import get_config
from .dependency import ComposerPackage
from .error_handling import FormatError, IOFault

logger = logging.getLogger(__name__)

# How much of the offending document to quote in a FormatError.
FRAGMENT_RADIUS = 40


class Section(Enum):
    """Top-level package lists of a composer.lock, keyed by their JSON name."""

    REQUIRE = "packages"
    REQUIRE_DEV = "packages-dev"


_SECTIONS_BY_KEY = {section.value: section for section in Section}


def _fragment(text: str, position: int) -> str:
    start = max(position - FRAGMENT_RADIUS, 0)
    return text[start : position + FRAGMENT_RADIUS]


def _describe(value: Any) -> str:
    try:
        rendered = json.dumps(value, ensure_ascii=False)
    except (TypeError, ValueError):
        rendered = repr(value)
    if len(rendered) > FRAGMENT_RADIUS * 2:
        return rendered[: FRAGMENT_RADIUS * 2] + "..."
    return rendered


def _decode(stream: BinaryIO) -> Dict[str, Any]:
    raw = stream.read()
    try:
        document = json.loads(raw)
    except json.JSONDecodeError as e:
        raise FormatError(
            f"Invalid JSON in composer.lock: {e.msg} (line {e.lineno}, column {e.colno})",
            fragment=_fragment(e.doc, e.pos),
        ) from e
    except UnicodeDecodeError as e:
        raise FormatError(
            "composer.lock is not valid UTF-8 text",
            fragment=repr(e.object[max(e.start - FRAGMENT_RADIUS, 0) : e.end]),
        ) from e

    if not isinstance(document, dict):
        raise FormatError(
            "composer.lock must contain a JSON object at the top level",
            fragment=_describe(document),
        )
    return document


def _require_string(package: Dict[str, Any], key: str, section: Section) -> str:
    value = package.get(key)
    if not isinstance(value, str) or not value:
        raise FormatError(
            f"Package in '{section.value}' has no valid '{key}'",
            fragment=_describe(package),
        )
    return value


def split_package_name(name: str) -> Tuple[str, str]:
    """
    Split a Composer package name into (group, project).

    The name is split on the first ``/``. Without a separator the group is
    empty and the project is the whole name.
    """
    group, separator, project = name.partition("/")
    if not separator:
        return "", name
    return group, project


def parse_package(package: Any, section: Section) -> ComposerPackage:
    """
    Convert one package object from a lock-file section.

    Raises:
        FormatError: If the object is not a JSON object, or its name or
            version is missing, not a string, or empty
    """
    if not isinstance(package, dict):
        raise FormatError(
            f"Entry in '{section.value}' is not a package object",
            fragment=_describe(package),
        )

    name = _require_string(package, "name", section)
    version = _require_string(package, "version", section)

    group, project = split_package_name(name)
    if not project:
        raise FormatError(
            f"Package name '{name}' in '{section.value}' has an empty project",
            fragment=_describe(package),
        )

    return ComposerPackage(
        group=group,
        project=project,
        version=version,
        dev=section is Section.REQUIRE_DEV,
    )


def parse_composer_lock(stream: BinaryIO) -> Iterator[ComposerPackage]:
    """
    Parse a composer.lock stream into package entries.

    Entries are yielded in file order, section after section in the order the
    sections appear in the document. The generator cannot be restarted, and
    consumers must not act on the entries until it is exhausted: a later
    malformed package still fails the whole lock file.

    Args:
        stream: Binary stream positioned at the start of the document

    Yields:
        ComposerPackage: One entry per package object

    Raises:
        FormatError: If the document or a recognized package object is malformed
    """
    document = _decode(stream)

    for key, entries in document.items():
        section = _SECTIONS_BY_KEY.get(key)
        if section is None:
            continue

        if not isinstance(entries, list):
            raise FormatError(
                f"Section '{key}' must be an array of packages",
                fragment=_describe(entries),
            )

        logger.debug("Reading %d entries from section %s", len(entries), key)
        for package in entries:
            yield parse_package(package, section)


def _validate_file_path(file_path: str) -> Path:
    """
    Validate an artifact path before opening it.

    Raises:
        IOFault: If the path does not name a readable, regular file within the
            configured size limit
    """
    if not file_path or not isinstance(file_path, str):
        raise IOFault("File path must be a non-empty string", path=file_path)

    path = Path(file_path)

    if not path.exists():
        raise IOFault(f"File does not exist: {path}", path=file_path)

    if not path.is_file():
        raise IOFault(f"Path is not a file: {path}", path=file_path)

    max_file_size = get_config().security.max_file_size_bytes
    try:
        file_size = path.stat().st_size
    except OSError as e:
        raise IOFault(f"Cannot access file: {e}", path=file_path) from e
    if file_size > max_file_size:
        raise IOFault(
            f"File too large: {file_size} bytes (max: {max_file_size})",
            path=file_path,
        )

    return path


@contextmanager
def open_artifact_stream(file_path: str) -> Iterator[BinaryIO]:
    """
    Open an artifact for reading as a binary stream.

    The handle is closed on every exit path, including parse failures raised
    inside the ``with`` block.

    Raises:
        IOFault: If the file cannot be validated or opened
    """
    validated_path = _validate_file_path(file_path)
    try:
        stream = open(validated_path, "rb")
    except OSError as e:
        raise IOFault(f"Error opening file: {e}", path=file_path) from e

    with stream:
        yield stream


def parse_composer_lock_file(file_path: str) -> List[ComposerPackage]:
    """
    Parse a composer.lock file from disk.

    Returns:
        List[ComposerPackage]: Every package in the file; empty if it lists none

    Raises:
        IOFault: If the file cannot be opened or read
        FormatError: If the file is not a well-formed lock file
    """
    with open_artifact_stream(file_path) as stream:
        try:
            return list(parse_composer_lock(stream))
        except OSError as e:
            raise IOFault(f"Error reading file: {e}", path=file_path) from e
