"""
Normalization of parsed composer.lock entries into dependency records.

Each package gets a synthetic, deterministic identity derived from the lock
file's logical path, plus vendor/product/version evidence at the highest
confidence. Whether the lock file's own placeholder record should be dropped
is returned as a decision; applying it is up to the caller.
"""

import hashlib
import locale
import logging
from dataclasses import dataclass
from typing import Callable, Iterable, List, Set, Tuple

from .dependency import (
    COMPOSER_ECOSYSTEM,
    ComposerPackage,
    Confidence,
    DependencyRecord,
    Evidence,
    EvidenceType,
)
from .error_handling import ConfigurationFault

logger = logging.getLogger(__name__)

COMPOSER_LOCK = "composer.lock"

HashFunction = Callable[[bytes], str]


def resolve_hash_function(algorithm: str = "sha1") -> HashFunction:
    """
    Build a hex-digest function for a hashlib algorithm.

    Raises:
        ConfigurationFault: If the algorithm is not available on this platform,
            or cannot produce a fixed-length hex digest (e.g. shake_128)
    """

    def digest(data: bytes) -> str:
        return hashlib.new(algorithm, data).hexdigest()

    try:
        digest(b"")
    except (ValueError, TypeError) as e:
        raise ConfigurationFault(
            f"Unable to create {algorithm} message digest: {e}"
        ) from e

    return digest


def sha1_hex(data: bytes) -> str:
    """Default identity hash: lowercase hex SHA-1."""
    return hashlib.sha1(data).hexdigest()


def compose_file_path(container_path: str, package: ComposerPackage) -> str:
    """Return the logical path ``{container}:{group}/{project}/{version}``."""
    return f"{container_path}:{package.group}/{package.project}/{package.version}"


def encode_file_path(file_path: str) -> bytes:
    # Platform default encoding; unmappable characters become '?'
    return file_path.encode(locale.getpreferredencoding(False), errors="replace")


def supersedes_placeholder(processed: int, placeholder_name: str) -> bool:
    """
    Decide whether the lock file's placeholder record should be removed.

    Only when at least one package was processed, and only for a placeholder
    that really is the lock file.
    """
    return processed > 0 and placeholder_name.lower() == COMPOSER_LOCK


@dataclass(frozen=True)
class NormalizationResult:
    """Records derived from one lock file and the placeholder decision."""

    records: Tuple[DependencyRecord, ...]
    supersedes_placeholder: bool


class DependencyNormalizer:
    """Turns ComposerPackage entries into DependencyRecord instances."""

    def __init__(self, hash_function: HashFunction = sha1_hex):
        self.hash_function = hash_function

    def build_record(
        self, owner_file_path: str, container_path: str, package: ComposerPackage
    ) -> DependencyRecord:
        file_path = compose_file_path(container_path, package)
        return DependencyRecord(
            actual_file_path=owner_file_path,
            file_path=file_path,
            name=package.project,
            version=package.version,
            ecosystem=COMPOSER_ECOSYSTEM,
            sha1sum=self.hash_function(encode_file_path(file_path)),
            evidence=(
                Evidence(
                    EvidenceType.VENDOR,
                    COMPOSER_LOCK,
                    "vendor",
                    package.group,
                    Confidence.HIGHEST,
                ),
                Evidence(
                    EvidenceType.PRODUCT,
                    COMPOSER_LOCK,
                    "product",
                    package.project,
                    Confidence.HIGHEST,
                ),
                Evidence(
                    EvidenceType.VERSION,
                    COMPOSER_LOCK,
                    "version",
                    package.version,
                    Confidence.HIGHEST,
                ),
            ),
        )

    def normalize(
        self,
        owner_file_path: str,
        container_path: str,
        packages: Iterable[ComposerPackage],
        placeholder_name: str,
    ) -> NormalizationResult:
        """
        Normalize the packages of one lock file.

        A (group, project, version) triple listed more than once yields a
        single record, so every record's file_path is unique.

        Args:
            owner_file_path: Physical path of the lock file
            container_path: Logical path the records are composed under
            packages: Entries produced by the parser
            placeholder_name: Display name of the lock file's placeholder

        Returns:
            NormalizationResult: The records, in input order, and whether the
            placeholder is superseded
        """
        records: List[DependencyRecord] = []
        seen: Set[Tuple[str, str, str]] = set()
        processed = 0

        for package in packages:
            processed += 1
            key = (package.group, package.project, package.version)
            if key in seen:
                logger.debug("Skipping repeated package %s %s", package.name, package.version)
                continue
            seen.add(key)
            records.append(self.build_record(owner_file_path, container_path, package))

        return NormalizationResult(
            records=tuple(records),
            supersedes_placeholder=supersedes_placeholder(processed, placeholder_name),
        )
