"""
Composer lock analyzer.

Expands the placeholder record of a composer.lock into one dependency record
per locked package. Parsing and normalization finish before the dependency
collection is touched, so a failed lock file never leaves partial results.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional, Protocol, Tuple

from .cli_config import ComprehensiveConfig, get_config
from .dependency import ComposerPackage, DependencyRecord, PlaceholderDependency
from .error_handling import (
    ComposerLockError,
    ConfigurationFault,
    FormatError,
    IOFault,
    log_skipped_artifact,
)
from .normalizer import (
    COMPOSER_LOCK,
    DependencyNormalizer,
    HashFunction,
    NormalizationResult,
    resolve_hash_function,
)
from .parsers import open_artifact_stream, parse_composer_lock
from .structured_logging import (
    log_analysis_complete,
    log_analysis_start,
    log_artifact_skipped,
    log_dependency_added,
    log_placeholder_removed,
)

logger = logging.getLogger(__name__)


class AnalysisPhase(Enum):
    """Engine phases analyzers are scheduled in."""

    INITIAL = "initial"
    INFORMATION_COLLECTION = "information_collection"
    POST_INFORMATION_COLLECTION = "post_information_collection"


class DependencyCollection(Protocol):
    """The engine's shared dependency set, as seen by an analyzer."""

    def add_dependency(self, dependency: DependencyRecord) -> None:
        ...

    def remove_dependency(self, dependency: PlaceholderDependency) -> None:
        ...


@dataclass(frozen=True)
class AnalysisResult:
    """What one analyze() call did to the dependency collection."""

    placeholder: PlaceholderDependency
    records: Tuple[DependencyRecord, ...] = ()
    placeholder_removed: bool = False
    error: Optional[ComposerLockError] = None

    @property
    def skipped(self) -> bool:
        return self.error is not None


class ComposerLockAnalyzer:
    """Analyzes composer.lock files of PHP applications."""

    name = "Composer.lock analyzer"
    analysis_phase = AnalysisPhase.INFORMATION_COLLECTION
    enabled_setting_key = "analyzers.composer_lock_enabled"

    def __init__(
        self,
        hash_function: Optional[HashFunction] = None,
        config: Optional[ComprehensiveConfig] = None,
    ):
        self.config = config or get_config()
        self._hash_function = hash_function
        self.normalizer: Optional[DependencyNormalizer] = None
        self.enabled = self.config.is_enabled(self.enabled_setting_key)

    def accepts(self, file_path: str) -> bool:
        """File filter: only files named composer.lock."""
        return Path(file_path).name == COMPOSER_LOCK

    @property
    def prepared(self) -> bool:
        return self.normalizer is not None

    def prepare(self) -> None:
        """
        Resolve the hash primitive once, before any artifact is analyzed.

        Raises:
            ConfigurationFault: If the configured digest is unavailable; the
                analyzer is disabled
        """
        try:
            hash_function = self._hash_function or resolve_hash_function(
                self.config.analyzers.hash_algorithm
            )
        except ConfigurationFault:
            self.enabled = False
            logger.error(
                "Unable to initialize %s with digest %s",
                self.name,
                self.config.analyzers.hash_algorithm,
            )
            raise
        self.normalizer = DependencyNormalizer(hash_function)

    def analyze(
        self, placeholder: PlaceholderDependency, collection: DependencyCollection
    ) -> AnalysisResult:
        """
        Analyze one composer.lock and hand the results to the collection.

        IOFault, FormatError and a failing hash function are reported once and
        swallowed: nothing is added, and the placeholder stays.

        Raises:
            ConfigurationFault: If prepare() has not succeeded
        """
        if self.normalizer is None:
            raise ConfigurationFault(f"{self.name} has not been prepared")

        started = time.monotonic()
        file_path = placeholder.actual_file_path
        log_analysis_start(self.name, file_path)
        logger.debug("Checking composer.lock file %s", file_path)

        try:
            with open_artifact_stream(file_path) as stream:
                try:
                    packages = list(parse_composer_lock(stream))
                except OSError as e:
                    raise IOFault(f"Error reading file: {e}", path=file_path) from e
        except (IOFault, FormatError) as e:
            self._report_skip(placeholder, e)
            return AnalysisResult(placeholder=placeholder, error=e)

        try:
            result = self._normalize(placeholder, packages)
        except ConfigurationFault as e:
            self._report_skip(placeholder, e)
            return AnalysisResult(placeholder=placeholder, error=e)

        for record in result.records:
            logger.debug("Adding dependency %s", record.display_file_name)
            collection.add_dependency(record)
            log_dependency_added(
                self.name, file_path, record.name, record.version, record.file_path
            )

        if result.supersedes_placeholder:
            logger.debug(
                "Removing main redundant dependency %s", placeholder.display_file_name
            )
            collection.remove_dependency(placeholder)
            log_placeholder_removed(
                self.name, file_path, placeholder.display_file_name
            )

        log_analysis_complete(
            self.name,
            file_path,
            len(result.records),
            result.supersedes_placeholder,
            int((time.monotonic() - started) * 1000),
        )
        return AnalysisResult(
            placeholder=placeholder,
            records=result.records,
            placeholder_removed=result.supersedes_placeholder,
        )

    def _normalize(
        self, placeholder: PlaceholderDependency, packages: List[ComposerPackage]
    ) -> NormalizationResult:
        try:
            return self.normalizer.normalize(
                placeholder.actual_file_path,
                placeholder.container_path,
                packages,
                placeholder.display_file_name,
            )
        except Exception as e:
            # Injected hash functions may raise anything
            raise ConfigurationFault(
                f"Hash function failed for {placeholder.actual_file_path}: {e}"
            ) from e

    def _report_skip(
        self, placeholder: PlaceholderDependency, error: ComposerLockError
    ) -> None:
        if isinstance(error, IOFault):
            message = f"Error opening dependency {placeholder.actual_file_path}"
        elif isinstance(error, ConfigurationFault):
            message = f"Error hashing dependencies of {placeholder.actual_file_path}"
        else:
            message = f"Error parsing composer.lock {placeholder.actual_file_path}"
        log_skipped_artifact(
            message,
            "analyzer",
            "analyze",
            file_path=placeholder.actual_file_path,
            exception=error,
        )
        log_artifact_skipped(
            self.name, placeholder.actual_file_path, str(error), type(error).__name__
        )
