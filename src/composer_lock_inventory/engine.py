"""
Minimal host engine: discovers candidate files, runs analyzers over them and
owns the shared dependency collection.
"""

import logging
import threading
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from .analyzer import AnalysisResult, ComposerLockAnalyzer
from .cli_config import ComprehensiveConfig, get_config
from .dependency import DependencyRecord, PlaceholderDependency

logger = logging.getLogger(__name__)

Dependency = Union[PlaceholderDependency, DependencyRecord]


class Engine:
    """
    Holds the dependency collection for one inventory run.

    Mutations are serialized behind a lock so analyzers may run over different
    artifacts in parallel.
    """

    def __init__(
        self,
        analyzers: Optional[Sequence[ComposerLockAnalyzer]] = None,
        config: Optional[ComprehensiveConfig] = None,
    ):
        self.config = config or get_config()
        self.analyzers = (
            list(analyzers)
            if analyzers is not None
            else [ComposerLockAnalyzer(config=self.config)]
        )
        self._lock = threading.Lock()
        self._dependencies: List[Dependency] = []
        self.results: List[AnalysisResult] = []

    @property
    def dependencies(self) -> Tuple[Dependency, ...]:
        with self._lock:
            return tuple(self._dependencies)

    @property
    def records(self) -> Tuple[DependencyRecord, ...]:
        return tuple(d for d in self.dependencies if isinstance(d, DependencyRecord))

    @property
    def skipped(self) -> List[AnalysisResult]:
        return [result for result in self.results if result.skipped]

    def add_dependency(self, dependency: Dependency) -> None:
        with self._lock:
            self._dependencies.append(dependency)

    def remove_dependency(self, dependency: Dependency) -> None:
        with self._lock:
            try:
                self._dependencies.remove(dependency)
            except ValueError:
                logger.debug("Dependency %s was not in the collection", dependency)

    def _accepted(self, file_path: str) -> bool:
        return any(
            analyzer.enabled and analyzer.accepts(file_path)
            for analyzer in self.analyzers
        )

    def _iter_files(self, root: Path) -> Iterable[Path]:
        if root.is_file():
            yield root
            return

        excluded = set(self.config.scan.exclude_dirs)
        for path in sorted(root.rglob("*")):
            if any(part in excluded for part in path.relative_to(root).parts[:-1]):
                continue
            if path.is_file():
                yield path

    def scan(self, *paths: str) -> List[PlaceholderDependency]:
        """
        Register a placeholder for every accepted file under ``paths``.

        Returns:
            List[PlaceholderDependency]: The placeholders added by this call
        """
        added = []
        for path in paths:
            root = Path(path)
            if not root.exists():
                logger.warning("Scan path does not exist: %s", path)
                continue
            for file_path in self._iter_files(root):
                if self._accepted(str(file_path)):
                    placeholder = PlaceholderDependency(
                        actual_file_path=str(file_path), file_path=str(file_path)
                    )
                    self.add_dependency(placeholder)
                    added.append(placeholder)
        return added

    def analyze_dependencies(self) -> List[AnalysisResult]:
        """
        Prepare every enabled analyzer and run it over the placeholders it accepts.

        Raises:
            ConfigurationFault: If an analyzer cannot be initialized
        """
        results = []
        for analyzer in self.analyzers:
            if not analyzer.enabled:
                logger.debug("Skipping disabled analyzer %s", analyzer.name)
                continue
            if not analyzer.prepared:
                analyzer.prepare()

            # Snapshot: analyze() mutates the collection
            placeholders = [
                d
                for d in self.dependencies
                if isinstance(d, PlaceholderDependency)
                and analyzer.accepts(d.actual_file_path)
            ]
            for placeholder in placeholders:
                results.append(analyzer.analyze(placeholder, self))

        self.results.extend(results)
        return results
