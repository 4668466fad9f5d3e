# In src/composer_lock_inventory/dependency.py
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

COMPOSER_ECOSYSTEM = "Composer"


class EvidenceType(Enum):
    """Kinds of evidence used to identify a dependency."""

    VENDOR = "vendor"
    PRODUCT = "product"
    VERSION = "version"


class Confidence(Enum):
    """Evidence confidence, ordered from weakest to strongest."""

    LOW = 1
    MEDIUM = 2
    HIGH = 3
    HIGHEST = 4


@dataclass(frozen=True)
class Evidence:
    """A weighted (type, source, name, value, confidence) tuple."""

    type: EvidenceType
    source: str
    name: str
    value: str
    confidence: Confidence

    def to_dict(self) -> Dict[str, str]:
        return {
            "type": self.type.value,
            "source": self.source,
            "name": self.name,
            "value": self.value,
            "confidence": self.confidence.name,
        }


@dataclass(frozen=True)
class ComposerPackage:
    """A single package entry decoded from a composer.lock file."""

    group: str
    project: str
    version: str
    dev: bool = False

    @property
    def name(self) -> str:
        if self.group:
            return f"{self.group}/{self.project}"
        return self.project


@dataclass(frozen=True)
class PlaceholderDependency:
    """The opaque record standing in for a lock file before it is expanded."""

    actual_file_path: str
    file_path: Optional[str] = None

    @property
    def display_file_name(self) -> str:
        return Path(self.actual_file_path).name

    @property
    def container_path(self) -> str:
        return self.file_path or self.actual_file_path


@dataclass(frozen=True)
class DependencyRecord:
    """A unified internal data structure to represent a resolved dependency."""

    actual_file_path: str
    file_path: str
    name: str
    version: str
    ecosystem: str
    sha1sum: str
    evidence: Tuple[Evidence, ...] = field(default_factory=tuple)

    @property
    def vendor(self) -> str:
        for item in self.evidence:
            if item.type is EvidenceType.VENDOR:
                return item.value
        return ""

    @property
    def display_file_name(self) -> str:
        return f"{Path(self.actual_file_path).name}:{self.vendor}/{self.name}/{self.version}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "version": self.version,
            "ecosystem": self.ecosystem,
            "file_path": self.file_path,
            "actual_file_path": self.actual_file_path,
            "sha1": self.sha1sum,
            "evidence": [item.to_dict() for item in self.evidence],
        }
