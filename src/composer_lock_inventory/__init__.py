"""Dependency inventory for Composer lock files."""

from .analyzer import AnalysisResult, ComposerLockAnalyzer
from .dependency import ComposerPackage, DependencyRecord, PlaceholderDependency
from .error_handling import ConfigurationFault, FormatError, IOFault
from .normalizer import DependencyNormalizer, NormalizationResult
from .parsers import parse_composer_lock

__all__ = [
    "AnalysisResult",
    "ComposerLockAnalyzer",
    "ComposerPackage",
    "ConfigurationFault",
    "DependencyNormalizer",
    "DependencyRecord",
    "FormatError",
    "IOFault",
    "NormalizationResult",
    "PlaceholderDependency",
    "parse_composer_lock",
]
