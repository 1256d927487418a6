"""Cyclomatic complexity scoring for JavaScript and TypeScript."""

from .analyzer import ComplexityAnalyzer, analyze_source
from .cache import ComplexityCache
from .models import (
    ComplexityComparison,
    ComplexityKind,
    ComplexityLevel,
    ComplexityRecord,
    FileComplexityReport,
    classify,
    total_complexity,
)
from .parser import detect_language, get_supported_languages

__all__ = [
    "ComplexityAnalyzer",
    "ComplexityCache",
    "ComplexityComparison",
    "ComplexityKind",
    "ComplexityLevel",
    "ComplexityRecord",
    "FileComplexityReport",
    "analyze_source",
    "classify",
    "detect_language",
    "get_supported_languages",
    "total_complexity",
]
