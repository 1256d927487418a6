"""Suite matching and glob helpers.

The decision engine lives in :mod:`testsift.selection.engine`; it is not
re-exported here because it depends on :mod:`testsift.coverage`, which in
turn uses the glob helpers below.
"""

from .matcher import (
    detect_suites_for_test_files,
    is_test_file,
    match_suites,
    related_test_files,
)
from .patterns import expand_braces, glob_match, matches_any

__all__ = [
    "match_suites",
    "detect_suites_for_test_files",
    "is_test_file",
    "related_test_files",
    "expand_braces",
    "glob_match",
    "matches_any",
]
