"""Glob matching with minimatch-style semantics.

``Path.match`` and ``fnmatch`` don't treat ``**`` as "any number of
directories" and don't expand ``{a,b}``, both of which suite watch
patterns rely on. Patterns are compiled once to regular expressions:

    **       any number of path segments (including none)
    *        any run of characters within one segment
    ?        one character other than '/'
    [...]    character class ([!...] / [^...] negates)
    {a,b}    alternation, may nest

Wildcards match dotfiles too (minimatch ``dot: true``).
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Iterable, Optional

from ..models import normalize_path


def _split_braces(body: str) -> list[str]:
    """Split the inside of a {...} group on top-level commas."""
    parts, depth, current = [], 0, []
    for ch in body:
        if ch == "," and depth == 0:
            parts.append("".join(current))
            current = []
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
        current.append(ch)
    parts.append("".join(current))
    return parts


def expand_braces(pattern: str) -> list[str]:
    """Expand ``{a,b}`` alternation into separate patterns.

    >>> expand_braces("src/**/*.{ts,tsx}")
    ['src/**/*.ts', 'src/**/*.tsx']
    """
    depth = 0
    start = -1
    for i, ch in enumerate(pattern):
        if ch == "{":
            if depth == 0:
                start = i
            depth += 1
        elif ch == "}" and depth:
            depth -= 1
            if depth == 0:
                head, body, tail = pattern[:start], pattern[start + 1 : i], pattern[i + 1 :]
                options = _split_braces(body)
                if len(options) == 1:
                    # "{x}" is literal in minimatch
                    return [head + "{" + o + "}" + t for o in options for t in expand_braces(tail)]
                return [
                    expanded
                    for option in options
                    for expanded in expand_braces(head + option + tail)
                ]
    return [pattern]


def _translate_segment(segment: str) -> str:
    out = []
    i = 0
    while i < len(segment):
        ch = segment[i]
        if ch == "*":
            while i + 1 < len(segment) and segment[i + 1] == "*":
                i += 1
            out.append("[^/]*")
        elif ch == "?":
            out.append("[^/]")
        elif ch == "[":
            end = segment.find("]", i + 2 if i + 1 < len(segment) and segment[i + 1] in "!^" else i + 1)
            if end == -1:
                out.append(re.escape(ch))
            else:
                body = segment[i + 1 : end]
                if body[:1] in ("!", "^"):
                    body = "^" + body[1:]
                out.append("[" + body.replace("\\", "\\\\") + "]")
                i = end
        else:
            out.append(re.escape(ch))
        i += 1
    return "".join(out)


def _translate(pattern: str) -> str:
    segments = pattern.split("/")
    parts: list[str] = []
    last = len(segments) - 1
    for index, segment in enumerate(segments):
        if segment == "**":
            if index == last:
                # trailing "**": everything below (and including nothing after a '/')
                parts.append(".*")
            else:
                parts.append("(?:[^/]*/)*")
            continue
        parts.append(_translate_segment(segment))
        if index != last:
            parts.append("/")
    regex = "".join(parts)
    # "a/**" should also match "a" itself
    if pattern.endswith("/**"):
        regex = regex[: -len("/.*")] + "(?:/.*)?"
    return regex


@lru_cache(maxsize=1024)
def compile_glob(pattern: str) -> Optional[re.Pattern[str]]:
    """Compile a glob into a regex; None if the pattern can't be compiled."""
    alternatives = [_translate(normalize_path(p)) for p in expand_braces(pattern)]
    try:
        return re.compile("^(?:" + "|".join(alternatives) + ")$")
    except re.error:
        return None


def glob_match(path: str, pattern: str) -> bool:
    """True if ``path`` matches ``pattern``. Malformed patterns never match."""
    compiled = compile_glob(pattern)
    if compiled is None:
        return False
    return compiled.match(path) is not None


def matches_any(path: str, patterns: Iterable[str]) -> bool:
    return any(glob_match(path, pattern) for pattern in patterns)
