"""Import specifier discovery for JavaScript-family sources.

This is a pattern scan, not a parser: it finds the string literal in
static ``import``/``export ... from`` statements, side-effect imports,
dynamic ``import("...")`` calls, and ``require("...")`` calls. Comments
are stripped first so commented-out imports are not followed.
"""

from __future__ import annotations

import re

_BLOCK_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)
_LINE_COMMENT = re.compile(r"(?m)(?<![:\"'\\])//.*$")

_PATTERNS: tuple[re.Pattern[str], ...] = (
    # import x from "y" / import {a} from "y" / export * from "y"
    re.compile(r"""\b(?:import|export)\b[^'";]*?\bfrom\s*(['"])(?P<spec>[^'"\n]+)\1"""),
    # import "y"
    re.compile(r"""\bimport\s*(['"])(?P<spec>[^'"\n]+)\1"""),
    # import("y") / require("y")
    re.compile(r"""\b(?:import|require)\s*\(\s*(['"])(?P<spec>[^'"\n]+)\1\s*\)"""),
)


def strip_comments(source: str) -> str:
    """Remove block and line comments (URLs inside strings are kept)."""
    return _LINE_COMMENT.sub("", _BLOCK_COMMENT.sub("", source))


def scan_imports(source: str) -> list[str]:
    """Return import specifiers in first-appearance order, deduplicated.

    Examples:
        >>> scan_imports('import a from "./a.js";\\nconst b = require("b");')
        ['./a.js', 'b']
    """
    text = strip_comments(source)
    found: list[tuple[int, str]] = []
    for pattern in _PATTERNS:
        found.extend((m.start(), m.group("spec")) for m in pattern.finditer(text))
    seen: set[str] = set()
    ordered: list[str] = []
    for _pos, spec in sorted(found):
        if spec not in seen:
            seen.add(spec)
            ordered.append(spec)
    return ordered
