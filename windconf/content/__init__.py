"""Glob-based content discovery for windconf.

Declared content patterns are expanded (brace alternation included), checked
against the project root, and either walked eagerly into a concrete file set
or kept as a predicate for incremental rebuild decisions.

Examples
--------
>>> from windconf.config.models import ContentPattern
>>> from windconf.content import resolve_content
>>> files = resolve_content(
...     [ContentPattern("src/**/*.{html,ts}")], "."
... )  # doctest: +SKIP
>>> files.relative_files()  # doctest: +SKIP
('src/a.html', 'src/b.ts')
"""

from .patterns import CompiledGlob, compile_pattern, expand_braces
from .resolver import CancelToken, ContentFileSet, canonical_path, resolve_content

__all__ = [
    "CancelToken",
    "CompiledGlob",
    "ContentFileSet",
    "canonical_path",
    "compile_pattern",
    "expand_braces",
    "resolve_content",
]
