"""Parse and compile content globs into root-relative matchers.

Supported syntax: literal segments, ``*`` and ``?`` within one segment,
``**`` across any number of segments, ``[...]`` character classes and
(optionally nested) ``{a,b}`` brace alternation. Brace groups are expanded to
their cross product before compilation, so ``src/*.{html,ts}`` becomes two
independent globs.
"""

from __future__ import annotations

import dataclasses as dc
import posixpath
import re
import typing as typ
from pathlib import Path, PurePosixPath, PureWindowsPath

from windconf.errors import InvalidPatternError, UnsafePatternError

if typ.TYPE_CHECKING:
    from windconf.config.models import ContentPattern

_GLOB_CHARS = frozenset("*?[")
_RECURSIVE = "**"


@dc.dataclass(frozen=True, slots=True)
class CompiledGlob:
    """A single brace-free glob compiled against the project root.

    Attributes
    ----------
    source : str
        The root-relative, brace-expanded glob text.
    segments : tuple[str, ...]
        ``/``-separated segments of ``source``.
    static_dir : tuple[str, ...]
        Leading literal directory segments; walking starts here.
    extensions : frozenset[str]
        Extension allow-list inherited from the declaring pattern.
    """

    source: str
    segments: tuple[str, ...]
    static_dir: tuple[str, ...]
    extensions: frozenset[str]
    regex: re.Pattern[str] = dc.field(compare=False, repr=False)

    @property
    def recursive(self) -> bool:
        """Return ``True`` when the glob can match at any depth."""
        return _RECURSIVE in self.segments

    def matches(self, relative: str) -> bool:
        """Return whether a root-relative POSIX path matches this glob."""
        if not self.regex.fullmatch(relative):
            return False
        if not self.extensions:
            return True
        name = relative.rsplit("/", 1)[-1].lower()
        return any(name.endswith(f".{ext}") for ext in self.extensions)


def expand_braces(pattern: str) -> list[str]:
    """Expand ``{a,b}`` alternation into every concrete alternative.

    Order of the returned list follows declaration order with duplicates
    removed; callers must not rely on it for set membership.

    Raises
    ------
    InvalidPatternError
        If braces are unbalanced or a group has no alternatives.

    Examples
    --------
    >>> expand_braces("src/*.{rs,html,css}")
    ['src/*.rs', 'src/*.html', 'src/*.css']
    >>> expand_braces("{a,b}/{c,d}")
    ['a/c', 'a/d', 'b/c', 'b/d']
    """
    _check_balance(pattern)
    seen: dict[str, None] = {}
    for expanded in _expand(pattern):
        seen.setdefault(expanded, None)
    return list(seen)


def _check_balance(pattern: str) -> None:
    depth = 0
    for char in pattern:
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth < 0:
                raise InvalidPatternError(pattern, "unexpected '}'")
    if depth:
        raise InvalidPatternError(pattern, "unbalanced '{'")


def _expand(pattern: str) -> list[str]:
    start = pattern.find("{")
    if start < 0:
        return [pattern]
    depth = 0
    splits: list[int] = []
    end = start
    for index in range(start, len(pattern)):
        char = pattern[index]
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                end = index
                break
        elif char == "," and depth == 1:
            splits.append(index)
    bounds = [start, *splits, end]
    alternatives = [pattern[lo + 1 : hi] for lo, hi in zip(bounds, bounds[1:])]
    if all(not alt for alt in alternatives):
        raise InvalidPatternError(pattern, "empty brace group")
    prefix, suffix = pattern[:start], pattern[end + 1 :]
    results: list[str] = []
    for alternative in alternatives:
        for tail in _expand(suffix):
            results.extend(_expand(f"{prefix}{alternative}{tail}"))
    return results


def compile_pattern(pattern: ContentPattern, root: Path) -> list[CompiledGlob]:
    """Compile a declared content pattern into root-relative matchers.

    Parameters
    ----------
    pattern : ContentPattern
        Pattern as produced by the validator.
    root : Path
        Absolute, resolved project root.

    Raises
    ------
    InvalidPatternError
        If the glob is empty or syntactically malformed.
    UnsafePatternError
        If any expansion would resolve outside ``root``.
    """
    text = pattern.glob.strip()
    if not text:
        raise InvalidPatternError(pattern.declared, "empty pattern")
    if pattern.base and not _is_absolute(text):
        text = f"{pattern.base.rstrip('/')}/{text}"

    compiled: list[CompiledGlob] = []
    for expanded in expand_braces(text):
        segments = _normalise_segments(expanded, pattern.declared, root)
        if not segments:
            raise InvalidPatternError(pattern.declared, "pattern selects the root itself")
        static: list[str] = []
        for segment in segments[:-1]:
            if _has_glob(segment):
                break
            static.append(segment)
        compiled.append(
            CompiledGlob(
                source="/".join(segments),
                segments=segments,
                static_dir=tuple(static),
                extensions=pattern.extensions,
                regex=_compile_regex(segments, pattern.declared),
            )
        )
    return compiled


def _is_absolute(text: str) -> bool:
    return PurePosixPath(text).is_absolute() or PureWindowsPath(text).is_absolute()


def _has_glob(segment: str) -> bool:
    return any(char in _GLOB_CHARS for char in segment)


def _normalise_segments(text: str, declared: str, root: Path) -> tuple[str, ...]:
    """Return root-relative segments with ``.`` and ``..`` folded away."""
    if _is_absolute(text):
        text = _relativise_absolute(text, declared, root)
    stack: list[str] = []
    for segment in text.replace("\\", "/").split("/"):
        if segment in {"", "."}:
            continue
        if segment == "..":
            if not stack or _has_glob(stack[-1]):
                raise UnsafePatternError(declared, root)
            stack.pop()
            continue
        stack.append(segment)
    return tuple(stack)


def _relativise_absolute(text: str, declared: str, root: Path) -> str:
    parts = text.replace("\\", "/").split("/")
    literal: list[str] = []
    for part in parts:
        if _has_glob(part):
            break
        literal.append(part)
    remainder = parts[len(literal) :]
    anchor = Path(posixpath.normpath("/".join(literal) or "/"))
    if not anchor.is_relative_to(root):
        # the root is stored resolved; the pattern may name it through a symlink
        anchor = anchor.resolve()
        if not anchor.is_relative_to(root):
            raise UnsafePatternError(declared, root)
    relative = anchor.relative_to(root)
    return "/".join([*relative.parts, *remainder])


def _compile_regex(segments: tuple[str, ...], declared: str) -> re.Pattern[str]:
    parts: list[str] = []
    last = len(segments) - 1
    for index, segment in enumerate(segments):
        if segment == _RECURSIVE:
            parts.append(".*" if index == last else "(?:[^/]+/)*")
            continue
        parts.append(_translate_segment(segment, declared))
        if index != last:
            parts.append("/")
    try:
        return re.compile("".join(parts))
    except re.error as exc:
        raise InvalidPatternError(declared, str(exc)) from exc


def _translate_segment(segment: str, declared: str) -> str:
    """Translate one glob segment into a regex fragment that never crosses ``/``."""
    out: list[str] = []
    index = 0
    while index < len(segment):
        char = segment[index]
        if char == "*":
            while index + 1 < len(segment) and segment[index + 1] == "*":
                index += 1
            out.append("[^/]*")
        elif char == "?":
            out.append("[^/]")
        elif char == "[":
            close = segment.find("]", index + 2)
            if close < 0:
                raise InvalidPatternError(declared, "unterminated '['")
            body = segment[index + 1 : close]
            if body[:1] in {"!", "^"}:
                body = "^/" + body[1:]
            escaped = body.replace("\\", "\\\\")
            out.append(f"[{escaped}]")
            index = close
        else:
            out.append(re.escape(char))
        index += 1
    return "".join(out)


__all__ = ["CompiledGlob", "compile_pattern", "expand_braces"]
