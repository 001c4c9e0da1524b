"""Source tree scanning with gitignore-style ignore rules."""

from __future__ import annotations

import os
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterable, Iterator, List, Sequence

from .logging import get_logger
from .models import TreeEntry

_EXCLUDED_NAMES = {
    ".DS_Store",
    "Thumbs.db",
}

logger = get_logger("scanner")


@dataclass(frozen=True)
class IgnoreRule:
    """Represents one ignore pattern in gitignore syntax."""

    pattern: str
    directory_only: bool
    anchored: bool
    negate: bool

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if not self.pattern:
            return False
        if self.directory_only and not is_dir:
            return False

        parts = rel_path.split("/")
        if self.anchored:
            return _match_segments(self.pattern.split("/"), parts)

        return any(fnmatchcase(part, self.pattern) for part in parts)


def _match_segments(pattern_parts: Sequence[str], path_parts: Sequence[str]) -> bool:
    if not pattern_parts:
        return not path_parts
    head, rest = pattern_parts[0], pattern_parts[1:]
    if head == "**":
        return any(
            _match_segments(rest, path_parts[index:]) for index in range(len(path_parts) + 1)
        )
    if not path_parts:
        return False
    return fnmatchcase(path_parts[0], head) and _match_segments(rest, path_parts[1:])


def build_ignore_rule(pattern: str) -> IgnoreRule | None:
    """Parse a single gitignore-style pattern, returning None for blanks and comments."""
    pattern = pattern.strip()
    if not pattern or pattern.startswith("#"):
        return None

    negate = pattern.startswith("!")
    if negate:
        pattern = pattern[1:]

    directory_only = pattern.endswith("/")
    if directory_only:
        pattern = pattern.rstrip("/")

    anchored = pattern.startswith("/") or "/" in pattern
    pattern = pattern.lstrip("/")
    if not pattern:
        return None

    return IgnoreRule(
        pattern=pattern,
        directory_only=directory_only,
        anchored=anchored,
        negate=negate,
    )


def parse_ignore_rules(patterns: Iterable[str]) -> List[IgnoreRule]:
    """Parse patterns in order; later rules take precedence over earlier ones."""
    rules: List[IgnoreRule] = []
    for pattern in patterns:
        rule = build_ignore_rule(pattern)
        if rule is not None:
            rules.append(rule)
    return rules


def should_ignore(rel_path: str, is_dir: bool, rules: Sequence[IgnoreRule]) -> bool:
    """Return True when the last rule matching ``rel_path`` excludes it."""
    ignored = False
    for rule in rules:
        if rule.matches(rel_path, is_dir):
            ignored = not rule.negate
    return ignored


class TreeScanner:
    """Walks a source tree depth-first, yielding directories before their children."""

    def __init__(self, rules: Sequence[IgnoreRule] | None = None) -> None:
        self.rules = list(rules or [])

    @classmethod
    def from_patterns(cls, patterns: Iterable[str]) -> "TreeScanner":
        return cls(parse_ignore_rules(patterns))

    def walk(self, root: Path) -> Iterator[TreeEntry]:
        """Lazily yield every entry under ``root`` that survives the ignore rules.

        Ignored directories are pruned, so nothing beneath them is visited.
        Siblings are visited in sorted name order.
        """
        root_path = Path(root).expanduser().resolve()
        if not root_path.exists():
            raise FileNotFoundError(f"Source path not found: {root}")
        if not root_path.is_dir():
            raise NotADirectoryError(f"Source path is not a directory: {root}")

        stack: List[TreeEntry] = list(reversed(self._children(root_path, "")))
        while stack:
            entry = stack.pop()
            yield entry
            if entry.is_dir:
                stack.extend(reversed(self._children(entry.path, entry.relative)))

    def _children(self, directory: Path, rel_dir: str) -> List[TreeEntry]:
        children: List[TreeEntry] = []
        for name in sorted(os.listdir(directory)):
            if name in _EXCLUDED_NAMES:
                continue
            path = directory / name
            rel_path = f"{rel_dir}/{name}" if rel_dir else name
            is_dir = path.is_dir()
            if should_ignore(rel_path, is_dir, self.rules):
                logger.debug("Ignoring %s", rel_path)
                continue
            children.append(TreeEntry(path=path, is_dir=is_dir, relative=rel_path))
        return children
