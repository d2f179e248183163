"""Ignore rules read from .strataignore files."""

import re
from pathlib import Path
from typing import Dict, List, Tuple

IGNORE_FILE = '.strataignore'


def _translate(glob: str) -> str:
    """Translate one ignore glob into a regex body ('**' may cross '/')."""
    out = []
    i = 0
    while i < len(glob):
        if glob.startswith('**/', i):
            out.append('(?:.*/)?')
            i += 3
        elif glob.startswith('**', i):
            out.append('.*')
            i += 2
        elif glob[i] == '*':
            out.append('[^/]*')
            i += 1
        elif glob[i] == '?':
            out.append('[^/]')
            i += 1
        elif glob[i] == '[' and ']' in glob[i + 2:]:
            end = glob.index(']', i + 2)
            body = glob[i + 1:end]
            if body.startswith('!'):
                body = '^' + body[1:]
            out.append(f'[{body}]')
            i = end + 1
        else:
            out.append(re.escape(glob[i]))
            i += 1
    return ''.join(out)


class IgnorePattern:
    """
    A single ignore rule.

    A pattern without '/' matches a name at any depth; a pattern with '/'
    (or a leading '/') is anchored at the repository root. Matching a
    directory also matches everything below it.
    """

    def __init__(self, pattern: str, negation: bool = False, directory_only: bool = False):
        self.original = pattern
        self.negation = negation
        self.directory_only = directory_only

        anchored = '/' in pattern
        body = _translate(pattern.lstrip('/'))
        prefix = '^' if anchored else '(?:^|/)'
        self._regex = re.compile(prefix + body + '$')

    def matches(self, path: str, is_dir: bool = False) -> bool:
        """Check a repository-relative path, or any of its parent dirs."""
        parts = path.strip('/').split('/')
        for i in range(len(parts), 0, -1):
            candidate = '/'.join(parts[:i])
            candidate_is_dir = is_dir or i < len(parts)
            if self.directory_only and not candidate_is_dir:
                continue
            if self._regex.search(candidate):
                return True
        return False

    def __repr__(self) -> str:
        return f"IgnorePattern({'!' if self.negation else ''}{self.original})"


class IgnoreMatcher:
    """Ordered set of ignore rules; the last matching rule wins."""

    def __init__(self):
        self.patterns: List[IgnorePattern] = []
        self._cache: Dict[Tuple[str, bool], bool] = {}

    def add_pattern(self, line: str) -> None:
        """Add one line of an ignore file (blank lines and comments skipped)."""
        line = line.strip()
        if not line or line.startswith('#'):
            return

        negation = line.startswith('!')
        if negation:
            line = line[1:]
        directory_only = line.endswith('/')
        if directory_only:
            line = line.rstrip('/')

        self.patterns.append(IgnorePattern(line, negation, directory_only))
        self._cache.clear()

    def load_file(self, path: Path) -> bool:
        """Load patterns from an ignore file, if it exists."""
        if not path.is_file():
            return False
        for line in path.read_text().splitlines():
            self.add_pattern(line)
        return True

    def is_ignored(self, path: str, is_dir: bool = False) -> bool:
        key = (path, is_dir)
        if key not in self._cache:
            ignored = False
            for pattern in self.patterns:
                if pattern.matches(path, is_dir):
                    ignored = not pattern.negation
            self._cache[key] = ignored
        return self._cache[key]


def get_ignore_matcher(work_tree: Path) -> IgnoreMatcher:
    """Matcher for a working tree, loaded from its .strataignore."""
    matcher = IgnoreMatcher()
    matcher.load_file(Path(work_tree) / IGNORE_FILE)
    return matcher
