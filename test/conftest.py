"""Pytest configuration and shared fixtures for clangComplete tests.

Fixtures:
- temp_dir: isolated scratch directory
- make_tree: create files below a directory from a list of relative paths
- FakeHeaderLister: canned header-list provider for resolver tests
"""

import sys
import shutil
import tempfile
import threading
from pathlib import Path
from typing import Callable, Dict, Generator, Iterable, List, Sequence

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from clangcomplete.constants import ToolchainError


@pytest.fixture
def temp_dir() -> Generator[str, None, None]:
    """Create a temporary directory for tests.

    Scope: function (default)
    """
    tmpdir = tempfile.mkdtemp(prefix="clangcomplete_test_")
    yield tmpdir
    shutil.rmtree(tmpdir, ignore_errors=True)


@pytest.fixture
def make_tree() -> Callable[[str, Iterable[str]], str]:
    """Return a helper that creates empty files (and parents) below a root.

    Entries ending in "/" create empty directories.
    """

    def _make(root: str, entries: Iterable[str]) -> str:
        base = Path(root)
        base.mkdir(parents=True, exist_ok=True)
        for entry in entries:
            target = base / entry
            if entry.endswith("/"):
                target.mkdir(parents=True, exist_ok=True)
            else:
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_text("")
        return str(base)

    return _make


class FakeHeaderLister:
    """Header-list provider returning canned answers.

    ``answers`` maps a source path to either a list of headers or a callable
    receiving the search flags (so answers can depend on what is already
    known). Sources listed in ``failing`` raise ToolchainError.
    """

    def __init__(self, answers: Dict[str, object], failing: Sequence[str] = ()):
        self.answers = answers
        self.failing = set(failing)
        self.calls: List[tuple] = []
        self._lock = threading.Lock()

    def __call__(self, source: str, search_flags: Sequence[str]) -> List[str]:
        with self._lock:
            self.calls.append((source, list(search_flags)))
        if source in self.failing:
            raise ToolchainError(f"{source}: exit status 1: fatal error")
        answer = self.answers.get(source, [])
        if callable(answer):
            return list(answer(search_flags))
        return list(answer)  # type: ignore[call-overload]

    def call_count(self, source: str) -> int:
        with self._lock:
            return sum(1 for called, _ in self.calls if called == source)


@pytest.fixture
def fake_lister() -> type:
    """Expose FakeHeaderLister to tests without importing conftest."""
    return FakeHeaderLister
