#!/usr/bin/env python3
"""Tests for clangcomplete/directory_set.py"""

import io
import threading

import pytest

from clangcomplete.directory_set import DirectorySet


@pytest.mark.unit
class TestDirectorySetAdd:
    """Tests for DirectorySet.add()."""

    def test_returns_number_of_new_directories(self) -> None:
        """Test that add() counts only unseen directories."""
        dirs = DirectorySet()
        assert dirs.add(["/a", "/b"]) == 2
        assert dirs.add(["/b", "/c"]) == 1
        assert dirs.directories == ["/a", "/b", "/c"]

    def test_adding_twice_is_idempotent(self) -> None:
        """Test that repeating an add leaves the set unchanged."""
        dirs = DirectorySet()
        dirs.add(["/x"])
        assert dirs.add(["/x"]) == 0
        assert len(dirs) == 1

    def test_duplicates_within_one_call(self) -> None:
        """Test that duplicates inside one call are recorded once."""
        dirs = DirectorySet()
        assert dirs.add(["/x", "/x"]) == 1

    def test_system_directories_are_already_known(self) -> None:
        """Test that system directories never count as new information."""
        dirs = DirectorySet(["/usr/include"])
        assert dirs.add(["/usr/include"]) == 0
        assert "/usr/include" in dirs
        assert len(dirs) == 0


@pytest.mark.unit
class TestDirectorySetSnapshot:
    """Tests for DirectorySet.snapshot()."""

    def test_snapshot_flags(self) -> None:
        """Test that snapshot() returns -I flags with system directories last."""
        dirs = DirectorySet(["/usr/include"])
        dirs.add(["/proj/inc"])
        assert dirs.snapshot() == ["-I/proj/inc", "-I/usr/include"]

    def test_snapshot_has_no_duplicates(self) -> None:
        """Test that snapshot() never repeats a directory."""
        dirs = DirectorySet(["/usr/include", "/usr/include"])
        dirs.add(["/a", "/usr/include", "/a"])
        snapshot = dirs.snapshot()
        assert len(snapshot) == len(set(snapshot))

    def test_snapshot_is_a_copy(self) -> None:
        """Test that later adds do not change an earlier snapshot."""
        dirs = DirectorySet()
        before = dirs.snapshot()
        dirs.add(["/a"])
        assert before == []


@pytest.mark.unit
class TestDirectorySetFlush:
    """Tests for DirectorySet.flush()."""

    def test_sorted_then_system_in_toolchain_order(self) -> None:
        """Test that discoveries are sorted and system directories keep their order."""
        dirs = DirectorySet(["/usr/lib/gcc/include", "/usr/local/include", "/usr/include"])
        dirs.add(["/z/inc", "/a/inc", "/m/inc"])
        out = io.StringIO()
        assert dirs.flush(out) == 6
        assert out.getvalue().splitlines() == [
            "-I/a/inc",
            "-I/m/inc",
            "-I/z/inc",
            "-I/usr/lib/gcc/include",
            "-I/usr/local/include",
            "-I/usr/include",
        ]

    def test_flush_without_system_directories(self) -> None:
        """Test that emit_system=False omits system directories from output only."""
        dirs = DirectorySet(["/usr/include"], emit_system=False)
        dirs.add(["/b", "/a"])
        out = io.StringIO()
        dirs.flush(out)
        assert out.getvalue() == "-I/a\n-I/b\n"
        assert "-I/usr/include" in dirs.snapshot()

    def test_flush_empty(self) -> None:
        """Test flushing an empty set writes nothing."""
        out = io.StringIO()
        assert DirectorySet().flush(out) == 0
        assert out.getvalue() == ""


@pytest.mark.unit
class TestDirectorySetConcurrency:
    """Tests for concurrent use of DirectorySet."""

    def test_concurrent_adds_count_each_directory_once(self) -> None:
        """Test that racing adds report every directory as new exactly once."""
        dirs = DirectorySet()
        totals = []
        totals_lock = threading.Lock()
        barrier = threading.Barrier(8)

        def worker() -> None:
            barrier.wait()
            added = sum(dirs.add([f"/dir{i}"]) for i in range(200))
            with totals_lock:
                totals.append(added)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert sum(totals) == 200
        assert len(dirs) == 200
        assert len(set(dirs.snapshot())) == 200
