#!/usr/bin/env python3
"""Integration tests for clangComplete.py with the compiler mocked out."""

import os
import sys
import signal
import logging
from pathlib import Path
from typing import Any, Generator, List, Sequence
from unittest.mock import patch

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))
import clangComplete
from clangcomplete.constants import EXIT_INVALID_ARGS, EXIT_RUNTIME_ERROR, EXIT_SUCCESS, SetupError, ToolchainError
from clangcomplete.package_verification import PACKAGE_REQUIREMENTS
from clangcomplete.tool_detection import ToolInfo

# Not present on disk, so no referenced header is found under them
SYSTEM_DIRS = ["/nonexistent/toolchain/lib/gcc/include", "/nonexistent/toolchain/include"]


@pytest.fixture(autouse=True)
def restore_logging() -> Generator[None, None, None]:
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    saved_signals = {sig: signal.getsignal(sig) for sig in (signal.SIGINT, signal.SIGTERM)}
    yield
    for sig, handler in saved_signals.items():
        signal.signal(sig, handler)
    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)


@pytest.fixture
def project(temp_dir: str, make_tree: Any) -> dict:
    """Source tree with two files and two header roots."""
    src = make_tree(os.path.join(temp_dir, "src"), ["main.c", "net/conn.cpp", ".hidden/skip.c"])
    hdr1 = make_tree(os.path.join(temp_dir, "hdr1"), ["sys/types.h"])
    hdr2 = make_tree(os.path.join(temp_dir, "hdr2"), ["vendor/util.h", "other/util.h"])
    return {"root": temp_dir, "src": src, "hdr1": hdr1, "hdr2": hdr2}


def run_main(argv: List[str], answers: dict) -> int:
    """Run main() with a fake compiler answering from ``answers`` (keyed by file name)."""

    class FakeProvider:
        def __init__(self, compiler: str, extra_flags: Sequence[str], header_extensions: Any, timeout: int = 60):
            self.extra_flags = list(extra_flags)

        def __call__(self, source: str, search_flags: Sequence[str]) -> List[str]:
            return answers.get(os.path.basename(source), [])

    with patch.object(clangComplete, "find_compiler", return_value=ToolInfo(command="gcc", version="gcc 13")), patch.object(
        clangComplete, "get_system_include_dirs", return_value=SYSTEM_DIRS
    ), patch.object(clangComplete, "CompilerHeaderListProvider", FakeProvider):
        return clangComplete.main(argv)


@pytest.mark.integration
class TestClangCompleteMain:
    """End-to-end tests of main()."""

    def test_writes_sorted_flags_then_system_dirs(self, project: dict) -> None:
        """Test the output file for a project with resolved and ambiguous headers."""
        output = os.path.join(project["root"], "out.txt")
        answers = {"main.c": ["sys/types.h"], "conn.cpp": ["util.h", "missing/x.h"]}
        argv = ["-s", project["hdr2"], "-s", project["hdr1"], "-o", output, "--no-color", project["src"]]

        assert run_main(argv, answers) == EXIT_SUCCESS

        lines = Path(output).read_text().splitlines()
        expected = sorted([project["hdr1"], os.path.join(project["hdr2"], "vendor"), os.path.join(project["hdr2"], "other")])
        assert lines == [f"-I{d}" for d in expected] + [f"-I{d}" for d in SYSTEM_DIRS]

    def test_no_sys_omits_system_dirs(self, project: dict) -> None:
        """Test that --no-sys writes only discovered directories."""
        output = os.path.join(project["root"], "out.txt")
        argv = ["-s", project["hdr1"], "-o", output, "--no-sys", project["src"]]
        assert run_main(argv, {"main.c": ["sys/types.h"]}) == EXIT_SUCCESS
        assert Path(output).read_text() == f"-I{project['hdr1']}\n"

    def test_stdout_output(self, project: dict, capsys: Any) -> None:
        """Test that '-o -' writes the flags to stdout and the summary to stderr."""
        argv = ["-s", project["hdr1"], "-o", "-", "--no-sys", project["src"]]
        assert run_main(argv, {"main.c": ["sys/types.h"]}) == EXIT_SUCCESS
        captured = capsys.readouterr()
        assert captured.out == f"-I{project['hdr1']}\n"
        assert "index:" in captured.err

    def test_missing_source_root(self, project: dict) -> None:
        """Test that an unresolvable source root is a setup error."""
        with pytest.raises(SetupError) as exc_info:
            run_main(["-o", "-", os.path.join(project["root"], "nope")], {})
        assert exc_info.value.exit_code == EXIT_INVALID_ARGS

    def test_all_header_roots_failing(self, project: dict) -> None:
        """Test that a run where every header root fails is a setup error."""
        output = os.path.join(project["root"], "out.txt")
        argv = ["-s", os.path.join(project["root"], "missing"), "-o", output, project["src"]]
        with pytest.raises(SetupError, match="no header root"):
            run_main(argv, {})

    def test_one_failing_header_root_is_tolerated(self, project: dict) -> None:
        """Test that a failing root does not stop resolution with the others."""
        output = os.path.join(project["root"], "out.txt")
        argv = ["-s", os.path.join(project["root"], "missing"), "-s", project["hdr1"], "-o", output, "--no-sys", project["src"]]
        assert run_main(argv, {"main.c": ["sys/types.h"]}) == EXIT_SUCCESS
        assert Path(output).read_text() == f"-I{project['hdr1']}\n"

    def test_uncreatable_output(self, project: dict) -> None:
        """Test that an output path in a missing directory is a setup error."""
        output = os.path.join(project["root"], "no", "such", "dir", "out.txt")
        with pytest.raises(SetupError, match="cannot create output"):
            run_main(["-o", output, project["src"]], {})

    def test_existing_output_kept_when_search_path_query_fails(self, project: dict) -> None:
        """Test that a failing compiler query leaves a previous output file untouched."""
        output = os.path.join(project["root"], "out.txt")
        Path(output).write_text("-I/previous/run\n")
        with patch.object(clangComplete, "find_compiler", return_value=ToolInfo(command="gcc", version="gcc 13")), patch.object(
            clangComplete, "get_system_include_dirs", side_effect=ToolchainError("gcc: exit status 1")
        ):
            with pytest.raises(ToolchainError):
                clangComplete.main(["-o", output, project["src"]])
        assert Path(output).read_text() == "-I/previous/run\n"

    def test_output_path_is_directory(self, project: dict) -> None:
        """Test that an output path naming a directory is rejected before any work."""
        with pytest.raises(SetupError, match="is a directory"):
            run_main(["-o", project["src"], project["src"]], {})

    def test_outdated_dependency_exits_with_runtime_error(self, project: dict) -> None:
        """Test that a too-old colorama stops the run with the runtime error code."""
        with patch.dict(PACKAGE_REQUIREMENTS, {"colorama": "999.0"}):
            with pytest.raises(SystemExit) as exc_info:
                run_main(["-o", "-", project["src"]], {})
        assert exc_info.value.code == EXIT_RUNTIME_ERROR

    def test_compiler_not_found(self, project: dict) -> None:
        """Test that a missing compiler is reported as a toolchain error."""
        with patch.object(clangComplete, "find_compiler", return_value=ToolInfo(command=None, version=None)):
            with pytest.raises(ToolchainError, match="no C/C\\+\\+ compiler"):
                clangComplete.main(["-o", "-", project["src"]])


@pytest.mark.unit
class TestParseArgs:
    """Tests for argument parsing."""

    def test_defaults(self) -> None:
        """Test default option values."""
        args = clangComplete.parse_args(["src"])
        assert args.output == ".clang_complete"
        assert args.search_root == []
        assert args.src_suffix == ".c .cc .cpp"
        assert args.header_suffix == ".h .hpp"
        assert args.jobs >= 1
        assert not args.no_sys

    def test_repeatable_options(self) -> None:
        """Test repeatable search roots and compiler flags."""
        args = clangComplete.parse_args(["-s", "a", "-s", "b", "-x=-DFOO", "--cc-flag=-std=c++17", "src"])
        assert args.search_root == ["a", "b"]
        assert args.cc_flag == ["-DFOO", "-std=c++17"]

    def test_invalid_jobs(self) -> None:
        """Test that --jobs below 1 is rejected."""
        with pytest.raises(SystemExit):
            clangComplete.parse_args(["-j", "0", "src"])


@pytest.mark.unit
class TestCliMain:
    """Tests for the console script wrapper."""

    def test_error_exit_code(self, capsys: Any) -> None:
        """Test that ClangCompleteError maps to its exit code and an error line."""
        with patch.object(clangComplete, "main", side_effect=SetupError("source root is not a directory: x")):
            with pytest.raises(SystemExit) as exc_info:
                clangComplete.cli_main()
        assert exc_info.value.code == EXIT_INVALID_ARGS
        assert "source root is not a directory" in capsys.readouterr().err

    def test_success_exit_code(self) -> None:
        """Test that a successful run exits with 0."""
        with patch.object(clangComplete, "main", return_value=EXIT_SUCCESS):
            with pytest.raises(SystemExit) as exc_info:
                clangComplete.cli_main()
        assert exc_info.value.code == EXIT_SUCCESS
