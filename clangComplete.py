#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# ****************************************************************************************************************************************************
# * BSD 3-Clause License
# *
# * Copyright (c) 2025, Mana Battery
# * All rights reserved.
# *
# * Redistribution and use in source and binary forms, with or without modification, are permitted provided that the following conditions are met:
# *
# * 1. Redistributions of source code must retain the above copyright notice, this list of conditions and the following disclaimer.
# * 2. Redistributions in binary form must reproduce the above copyright notice, this list of conditions and the following disclaimer in the
# *    documentation and/or other materials provided with the distribution.
# * 3. Neither the name of the copyright holder nor the names of its contributors may be used to endorse or promote products derived from this
# *    software without specific prior written permission.
# *
# * THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS" AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO,
# * THE IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR
# * CONTRIBUTORS BE LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT LIMITED TO,
# * PROCUREMENT OF SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF
# * LIABILITY, WHETHER IN CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE,
# * EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE.
# ****************************************************************************************************************************************************
"""Generate compiler include flags for editor tooling.

Indexes one or more header trees, runs the compiler's dependency listing for
every source file below SOURCE_ROOT, and writes the include-search
directories needed to resolve every referenced header as ``-I<dir>`` lines
(a .clang_complete file by default).

Requirements:
    - Python 3.8+
    - gcc or clang (or $CC)
    - colorama, packaging

Usage:
    clangComplete.py [options] SOURCE_ROOT

Exit Codes:
    0: Success
    1: Invalid arguments, source root, output file or header roots
    2: Runtime error (compiler not usable)
    130: Interrupted
"""

import os
import sys
import time
import signal
import logging
import argparse
from typing import Any, List, Optional, TextIO

__version__ = "1.0.0"
__author__ = "Mana Battery"

from clangcomplete.color_utils import configure_logging, print_error, print_info, print_warning
from clangcomplete.constants import (
    COMPILER_TIMEOUT,
    DEFAULT_HEADER_EXTENSIONS,
    DEFAULT_OUTPUT_FILE,
    DEFAULT_SOURCE_EXTENSIONS,
    EXIT_KEYBOARD_INTERRUPT,
    EXIT_RUNTIME_ERROR,
    EXIT_SUCCESS,
    STDOUT_OUTPUT,
    ClangCompleteError,
    SetupError,
    ToolchainError,
)
from clangcomplete.directory_set import DirectorySet
from clangcomplete.file_utils import collect_source_files, parse_extensions
from clangcomplete.header_index import HeaderIndex
from clangcomplete.package_verification import require_package
from clangcomplete.resolver import Resolver
from clangcomplete.tool_detection import find_compiler
from clangcomplete.toolchain_utils import CompilerHeaderListProvider, get_system_include_dirs

logger = logging.getLogger(__name__)

__all__ = ["EXIT_SUCCESS", "main", "parse_args"]


def signal_handler(signum: int, frame: Any) -> None:
    """Handle interrupt signals gracefully."""
    print_warning("\nInterrupted by user. Exiting...", prefix=False)
    sys.exit(EXIT_KEYBOARD_INTERRUPT)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Find the include directories a source tree needs and write them as compiler flags.",
        epilog=f"Version {__version__}\n\nExamples:\n"
        f"  %(prog)s -s /opt/sdk/include src/\n"
        f"  %(prog)s -s third_party -s include -x=-DUSE_FOO -o - .\n",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument("source_root", help="Root of the source tree to resolve")
    parser.add_argument("-s", "--search-root", action="append", default=[], metavar="DIR", help="Header tree to index (repeatable)")
    parser.add_argument(
        "-x", "--cc-flag", action="append", default=[], metavar="FLAG", help="Extra flag forwarded to the compiler (repeatable, e.g. -x=-DFOO)"
    )
    parser.add_argument("--src-suffix", default=DEFAULT_SOURCE_EXTENSIONS, help=f"Source file extensions (default: '{DEFAULT_SOURCE_EXTENSIONS}')")
    parser.add_argument("--header-suffix", default=DEFAULT_HEADER_EXTENSIONS, help=f"Header file extensions (default: '{DEFAULT_HEADER_EXTENSIONS}')")
    parser.add_argument("-o", "--output", default=DEFAULT_OUTPUT_FILE, metavar="FILE", help=f"Output file, '-' for stdout (default: {DEFAULT_OUTPUT_FILE})")
    parser.add_argument("--no-sys", action="store_true", help="Do not write the compiler's system include directories")
    parser.add_argument("-j", "--jobs", type=int, default=os.cpu_count() or 1, help="Number of concurrent compiler invocations (default: CPU count)")
    parser.add_argument("--compiler", default=None, help="Compiler driver (default: $CC, then gcc/clang/cc)")
    parser.add_argument("--timeout", type=int, default=COMPILER_TIMEOUT, help=f"Seconds per compiler invocation (default: {COMPILER_TIMEOUT})")
    parser.add_argument("--no-color", action="store_true", help="Disable colored output")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug output to stderr")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    args = parser.parse_args(argv)
    if args.jobs < 1:
        parser.error("--jobs must be at least 1")
    return args


def check_output_writable(path: str) -> None:
    """Fail early if the output file could not be created.

    The file itself is opened only once the directories are known, so an
    existing output survives a failed run.

    Raises:
        SetupError: If the parent directory is missing or the file is not writable
    """
    if path == STDOUT_OUTPUT:
        return
    parent = os.path.dirname(os.path.abspath(path))
    if not os.path.isdir(parent):
        raise SetupError(f"cannot create output file '{path}': no such directory")
    if os.path.isdir(path):
        raise SetupError(f"cannot create output file '{path}': is a directory")
    target = path if os.path.exists(path) else parent
    if not os.access(target, os.W_OK):
        raise SetupError(f"cannot create output file '{path}': permission denied")


def open_output(path: str) -> TextIO:
    """Open the output destination, '-' meaning stdout.

    Raises:
        SetupError: If the file cannot be created
    """
    if path == STDOUT_OUTPUT:
        return sys.stdout
    try:
        return open(path, "w", encoding="utf-8")
    except OSError as e:
        raise SetupError(f"cannot create output file '{path}': {e.strerror}") from e


def build_index(search_roots: List[str], header_extensions: frozenset, jobs: int) -> HeaderIndex:
    """Index all header roots.

    Raises:
        SetupError: If roots were given and none of them could be indexed
    """
    index = HeaderIndex()
    errors = index.build_all(search_roots, header_extensions, max_workers=jobs)
    if search_roots and len(errors) == len(search_roots):
        raise SetupError("no header root could be indexed")
    return index


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the script.

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    require_package("colorama", "colored diagnostics")

    args = parse_args(argv)
    configure_logging(verbose=args.verbose, no_color=args.no_color)

    source_root = os.path.abspath(args.source_root)
    if not os.path.isdir(source_root):
        raise SetupError(f"source root is not a directory: {args.source_root}")

    source_extensions = parse_extensions(args.src_suffix)
    header_extensions = parse_extensions(args.header_suffix)

    compiler = find_compiler(args.compiler)
    if not compiler.is_found():
        raise ToolchainError("no C/C++ compiler found. Set $CC or pass --compiler")
    assert compiler.command is not None
    logger.debug("Using compiler %s (%s)", compiler.command, compiler.version)

    check_output_writable(args.output)

    system_dirs = get_system_include_dirs(compiler.command, timeout=args.timeout)
    directories = DirectorySet(system_dirs, emit_system=not args.no_sys)

    start = time.time()
    index = build_index(args.search_root, header_extensions, args.jobs)
    index_time = time.time() - start

    sources = collect_source_files(source_root, source_extensions)

    provider = CompilerHeaderListProvider(compiler.command, args.cc_flag, header_extensions, timeout=args.timeout)
    resolver = Resolver(index, directories, provider, args.jobs, source_root=source_root)
    stats = resolver.run(sources)

    output = open_output(args.output)
    try:
        directories.flush(output)
    finally:
        if output is not sys.stdout:
            output.close()

    print_info(f"total:{index_time + stats.elapsed:.2f}s index:{index_time:.2f}s search:{stats.elapsed:.2f}s")
    print_info(
        f"{len(sources)} files, {stats.rounds} rounds, {len(directories)} include directories, "
        f"{stats.failed} failed files, {stats.missing_headers} missing headers"
    )
    return EXIT_SUCCESS


def cli_main() -> None:
    """Console script entry point."""
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print_warning("Interrupted.", prefix=False)
        sys.exit(EXIT_KEYBOARD_INTERRUPT)
    except ClangCompleteError as e:
        print_error(str(e))
        sys.exit(e.exit_code)
    except Exception as e:
        print_error(f"Fatal error: {e}", prefix=False)
        sys.exit(EXIT_RUNTIME_ERROR)


if __name__ == "__main__":
    cli_main()
