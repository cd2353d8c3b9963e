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
"""Compiler driver invocations used by the resolver.

Two collaborators live here:

- CompilerHeaderListProvider runs the driver in dependency-listing mode
  (``-M -MG``) for one source file and returns the headers that were not
  resolved to an absolute location.
- get_system_include_dirs() asks the driver for its built-in search path
  (``-E -v``).

Output parsing is kept in plain functions so it can be tested without a
compiler.
"""

import os
import shlex
import logging
import subprocess
from typing import Iterable, List, Optional, Sequence

from clangcomplete.constants import (
    COMPILER_TIMEOUT,
    DEPENDENCY_LIST_FLAGS,
    SEARCH_PATH_QUERY_FLAGS,
    SEARCH_LIST_START,
    SEARCH_LIST_END,
    ToolchainError,
)

logger = logging.getLogger(__name__)


def is_location_known_header(header: str) -> bool:
    """Check if the driver already resolved a header to an absolute location."""
    return os.path.isabs(header)


def find_in_search_dirs(header: str, search_dirs: Iterable[str]) -> Optional[str]:
    """Return the first directory under which ``header`` exists, or None."""
    for directory in search_dirs:
        if os.path.isfile(os.path.join(directory, header)):
            return directory
    return None


def parse_dependency_output(output: str, header_extensions: Iterable[str]) -> List[str]:
    """Parse make-style dependency output into referenced header paths.

    Args:
        output: stdout of ``cc -M -MG``, e.g. "main.o: main.c foo/bar.h /usr/include/stdio.h"
        header_extensions: Extensions accepted as headers

    Returns:
        Header paths in output order, excluding the make target, files with other
        extensions and headers at absolute (toolchain-resolved) locations
    """
    extensions = frozenset(header_extensions)
    tokens = output.replace("\\\n", " ").split()

    headers: List[str] = []
    # First token is the make target ("main.o:")
    for token in tokens[1:]:
        if os.path.splitext(token)[1] not in extensions:
            continue
        if is_location_known_header(token):
            continue
        headers.append(token)
    return headers


def parse_search_paths(output: str) -> List[str]:
    """Extract the ``#include <...>`` search list from ``cc -E -v`` output."""
    dirs: List[str] = []
    started = False
    for raw_line in output.splitlines():
        line = raw_line.strip()
        if line.startswith(SEARCH_LIST_START):
            started = True
            continue
        if line.startswith(SEARCH_LIST_END):
            break
        if started and line:
            dirs.append(line)
    return dirs


def _compiler_argv(compiler: str) -> List[str]:
    argv = shlex.split(compiler)
    if not argv:
        raise ToolchainError("empty compiler command")
    return argv


def get_system_include_dirs(compiler: str, timeout: int = COMPILER_TIMEOUT) -> List[str]:
    """Return the compiler's built-in header search directories in search order.

    Raises:
        ToolchainError: If the compiler cannot be run
    """
    cmd = _compiler_argv(compiler) + SEARCH_PATH_QUERY_FLAGS
    logger.debug("Querying system search path: %s", " ".join(cmd))
    try:
        result = subprocess.run(cmd, stdin=subprocess.DEVNULL, stdout=subprocess.PIPE, stderr=subprocess.STDOUT, text=True, timeout=timeout)
    except FileNotFoundError as e:
        raise ToolchainError(f"compiler not found: {compiler}") from e
    except subprocess.TimeoutExpired as e:
        raise ToolchainError(f"{compiler} timed out after {timeout} seconds") from e

    if result.returncode != 0:
        raise ToolchainError(f"{compiler} failed with code {result.returncode}: {result.stdout[:1000]}")

    dirs = parse_search_paths(result.stdout)
    logger.debug("System search path: %s", dirs)
    return dirs


class CompilerHeaderListProvider:
    """List the headers a source file references by running the compiler driver.

    Instances are callables taking ``(source, search_flags)``, the shape the
    Resolver expects from any header-list provider.

    Args:
        compiler: Driver command, may include arguments (e.g. "ccache gcc")
        extra_flags: Flags forwarded on every invocation (defines, language options)
        header_extensions: Extensions accepted as headers
        timeout: Seconds before an invocation is killed
    """

    def __init__(self, compiler: str, extra_flags: Sequence[str], header_extensions: Iterable[str], timeout: int = COMPILER_TIMEOUT):
        self.argv = _compiler_argv(compiler)
        self.extra_flags = list(extra_flags)
        self.header_extensions = frozenset(header_extensions)
        self.timeout = timeout

    def command(self, source: str, search_flags: Sequence[str]) -> List[str]:
        return self.argv + DEPENDENCY_LIST_FLAGS + self.extra_flags + list(search_flags) + [source]

    def __call__(self, source: str, search_flags: Sequence[str]) -> List[str]:
        """Run the dependency listing for ``source``.

        Raises:
            ToolchainError: If the driver is missing, times out, or prints no dependency list
        """
        cmd = self.command(source, search_flags)
        try:
            result = subprocess.run(cmd, stdin=subprocess.DEVNULL, capture_output=True, text=True, timeout=self.timeout)
        except FileNotFoundError as e:
            raise ToolchainError(f"{source}: compiler not found: {self.argv[0]}") from e
        except subprocess.TimeoutExpired as e:
            raise ToolchainError(f"{source}: {self.argv[0]} timed out after {self.timeout} seconds") from e

        # -MG still prints a usable list on some errors; only an empty stdout is a failure
        if not result.stdout.strip():
            raise ToolchainError(f"{source}: exit status {result.returncode}: {result.stderr.strip()}")

        if result.returncode != 0:
            logger.debug("%s: %s exited with %d, using partial dependency list", source, self.argv[0], result.returncode)

        return parse_dependency_output(result.stdout, self.header_extensions)
