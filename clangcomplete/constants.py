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
"""Shared constants for clangComplete.

This module provides centralized defaults, exit codes and the exception
hierarchy used by the header-resolution engine and the command line tool.
"""

# =============================================================================
# Exit Codes
# =============================================================================

EXIT_SUCCESS = 0
EXIT_INVALID_ARGS = 1
EXIT_RUNTIME_ERROR = 2
EXIT_KEYBOARD_INTERRUPT = 130

# =============================================================================
# Defaults
# =============================================================================

DEFAULT_SOURCE_EXTENSIONS = ".c .cc .cpp"
DEFAULT_HEADER_EXTENSIONS = ".h .hpp"
DEFAULT_OUTPUT_FILE = ".clang_complete"  # "-" writes to stdout
STDOUT_OUTPUT = "-"

# Flag prefix used for every emitted include-search directory
INCLUDE_FLAG_PREFIX = "-I"

# =============================================================================
# Toolchain Constants
# =============================================================================

COMPILER_ENV_VAR = "CC"
COMPILER_COMMANDS = ["gcc", "clang", "cc"]  # Tried in order when $CC is not set

# Dependency listing: -M lists dependencies, -MG keeps missing headers as written
DEPENDENCY_LIST_FLAGS = ["-xc++", "-M", "-MG"]
SEARCH_PATH_QUERY_FLAGS = ["-xc++", "-E", "-v", "-"]
SEARCH_LIST_START = "#include <...> search starts here:"
SEARCH_LIST_END = "End of search list."

COMPILER_TIMEOUT = 60  # Timeout for a single compiler invocation (seconds)

# =============================================================================
# Exception Classes
# =============================================================================


class ClangCompleteError(Exception):
    """Base exception for all clangComplete errors.

    Every exception carries an exit_code attribute that the command line tool
    uses when the error reaches the main entry point.
    """

    def __init__(self, message: str, exit_code: int = EXIT_RUNTIME_ERROR):
        super().__init__(message)
        self.exit_code = exit_code


# Validation errors (EXIT_INVALID_ARGS)
class ValidationError(ClangCompleteError):
    """Raised when input validation fails (arguments, paths, etc)."""

    def __init__(self, message: str):
        super().__init__(message, EXIT_INVALID_ARGS)


class SetupError(ValidationError):
    """Raised for fatal setup problems: unresolvable source root, uncreatable output, no usable header root."""


# External tool errors
class ExternalToolError(ClangCompleteError):
    """Raised when an external tool fails."""


class ToolchainError(ExternalToolError):
    """Raised when the compiler driver fails or produces no usable output."""


# Analysis errors
class AnalysisError(ClangCompleteError):
    """Raised when index construction or lookup fails."""


class IndexBuildError(AnalysisError):
    """Raised when a header root cannot be scanned."""

    def __init__(self, root: str, reason: str):
        super().__init__(f"cannot index {root}: {reason}")
        self.root = root


class HeaderNotFoundError(AnalysisError):
    """Raised when a header path is not reachable in any indexed tree."""

    def __init__(self, header: str):
        super().__init__(f"{header}: not found")
        self.header = header
