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
"""Compiler driver detection for clangComplete.

The driver is taken from $CC when set (matching make's convention), otherwise
the first of COMPILER_COMMANDS that answers --version. Detection results are
cached within the Python process session.
"""

import os
import shlex
import shutil
import logging
import subprocess
from typing import Optional, Dict, List
from dataclasses import dataclass

from clangcomplete.constants import COMPILER_COMMANDS, COMPILER_ENV_VAR

logger = logging.getLogger(__name__)

# Session-level cache for detection results (keyed by requested command)
_tool_cache: Dict[str, "ToolInfo"] = {}


@dataclass
class ToolInfo:
    """Information about a detected external tool.

    Attributes:
        command: Command name or path (e.g., "gcc", "/usr/bin/clang")
        version: First line of the tool's --version output
    """

    command: Optional[str]
    version: Optional[str]

    def is_found(self) -> bool:
        """Check if tool was found."""
        return self.command is not None


def _try_command(cmd_parts: List[str], timeout: int = 5) -> Optional[str]:
    """Run a command with --version and return its output, or None on failure."""
    try:
        result = subprocess.run(cmd_parts + ["--version"], capture_output=True, text=True, check=True, timeout=timeout)
        return result.stdout.strip()
    except (subprocess.CalledProcessError, FileNotFoundError, PermissionError, subprocess.TimeoutExpired):
        return None


def _extract_version(output: str) -> str:
    """Return the first line of a --version output."""
    lines = output.split("\n")
    return lines[0].strip() if lines else output.strip()


def find_compiler(preferred: Optional[str] = None) -> ToolInfo:
    """Find the C/C++ compiler driver used for dependency listing.

    Args:
        preferred: Explicit command; falls back to $CC, then COMPILER_COMMANDS

    Returns:
        ToolInfo with command and version if found, or empty ToolInfo if not found
    """
    requested = preferred or os.environ.get(COMPILER_ENV_VAR)
    candidates = [requested] if requested else COMPILER_COMMANDS

    cache_key = requested or ""
    if cache_key in _tool_cache:
        return _tool_cache[cache_key]

    tool_info = ToolInfo(command=None, version=None)
    for cmd in candidates:
        # $CC may carry arguments (e.g. "ccache gcc"); only the first word is looked up
        cmd_parts = shlex.split(cmd)
        if not cmd_parts or shutil.which(cmd_parts[0]) is None:
            logger.debug("%s not in PATH", cmd)
            continue

        version_output = _try_command(cmd_parts)
        if version_output is None:
            logger.debug("%s did not answer --version", cmd)
            continue

        tool_info = ToolInfo(command=cmd, version=_extract_version(version_output))
        logger.debug("Found compiler %s (%s)", cmd, tool_info.version)
        break
    else:
        logger.debug("No compiler found (tried: %s)", ", ".join(candidates))

    _tool_cache[cache_key] = tool_info
    return tool_info
