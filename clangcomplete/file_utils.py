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
"""Source tree enumeration and extension-list helpers."""

import os
import logging
from typing import FrozenSet, Iterable, List

from clangcomplete.constants import SetupError

logger = logging.getLogger(__name__)


def parse_extensions(spec: str) -> FrozenSet[str]:
    """Parse an extension list such as ".c .cc .cpp" or ".h,.hpp".

    Extensions given without a leading dot get one.
    """
    extensions = set()
    for item in spec.replace(",", " ").split():
        extensions.add(item if item.startswith(".") else "." + item)
    return frozenset(extensions)


def is_hidden(name: str) -> bool:
    """Check if an entry is dot-prefixed ("." itself is not hidden)."""
    return len(name) > 1 and name.startswith(".")


def _log_walk_error(error: OSError) -> None:
    logger.warning("Skipping unreadable directory %s: %s", error.filename, error.strerror)


def collect_source_files(root: str, extensions: Iterable[str]) -> List[str]:
    """Collect source files below ``root``.

    Walks depth-first in lexicographic order, skipping dot-prefixed entries
    and their subtrees.

    Args:
        root: Source tree root
        extensions: Accepted source extensions

    Returns:
        Absolute paths of the accepted files

    Raises:
        SetupError: If root is not a directory
    """
    root = os.path.abspath(root)
    if not os.path.isdir(root):
        raise SetupError(f"source root is not a directory: {root}")

    accepted = frozenset(extensions)
    sources: List[str] = []
    for dirpath, dirnames, filenames in os.walk(root, onerror=_log_walk_error):
        dirnames[:] = sorted(d for d in dirnames if not is_hidden(d))
        for filename in sorted(filenames):
            if is_hidden(filename):
                continue
            if os.path.splitext(filename)[1] in accepted:
                sources.append(os.path.join(dirpath, filename))

    logger.info("Collected %d source files under %s", len(sources), root)
    return sources
