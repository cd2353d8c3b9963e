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
"""Thread-safe accumulator of discovered include-search directories."""

import logging
import threading
from typing import Iterable, List, Optional, Set, TextIO

from clangcomplete.constants import INCLUDE_FLAG_PREFIX

logger = logging.getLogger(__name__)


class DirectorySet:
    """Deduplicated, insertion-ordered set of include directories.

    System directories reported by the toolchain are kept apart from the
    discovered ones: they are always part of snapshot() and are written
    last by flush(), in toolchain order. All operations are serialized by a
    single lock, so workers may add and read concurrently.

    Args:
        system_dirs: Toolchain default search directories, in toolchain order
        emit_system: If False, flush() omits the system directories
    """

    def __init__(self, system_dirs: Optional[Iterable[str]] = None, emit_system: bool = True):
        self._lock = threading.Lock()
        self._system: List[str] = []
        for directory in system_dirs or []:
            if directory not in self._system:
                self._system.append(directory)
        self._known: Set[str] = set(self._system)
        self._ordered: List[str] = []
        self.emit_system = emit_system

    def add(self, dirs: Iterable[str]) -> int:
        """Record directories not seen before.

        Returns:
            Number of directories that were newly added
        """
        added = 0
        with self._lock:
            for directory in dirs:
                if directory in self._known:
                    continue
                logger.debug("new include dir: %s", directory)
                self._known.add(directory)
                self._ordered.append(directory)
                added += 1
        return added

    def __len__(self) -> int:
        with self._lock:
            return len(self._ordered)

    def __contains__(self, directory: object) -> bool:
        with self._lock:
            return directory in self._known

    @property
    def directories(self) -> List[str]:
        """Discovered directories in insertion order (system directories excluded)."""
        with self._lock:
            return list(self._ordered)

    @property
    def system_dirs(self) -> List[str]:
        return list(self._system)

    def snapshot(self) -> List[str]:
        """Return the current directories as search-path flags.

        Discovered directories come first, followed by the system directories.
        """
        with self._lock:
            return [INCLUDE_FLAG_PREFIX + d for d in self._ordered + self._system]

    def output_lines(self) -> List[str]:
        """Return the flags written by flush(): sorted discoveries, then system directories."""
        with self._lock:
            lines = [INCLUDE_FLAG_PREFIX + d for d in sorted(self._ordered)]
            if self.emit_system:
                lines.extend(INCLUDE_FLAG_PREFIX + d for d in self._system)
            return lines

    def flush(self, writer: TextIO) -> int:
        """Write one flag per line to ``writer``.

        Returns:
            Number of lines written
        """
        lines = self.output_lines()
        for line in lines:
            writer.write(line + "\n")
        writer.flush()
        return len(lines)
