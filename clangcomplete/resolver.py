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
"""Iterative, concurrent resolution of include directories.

Every source file is asked for the headers it references; each header is
looked up in the HeaderIndex and the matching directories are accumulated in
the shared DirectorySet. Because the compiler is handed the directories
known so far, a file can report different (deeper) headers once more of the
search path is known. Files are therefore processed in rounds:

1. Up to ``capacity`` pending files are dispatched to the WorkerPool and the
   round waits for all of them.
2. A file goes back to the front of the pending queue only if its unit of
   work added at least one directory that was not known before.
3. The run ends when the pending queue is empty.

Each requeue needs a previously unknown directory and the index can only
report finitely many, so the loop always terminates.
"""

import os
import enum
import time
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Deque, Dict, Iterable, List, Optional, Sequence

from clangcomplete.color_utils import print_info
from clangcomplete.constants import HeaderNotFoundError, ToolchainError
from clangcomplete.directory_set import DirectorySet
from clangcomplete.header_index import HeaderIndex
from clangcomplete.toolchain_utils import find_in_search_dirs, is_location_known_header
from clangcomplete.work_pool import WorkerPool

logger = logging.getLogger(__name__)

# (source path, current search-path flags) -> referenced header paths
HeaderLister = Callable[[str, Sequence[str]], List[str]]


class ResolutionState(enum.Enum):
    """Per-file state within one run."""

    PENDING = "pending"  # Queued for the next round
    RESOLVED = "resolved"  # Processed, nothing new learned
    RESOLVED_NEW_INFO = "resolved-new-info"  # Processed, added directories; revisit
    FAILED = "failed"  # Header listing failed; dropped


@dataclass
class FileResult:
    """Outcome of one unit of work."""

    path: str
    state: ResolutionState
    headers: List[str] = field(default_factory=list)
    new_directories: int = 0
    missing: List[str] = field(default_factory=list)

    @property
    def needs_requeue(self) -> bool:
        return self.state is ResolutionState.RESOLVED_NEW_INFO


@dataclass
class ResolveStats:
    """Counters for a whole run."""

    rounds: int = 0
    processed: int = 0
    requeued: int = 0
    failed: int = 0
    missing_headers: int = 0
    elapsed: float = 0.0


class Resolver:
    """Drive every source file through the HeaderIndex until no new directory appears.

    Args:
        index: Read-only header index
        directories: Shared accumulator; its system directories are treated as toolchain-known
        list_headers: Header-list provider, called as ``list_headers(source, search_flags)``
        capacity: Maximum number of files processed concurrently
        source_root: Used only to shorten paths in progress messages

    Attributes:
        states: ResolutionState of every source of the last run; files queued
            for another round are PENDING until they are processed again
    """

    def __init__(self, index: HeaderIndex, directories: DirectorySet, list_headers: HeaderLister, capacity: int, source_root: Optional[str] = None):
        if capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {capacity}")
        self.index = index
        self.directories = directories
        self.list_headers = list_headers
        self.capacity = capacity
        self.source_root = source_root
        self.states: Dict[str, ResolutionState] = {}

    def _display_path(self, path: str) -> str:
        if self.source_root:
            return os.path.relpath(path, self.source_root)
        return path

    def resolve_one(self, path: str) -> FileResult:
        """Process one source file.

        Headers the toolchain already resolved (absolute paths, or present
        under a system directory) are not looked up. A header missing from
        the index is reported and skipped.
        """
        try:
            headers = self.list_headers(path, self.directories.snapshot())
        except ToolchainError as e:
            logger.warning("%s", e)
            return FileResult(path, ResolutionState.FAILED)

        logger.debug("process %s: %s", self._display_path(path), headers)

        result = FileResult(path, ResolutionState.RESOLVED, headers=list(headers))
        system_dirs = self.directories.system_dirs
        for header in headers:
            if is_location_known_header(header):
                continue
            if find_in_search_dirs(header, system_dirs) is not None:
                logger.debug("%s: found in system search path", header)
                continue
            try:
                candidates = self.index.search(header)
            except HeaderNotFoundError as e:
                logger.warning("%s", e)
                result.missing.append(header)
                continue
            result.new_directories += self.directories.add(candidates)

        if result.new_directories:
            result.state = ResolutionState.RESOLVED_NEW_INFO
        return result

    def run(self, sources: Iterable[str]) -> ResolveStats:
        """Resolve all sources until the pending queue drains.

        Returns:
            Counters for the run
        """
        stats = ResolveStats()
        pending: Deque[str] = deque(sources)
        self.states = {path: ResolutionState.PENDING for path in pending}
        started = time.time()

        with WorkerPool(self.capacity) as pool:
            while pending:
                stats.rounds += 1
                batch = [pending.popleft() for _ in range(min(self.capacity, len(pending)))]
                logger.debug("Round %d: %d files, %d still pending", stats.rounds, len(batch), len(pending))

                futures = []
                for path in batch:
                    print_info(self._display_path(path))
                    futures.append(pool.run(self.resolve_one, path))
                pool.wait()

                requeue: List[str] = []
                for path, future in zip(batch, futures):
                    stats.processed += 1
                    if future.exception() is not None:
                        # Logged by the pool; treated like a failed header listing
                        stats.failed += 1
                        self.states[path] = ResolutionState.FAILED
                        continue
                    result = future.result()
                    stats.missing_headers += len(result.missing)
                    self.states[path] = result.state
                    if result.state is ResolutionState.FAILED:
                        stats.failed += 1
                    elif result.needs_requeue:
                        requeue.append(path)
                        self.states[path] = ResolutionState.PENDING

                stats.requeued += len(requeue)
                pending.extendleft(reversed(requeue))

        stats.elapsed = time.time() - started
        logger.info("Resolved in %d rounds, %d include directories", stats.rounds, len(self.directories))
        return stats
