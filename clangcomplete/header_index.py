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
"""Suffix-matching index over one or more header trees.

The index answers a single question: given an include path such as
``sys/types.h``, which directories must be on the compiler's search path for
that include to resolve?

Each scanned filesystem entry becomes an IndexNode. Links run from an entry
towards its containing directory, keyed by that directory's base name, so a
lookup walks an include path from its last segment (the file name) back to
its first. Every header root gets a synthetic SentinelRoot that maps each
indexed file name to all of its occurrences under that root; searches start
there.

Roots are built independently (optionally in parallel, one thread per root)
and the forest is read-only afterwards, so searches need no locking.
"""

import os
import stat
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set

from clangcomplete.constants import IndexBuildError, HeaderNotFoundError

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class IndexNode:
    """One indexed file or directory.

    Attributes:
        name: Base name of the entry (empty for a sentinel root)
        containing_dir: Absolute path of the entry's parent directory
        ancestors_by_name: Directory name -> nodes of directories containing this entry
    """

    name: str
    containing_dir: str
    ancestors_by_name: Dict[str, List["IndexNode"]] = field(default_factory=dict, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @property
    def path(self) -> str:
        return os.path.join(self.containing_dir, self.name)

    def link(self, ancestor: "IndexNode") -> None:
        """Record that ``ancestor`` contains this entry."""
        with self._lock:
            self.ancestors_by_name.setdefault(ancestor.name, []).append(ancestor)

    def lookup(self, name: str) -> List["IndexNode"]:
        return self.ancestors_by_name.get(name, [])


class SentinelRoot(IndexNode):
    """Entry point of one header root: maps file base names to their nodes."""

    def __init__(self, root_path: str):
        super().__init__(name="", containing_dir="")
        self.root_path = root_path

    def register(self, file_node: IndexNode) -> None:
        with self._lock:
            self.ancestors_by_name.setdefault(file_node.name, []).append(file_node)

    @property
    def file_count(self) -> int:
        return sum(len(nodes) for nodes in self.ancestors_by_name.values())


def _split_header_path(header: str) -> List[str]:
    """Split an include path into its non-empty segments.

    A leading slash is ignored so that ``/sys/types.h`` searches like ``sys/types.h``.
    """
    return [segment for segment in header.lstrip("/").split("/") if segment]


class HeaderIndex:
    """Forest of SentinelRoots keyed by the absolute path of each scanned root."""

    def __init__(self) -> None:
        self._roots: Dict[str, SentinelRoot] = {}
        self._roots_lock = threading.Lock()

    @property
    def roots(self) -> List[str]:
        return list(self._roots)

    def __len__(self) -> int:
        return len(self._roots)

    def build(self, root_path: str, accepted_extensions: Iterable[str]) -> SentinelRoot:
        """Scan one header root and register it in the forest.

        Args:
            root_path: Directory to index (made absolute)
            accepted_extensions: File extensions to index, e.g. {".h", ".hpp"}

        Returns:
            The sentinel root registered for this tree

        Raises:
            IndexBuildError: If the root or one of its directories cannot be read.
                Nothing is registered for a root whose build fails.
        """
        root_path = os.path.abspath(root_path)
        extensions = frozenset(accepted_extensions)
        sentinel = SentinelRoot(root_path)

        try:
            self._build_tree(root_path, sentinel, extensions, top=True)
        except OSError as e:
            raise IndexBuildError(root_path, e.strerror or str(e)) from e

        with self._roots_lock:
            self._roots[root_path] = sentinel

        logger.info("Indexed %s: %d header files", root_path, sentinel.file_count)
        return sentinel

    def build_all(self, root_paths: Iterable[str], accepted_extensions: Iterable[str], max_workers: int = 1) -> List[IndexBuildError]:
        """Build several header roots, one thread per root.

        A failing root does not affect its siblings; its error is returned
        instead of raised.

        Returns:
            Errors of the roots that could not be indexed
        """
        extensions = frozenset(accepted_extensions)
        paths = list(root_paths)
        errors: List[IndexBuildError] = []
        if not paths:
            return errors

        with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(paths))), thread_name_prefix="index") as pool:
            futures = [pool.submit(self.build, path, extensions) for path in paths]
            for future in futures:
                error = future.exception()
                if isinstance(error, IndexBuildError):
                    logger.error("%s", error)
                    errors.append(error)
                elif error is not None:
                    raise error

        return errors

    def _build_tree(self, path: str, sentinel: SentinelRoot, extensions: frozenset, top: bool = False) -> Optional[IndexNode]:
        """Index ``path`` and everything below it.

        Returns:
            The node for ``path``, or None when the entry is skipped (hidden,
            not a regular file or directory, unaccepted extension, or a
            directory without any retained entries). The root itself (top) is
            followed through symlinks and is never treated as hidden.
        """
        parent_dir, name = os.path.split(path)
        if name.startswith(".") and not top:
            return None

        mode = os.stat(path).st_mode if top else os.lstat(path).st_mode

        # Sockets, devices and symlinks are not indexed
        if stat.S_ISREG(mode):
            if os.path.splitext(name)[1] not in extensions:
                return None
            file_node = IndexNode(name, parent_dir)
            sentinel.register(file_node)
            return file_node

        if not stat.S_ISDIR(mode):
            return None

        logger.debug("scan dir %s", path)
        dir_node = IndexNode(name, parent_dir)
        retained = 0
        for entry_name in sorted(os.listdir(path)):
            child = self._build_tree(os.path.join(path, entry_name), sentinel, extensions)
            if child is None:
                continue
            child.link(dir_node)
            retained += 1

        return dir_node if retained else None

    def search(self, header: str) -> List[str]:
        """Return every directory from which ``header`` resolves.

        The include path is walked from its file name back to its first
        segment; each step follows ancestors_by_name from the current
        candidates. The containing directory of each final candidate is an
        include-search directory for ``header``.

        Args:
            header: Slash separated include path, e.g. "sys/types.h"

        Returns:
            Candidate directories in discovery order, without duplicates

        Raises:
            HeaderNotFoundError: If any step of the walk has no candidates
        """
        segments = _split_header_path(header)
        if not segments:
            raise HeaderNotFoundError(header)

        candidates: List[IndexNode] = list(self._roots.values())
        for segment in reversed(segments):
            candidates = [ancestor for node in candidates for ancestor in node.lookup(segment)]
            if not candidates:
                raise HeaderNotFoundError(header)

        directories: List[str] = []
        seen: Set[str] = set()
        for node in candidates:
            if node.containing_dir not in seen:
                seen.add(node.containing_dir)
                directories.append(node.containing_dir)
        return directories
