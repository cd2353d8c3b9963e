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
"""Bounded-concurrency worker pool.

run() reserves one of ``capacity`` slots (blocking the caller until one is
free) and executes the task on a worker thread. wait() is a barrier for
everything submitted so far. The slot is released as soon as the task body
ends, whether it returns or raises.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait as wait_futures
from typing import Any, Callable, List

logger = logging.getLogger(__name__)


class WorkerPool:
    """Run tasks with at most ``capacity`` of them active at once."""

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {capacity}")
        self.capacity = capacity
        self._slots = threading.BoundedSemaphore(capacity)
        self._executor = ThreadPoolExecutor(max_workers=capacity, thread_name_prefix="worker")
        self._pending: List[Future] = []
        self._pending_lock = threading.Lock()

    def _execute(self, task: Callable[..., Any], args: tuple) -> Any:
        try:
            return task(*args)
        finally:
            self._slots.release()

    def run(self, task: Callable[..., Any], *args: Any) -> Future:
        """Reserve a slot and start ``task(*args)`` concurrently.

        Returns:
            Future holding the task's result or exception
        """
        self._slots.acquire()
        try:
            future = self._executor.submit(self._execute, task, args)
        except BaseException:
            self._slots.release()
            raise
        with self._pending_lock:
            self._pending.append(future)
        return future

    def wait(self) -> List[BaseException]:
        """Block until every submitted task has completed.

        Returns:
            Exceptions raised by the tasks that completed since the last wait()
        """
        with self._pending_lock:
            pending, self._pending = self._pending, []

        wait_futures(pending)

        errors: List[BaseException] = []
        for future in pending:
            error = future.exception()
            if error is not None:
                logger.error("Task failed: %s", error, exc_info=error)
                errors.append(error)
        return errors

    def shutdown(self) -> None:
        self.wait()
        self._executor.shutdown(wait=True)

    def __enter__(self) -> "WorkerPool":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.shutdown()
