"""
Bounded parse pool for importing many files in parallel.

Files are independent, so parsing is embarrassingly parallel.  The pool keeps
a fixed number of slots (``cpu_count - 1`` by default, at least 1); requests
submitted while every slot is busy wait in a FIFO queue and are dispatched as
slots free up.  Each request is a list of file paths and is answered through
its own callback.

``parse_files_parallel`` builds on the pool:

1. Split the paths into one chunk per slot (at least ``min_chunk_size`` files).
2. Walk each chunk in sub-batches of ``batch_size`` so progress arrives while
   a slot is still busy with its chunk.
3. On cancellation, stop submitting further sub-batches.  Sub-batches already
   submitted complete normally.

Message shapes: :class:`ParseRequest` ``{file_paths}`` in,
:class:`ParseBatch` ``{results, completed, total}`` out.
"""

from __future__ import annotations

import logging
import math
import threading
from collections import deque
from concurrent.futures import Executor, Future, ProcessPoolExecutor, ThreadPoolExecutor
from dataclasses import dataclass
from functools import partial
from pathlib import Path
from typing import Callable, Deque, List, Optional, Sequence, Tuple

from curve_viewer.config import ViewerConfig, default_worker_count
from curve_viewer.ingest.discovery import DEFAULT_EXTENSIONS
from curve_viewer.ingest.importer import ImportReport, SkippedFile, try_import
from curve_viewer.ingest.xml_parser import IdGenerator
from curve_viewer.models.files import ImportedFile
from curve_viewer.progress import CancelToken, ProgressCallback, is_cancelled

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParseRequest:
    file_paths: Tuple[str, ...]


@dataclass(frozen=True)
class WorkerResult:
    """Answer to one ParseRequest: one entry per path (``None`` on failure)."""
    results: Tuple[Optional[ImportedFile], ...]
    skipped: Tuple[SkippedFile, ...] = ()


@dataclass(frozen=True)
class ParseBatch:
    results: Tuple[ImportedFile, ...]
    completed: int
    total: int
    skipped: Tuple[SkippedFile, ...] = ()


RequestCallback = Callable[[WorkerResult], None]


def parse_paths(file_paths: Sequence[str], extensions: Sequence[str] = DEFAULT_EXTENSIONS) -> WorkerResult:
    """Worker entry point: read and parse each path sequentially.

    Module-level so that a process executor can pickle it.
    """
    ids = IdGenerator()
    results: List[Optional[ImportedFile]] = []
    skipped: List[SkippedFile] = []
    for p in file_paths:
        f, skip = try_import(p, ids=ids, extensions=extensions)
        results.append(f)
        if skip is not None:
            skipped.append(skip)
    return WorkerResult(tuple(results), tuple(skipped))


class ParsePool:
    """Fixed-size pool with a FIFO queue of pending requests."""

    def __init__(
        self,
        size: Optional[int] = None,
        executor: str = "thread",
        extensions: Sequence[str] = DEFAULT_EXTENSIONS,
    ):
        self.size = size if size is not None else default_worker_count()
        if self.size < 1:
            raise ValueError(f"Pool size must be >= 1, got {self.size}")
        if executor == "process":
            self._executor: Executor = ProcessPoolExecutor(max_workers=self.size)
        elif executor == "thread":
            self._executor = ThreadPoolExecutor(max_workers=self.size, thread_name_prefix="curve-parse")
        else:
            raise ValueError(f"Unknown executor kind {executor!r}; expected 'thread' or 'process'.")
        self.extensions = tuple(extensions)
        self._busy = [False] * self.size
        self._pending: Deque[Tuple[ParseRequest, RequestCallback]] = deque()
        # RLock: a future may complete (and call back) inside submit
        self._lock = threading.RLock()
        self._closed = False

    @classmethod
    def from_config(cls, config: ViewerConfig) -> ParsePool:
        return cls(size=config.pool_size, executor=config.executor, extensions=config.extensions)

    # ------------------------------------------------------------------
    # Queue
    # ------------------------------------------------------------------

    def submit(self, request: ParseRequest, callback: RequestCallback) -> None:
        with self._lock:
            if self._closed:
                raise RuntimeError("ParsePool is shut down")
            self._pending.append((request, callback))
            self._process_queue()

    def _process_queue(self) -> None:
        while self._pending:
            try:
                slot = self._busy.index(False)
            except ValueError:
                break  # all slots busy
            request, callback = self._pending.popleft()
            self._busy[slot] = True
            fut = self._executor.submit(parse_paths, request.file_paths, self.extensions)
            fut.add_done_callback(partial(self._on_done, slot, request, callback))

    def _on_done(self, slot: int, request: ParseRequest, callback: RequestCallback, fut: Future) -> None:
        try:
            result = fut.result()
        except Exception as e:  # worker crashed (e.g. broken process pool)
            logger.exception("Parse worker failed on %d files", len(request.file_paths))
            reason = f"{type(e).__name__}: {e}"
            result = WorkerResult(
                tuple(None for _ in request.file_paths),
                tuple(SkippedFile(p, reason) for p in request.file_paths),
            )
        with self._lock:
            self._busy[slot] = False
        try:
            callback(result)
        finally:
            # a failing callback must not strand the queued requests
            with self._lock:
                if not self._closed:
                    self._process_queue()

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    @property
    def busy_count(self) -> int:
        with self._lock:
            return sum(self._busy)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def shutdown(self, wait: bool = True) -> None:
        with self._lock:
            self._closed = True
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> ParsePool:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown(wait=True)


# ----------------------------------------------------------------------
# Chunked parallel import
# ----------------------------------------------------------------------

def split_chunks(paths: Sequence[str], pool_size: int, min_chunk_size: int = 5) -> List[List[str]]:
    if not paths:
        return []
    chunk_size = max(min_chunk_size, math.ceil(len(paths) / pool_size))
    return [list(paths[i:i + chunk_size]) for i in range(0, len(paths), chunk_size)]


def parse_files_parallel(
    paths: Sequence,
    pool: Optional[ParsePool] = None,
    config: Optional[ViewerConfig] = None,
    on_batch: Optional[Callable[[ParseBatch], None]] = None,
    on_progress: Optional[ProgressCallback] = None,
    cancel: Optional[CancelToken] = None,
) -> ImportReport:
    """
    Import ``paths`` through a ParsePool, chunked per slot and sub-batched.

    Callbacks run on pool threads (one at a time).  Returned files are in
    completion order, which is stable only within one chunk.
    """
    config = config or ViewerConfig()
    str_paths = [str(p) for p in paths]
    total = len(str_paths)
    own_pool = pool is None
    pool = pool or ParsePool.from_config(config)

    files: List[ImportedFile] = []
    skipped: List[SkippedFile] = []
    state = {"completed": 0, "open_chunks": 0, "cancelled": False}
    cond = threading.Condition()

    def _finish_chunk() -> None:
        with cond:
            state["open_chunks"] -= 1
            cond.notify_all()

    def _run_chunk(sub_batches: List[List[str]], idx: int) -> None:
        if idx >= len(sub_batches):
            _finish_chunk()
            return
        if is_cancelled(cancel):
            with cond:
                state["cancelled"] = True
            _finish_chunk()
            return
        sub = sub_batches[idx]

        def _on_result(result: WorkerResult) -> None:
            valid = tuple(f for f in result.results if f is not None)
            try:
                with cond:
                    files.extend(valid)
                    skipped.extend(result.skipped)
                    state["completed"] += len(sub)
                    completed = state["completed"]
                    if on_batch is not None:
                        on_batch(ParseBatch(valid, completed, total, result.skipped))
                    if on_progress is not None:
                        on_progress(completed, total, Path(sub[-1]).name)
            finally:
                # keep the chunk moving even if a consumer callback raised
                _run_chunk(sub_batches, idx + 1)

        pool.submit(ParseRequest(tuple(sub)), _on_result)

    try:
        chunks = split_chunks(str_paths, pool.size, config.min_chunk_size)
        plans = [
            [chunk[j:j + config.batch_size] for j in range(0, len(chunk), config.batch_size)]
            for chunk in chunks
        ]
        with cond:
            state["open_chunks"] = len(plans)
        for plan in plans:
            _run_chunk(plan, 0)
        with cond:
            cond.wait_for(lambda: state["open_chunks"] == 0)
    finally:
        if own_pool:
            pool.shutdown(wait=True)

    report = ImportReport(tuple(files), tuple(skipped), total, bool(state["cancelled"]))
    logger.info(report.summary())
    return report
