import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeout, as_completed
from typing import Callable, List, Optional, Sequence, Tuple, TypeVar

from tqdm import tqdm

from .. import config

T = TypeVar('T')
R = TypeVar('R')

# progress(stage, completed, total)
ProgressCallback = Callable[[str, int, int], None]


class CancelToken:
    """Combines an overall deadline (seconds from creation) with an external cancel event."""

    def __init__(self, deadline: Optional[float] = None, event: Optional[threading.Event] = None):
        self._expires = time.monotonic() + deadline if deadline is not None else None
        self._event = event

    def cancelled(self) -> bool:
        if self._event is not None and self._event.is_set():
            return True
        return self._expires is not None and time.monotonic() >= self._expires

    def remaining(self) -> Optional[float]:
        if self._expires is None:
            return None
        return max(0.0, self._expires - time.monotonic())


class WorkerPool:
    """
    Fixed-size pool for per-file I/O.

    Results come back indexed by input position, so completion order never
    leaks into the output. On cancellation, finished results are kept and
    unfinished slots stay None.
    """

    def __init__(self,
                 max_workers: int = config.DEFAULT_MAX_WORKERS,
                 token: Optional[CancelToken] = None,
                 progress: Optional[ProgressCallback] = None,
                 show_progress: bool = False):
        self.max_workers = max_workers
        self.token = token or CancelToken()
        self.progress = progress
        self.show_progress = show_progress

    def map(self, fn: Callable[[T], R], items: Sequence[T], stage: str) -> Tuple[List[Optional[R]], bool]:
        """Runs fn over items. Returns (results, cancelled)."""
        results: List[Optional[R]] = [None] * len(items)
        if not items:
            return results, False
        if self.token.cancelled():
            return results, True

        total = len(items)
        completed = 0
        bar = tqdm(total=total, desc=stage, unit='file', disable=not self.show_progress)

        def _tick():
            nonlocal completed
            completed += 1
            bar.update(1)
            if self.progress:
                self.progress(stage, completed, total)

        try:
            if self.max_workers <= 1:
                # Sequential mode
                for i, item in enumerate(items):
                    if self.token.cancelled():
                        return results, True
                    results[i] = fn(item)
                    _tick()
                return results, False

            return self._map_parallel(fn, items, stage, results, _tick)
        finally:
            bar.close()

    def _map_parallel(self, fn, items, stage, results, tick):
        logging.debug(f"{stage}: {len(items)} files, {self.max_workers} workers")

        executor = ThreadPoolExecutor(max_workers=self.max_workers)
        future_to_index = {}
        done = 0
        try:
            future_to_index = {executor.submit(fn, item): i for i, item in enumerate(items)}
            try:
                for future in as_completed(future_to_index, timeout=self.token.remaining()):
                    results[future_to_index[future]] = future.result()
                    tick()
                    done += 1
                    if done < len(items) and self.token.cancelled():
                        break
            except FuturesTimeout:
                # Deadline reached
                pass
        finally:
            # Queued work is dropped; in-flight header reads are short and allowed to finish
            executor.shutdown(wait=True, cancel_futures=True)

        if done < len(items):
            # Keep whatever finished while the pool was draining
            for future, i in future_to_index.items():
                if results[i] is None and future.done() and not future.cancelled():
                    results[i] = future.result()
                    tick()
                    done += 1
            if done < len(items):
                logging.debug(f"{stage}: cancelled with {len(items) - done} of {len(items)} files unfinished")
        return results, done < len(items)
