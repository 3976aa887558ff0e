"""Bounded-parallel execution of per-module tasks."""

import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Callable, Iterable, List, TypeVar

T = TypeVar("T")


class AdmissionGate:
    """Counting gate limiting the number of tasks in flight.

    The driving thread blocks in acquire() while ``width`` tasks are running;
    each task releases its slot when it finishes, whatever the outcome.
    """

    def __init__(self, width: int):
        if width < 1:
            raise ValueError(f"Admission gate width must be at least 1, got {width}")
        self.width = width
        self._semaphore = threading.BoundedSemaphore(width)

    def acquire(self) -> None:
        self._semaphore.acquire()

    def release(self) -> None:
        self._semaphore.release()


def run_bounded(items: Iterable[T], task: Callable[[T], None], workers: int) -> None:
    """Run task(item) for every item with at most ``workers`` running at once.

    Returns only after every submitted task has finished. Tasks are expected
    to handle their own per-item errors; anything they let escape is
    re-raised here after the join.
    """
    gate = AdmissionGate(workers)

    def _guarded(item: T) -> None:
        try:
            task(item)
        finally:
            gate.release()

    futures: List[Future] = []
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="api-scanner") as executor:
        for item in items:
            gate.acquire()
            try:
                futures.append(executor.submit(_guarded, item))
            except BaseException:
                gate.release()
                raise
        wait(futures)

    for future in futures:
        future.result()
