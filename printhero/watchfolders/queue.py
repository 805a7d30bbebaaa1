"""
Bounded work queue between folder watchers and the file processor.

Watchers only enqueue. Worker threads pull DetectedFile items, wait until
each item's ``ready_at`` moment, and hand it to the processor. A full queue
blocks the producer, so bursts apply back-pressure and nothing is dropped.
"""

import logging
import queue
import threading
import time
from datetime import datetime
from typing import List, Optional

from .models import DetectedFile
from .processor import FileProcessor

logger = logging.getLogger(__name__)


DEFAULT_MAX_QUEUE_SIZE = 64
DEFAULT_WORKER_COUNT = 2

# Placed once per worker on shutdown, behind every queued item
_STOP = object()


class ProcessingQueue:
    """
    Fixed pool of worker threads draining a bounded FIFO queue.

    No ordering is guaranteed across files once more than one worker runs.
    ``shutdown()`` refuses new items, then lets everything already queued
    and in flight complete before the workers exit.
    """

    def __init__(
        self,
        processor: FileProcessor,
        max_size: int = DEFAULT_MAX_QUEUE_SIZE,
        worker_count: int = DEFAULT_WORKER_COUNT,
    ):
        if worker_count < 1:
            raise ValueError(f"worker_count must be at least 1, got {worker_count}")

        self.processor = processor
        self.worker_count = worker_count
        self._queue: "queue.Queue" = queue.Queue(maxsize=max_size)
        self._workers: List[threading.Thread] = []
        self._accepting = False
        self._lock = threading.Lock()
        self._processed = 0

    @property
    def is_accepting(self) -> bool:
        with self._lock:
            return self._accepting

    @property
    def processed_count(self) -> int:
        """Number of items handed to the processor so far."""
        with self._lock:
            return self._processed

    def pending(self) -> int:
        """Approximate number of items waiting for a worker."""
        return self._queue.qsize()

    def start(self) -> None:
        """Start the worker threads. Calling start twice is a no-op."""
        with self._lock:
            if self._accepting:
                return
            self._accepting = True

        for index in range(self.worker_count):
            worker = threading.Thread(
                target=self._worker_loop,
                daemon=True,
                name=f"printhero-worker-{index + 1}",
            )
            worker.start()
            self._workers.append(worker)

        logger.debug(f"Processing queue started with {self.worker_count} worker(s)")

    def put(self, detected: DetectedFile) -> bool:
        """
        Enqueue a detected file, blocking while the queue is full.

        Returns:
            True if queued, False if the queue has been shut down
        """
        if not self.is_accepting:
            logger.debug(f"Queue closed, not accepting: {detected.path}")
            return False

        self._queue.put(detected)
        return True

    def shutdown(self, timeout: Optional[float] = None) -> None:
        """
        Stop accepting work and wait for queued and in-flight files to finish.

        Args:
            timeout: Per-worker join timeout in seconds (None waits forever)
        """
        with self._lock:
            if not self._accepting:
                return
            self._accepting = False

        for _ in self._workers:
            self._queue.put(_STOP)

        for worker in self._workers:
            worker.join(timeout=timeout)
            if worker.is_alive():
                logger.warning(f"Worker {worker.name} did not finish within {timeout}s")

        self._workers = []
        logger.debug("Processing queue shut down")

    def _worker_loop(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                self._wait_until_ready(item)
                self.processor.process(item)
                with self._lock:
                    self._processed += 1
            except Exception:
                # process() publishes its own failures; this guards the worker
                logger.exception(f"Worker failed on {getattr(item, 'path', item)}")
            finally:
                self._queue.task_done()

    @staticmethod
    def _wait_until_ready(detected: DetectedFile) -> None:
        if detected.ready_at is None:
            return
        delay = (detected.ready_at - datetime.now()).total_seconds()
        if delay > 0:
            time.sleep(delay)
