"""Status transition engine.

Each sweep promotes every UPLOADED item to PROCESSING, then completes
PROCESSING items whose required duration has elapsed, choosing DONE or
FAILED with the configured failure probability.

Per-item timing (start time and required duration) lives here, not on the
item record, and is discarded once the item leaves PROCESSING.
"""

import logging
import random
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Set

from photoflow.items.models import ItemState
from photoflow.items.service import ItemService

logger = logging.getLogger(__name__)


@dataclass
class _Timing:
    started_at: float  # clock seconds
    required_ms: float


@dataclass
class SweepReport:
    """What a single sweep did."""
    started: int = 0
    completed: int = 0
    failed: int = 0
    pruned: int = 0
    deferred: int = 0


class TransitionEngine:
    """Advances items through UPLOADED -> PROCESSING -> DONE/FAILED.

    ``clock`` returns monotonic seconds and ``rng`` supplies both the
    duration draws and the failure draws; tests replace both.

    By default the required duration is drawn once, when the item enters
    PROCESSING, so completion always lands in
    ``[min_duration_ms, min_duration_ms + max_extra_ms)`` after the start.
    With ``resample_required_duration`` a fresh duration is drawn on every
    check instead.
    """

    def __init__(
        self,
        service: ItemService,
        min_duration_ms: float = 3000,
        max_extra_ms: float = 5000,
        failure_probability: float = 0.0,
        resample_required_duration: bool = False,
        clock: Callable[[], float] = time.monotonic,
        rng: Optional[random.Random] = None,
    ):
        if not 0.0 <= failure_probability <= 1.0:
            raise ValueError("failure_probability must be between 0 and 1")
        if min_duration_ms < 0 or max_extra_ms < 0:
            raise ValueError("durations must not be negative")

        self._service = service
        self._min_duration_ms = min_duration_ms
        self._max_extra_ms = max_extra_ms
        self._failure_probability = failure_probability
        self._resample = resample_required_duration
        self._clock = clock
        self._rng = rng or random.Random()

        self._timings: Dict[str, _Timing] = {}
        self._lock = threading.Lock()

        service.add_delete_hook(self.forget)

    def sweep(self) -> SweepReport:
        """Run one promote pass followed by one complete pass."""
        report = SweepReport()
        just_started = self._start_uploaded(report)
        self._finish_processing(report, skip=just_started)
        if report.started or report.completed or report.failed or report.pruned:
            logger.debug(
                "Sweep: started=%d completed=%d failed=%d pruned=%d deferred=%d",
                report.started, report.completed, report.failed,
                report.pruned, report.deferred,
            )
        return report

    def forget(self, item_id: str) -> None:
        """Drop any timing kept for ``item_id``."""
        with self._lock:
            self._timings.pop(item_id, None)

    def is_tracking(self, item_id: str) -> bool:
        with self._lock:
            return item_id in self._timings

    def tracked_count(self) -> int:
        with self._lock:
            return len(self._timings)

    # ------------------------------------------------------------------

    def _draw_required_ms(self) -> float:
        return self._min_duration_ms + self._rng.random() * self._max_extra_ms

    def _track(self, item_id: str) -> None:
        timing = _Timing(started_at=self._clock(), required_ms=self._draw_required_ms())
        with self._lock:
            self._timings[item_id] = timing

    def _start_uploaded(self, report: SweepReport) -> Set[str]:
        started = set()
        for item in self._service.list_by_state(ItemState.UPLOADED):
            if self._service.advance(item.id, ItemState.UPLOADED, ItemState.PROCESSING) is None:
                # deleted or overridden since it was listed
                continue
            logger.info("Starting processing for item: %s (%s)", item.id, item.label)
            self._track(item.id)
            started.add(item.id)
            report.started += 1
        return started

    def _finish_processing(self, report: SweepReport, skip: Set[str]) -> None:
        processing = self._service.list_by_state(ItemState.PROCESSING)
        processing_ids = {item.id for item in processing}

        with self._lock:
            stale = [item_id for item_id in self._timings if item_id not in processing_ids]
            for item_id in stale:
                del self._timings[item_id]
        report.pruned += len(stale)

        for item in processing:
            if item.id in skip:
                continue

            with self._lock:
                timing = self._timings.get(item.id)
            if timing is None:
                # no start recorded (e.g. engine restarted); start the clock now
                if not self._service.exists(item.id):
                    continue
                self._track(item.id)
                report.deferred += 1
                continue

            elapsed_ms = (self._clock() - timing.started_at) * 1000.0
            required_ms = self._draw_required_ms() if self._resample else timing.required_ms
            if elapsed_ms < required_ms:
                continue

            should_fail = self._rng.random() < self._failure_probability
            new_state = ItemState.FAILED if should_fail else ItemState.DONE
            self.forget(item.id)
            if self._service.advance(item.id, ItemState.PROCESSING, new_state) is None:
                continue
            logger.info("Completed processing for item: %s (%s) -> %s",
                        item.id, item.label, new_state.value)
            if should_fail:
                report.failed += 1
            else:
                report.completed += 1
