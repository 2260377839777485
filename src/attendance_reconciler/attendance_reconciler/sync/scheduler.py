from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler

from ..core.constants import DEFAULT_SYNC_INTERVAL_MINUTES, DEFAULT_SYNC_MAX_WORKERS
from ..core.enums import SyncStatus
from ..facilities.repository import FacilityRepository
from .service import FacilitySyncResult, FacilitySyncService

logger = logging.getLogger(__name__)

JOB_ID = "facility-sync"


class SchedulerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"


@dataclass(frozen=True)
class SyncRunSummary:
    started_at: datetime
    finished_at: Optional[datetime] = None
    results: tuple[FacilitySyncResult, ...] = field(default_factory=tuple)
    skipped: bool = False

    def count(self, status: SyncStatus) -> int:
        return sum(1 for r in self.results if r.status == status)


class FacilitySyncScheduler:
    """Periodic fan-out of facility syncs; at most one run at a time.

    A tick that finds a run in progress is skipped, not queued.
    """

    def __init__(
        self,
        facilities: FacilityRepository,
        sync_service: FacilitySyncService,
        *,
        interval_minutes: int = DEFAULT_SYNC_INTERVAL_MINUTES,
        initial_delay_seconds: int = 10,
        max_workers: int = DEFAULT_SYNC_MAX_WORKERS,
        scheduler: Optional[BackgroundScheduler] = None,
    ):
        self._facilities = facilities
        self._sync = sync_service
        self._interval = int(interval_minutes)
        self._initial_delay = int(initial_delay_seconds)
        self._max_workers = max(1, int(max_workers))
        self._scheduler = scheduler
        self._run_lock = threading.Lock()

    @property
    def state(self) -> SchedulerState:
        return SchedulerState.RUNNING if self._run_lock.locked() else SchedulerState.IDLE

    def run_once(self) -> SyncRunSummary:
        started = datetime.now(timezone.utc)
        if not self._run_lock.acquire(blocking=False):
            logger.info("Facility sync already running, skipping this tick")
            return SyncRunSummary(started_at=started, skipped=True)

        try:
            facilities = list(self._facilities.list_syncable())
            logger.info("Starting facility sync for %d facilities", len(facilities))
            results: list[FacilitySyncResult] = []

            if facilities:
                with ThreadPoolExecutor(max_workers=min(self._max_workers, len(facilities))) as executor:
                    future_to_facility = {executor.submit(self._sync.sync_facility, f): f for f in facilities}
                    for future in as_completed(future_to_facility):
                        facility = future_to_facility[future]
                        try:
                            results.append(future.result())
                        except Exception as e:
                            logger.exception("Facility sync for %s crashed", facility.name)
                            results.append(
                                FacilitySyncResult(facility.facility_id, facility.name, SyncStatus.FAILED, error=str(e))
                            )

            results.sort(key=lambda r: r.facility_id)
            summary = SyncRunSummary(started_at=started, finished_at=datetime.now(timezone.utc), results=tuple(results))
            logger.info(
                "Facility sync finished: %d succeeded, %d failed, %d skipped",
                summary.count(SyncStatus.SUCCESS),
                summary.count(SyncStatus.FAILED),
                summary.count(SyncStatus.SKIPPED),
            )
            return summary
        finally:
            self._run_lock.release()

    def start(self) -> None:
        if self._scheduler is None:
            self._scheduler = BackgroundScheduler(timezone="UTC")
        self._scheduler.add_job(
            self.run_once,
            "interval",
            minutes=self._interval,
            id=JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            next_run_time=datetime.now(timezone.utc) + timedelta(seconds=self._initial_delay),
        )
        if not self._scheduler.running:
            self._scheduler.start()
        logger.info("Facility sync scheduled every %d minutes", self._interval)

    def shutdown(self) -> None:
        if self._scheduler is not None and self._scheduler.running:
            self._scheduler.shutdown(wait=False)
