from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import datetime, timedelta

from photosweep.engine.calendar_keys import CalendarKeys, DayKey, MonthKey
from photosweep.engine.clusters import ClusterTracker
from photosweep.engine.models import MediaItem

logger = logging.getLogger(__name__)

DEFAULT_CLUSTER_THRESHOLD = timedelta(minutes=30)

DayTrackers = dict[DayKey, ClusterTracker]


@dataclass(frozen=True)
class Classification:
    eligible_count: int
    representatives_by_day: dict[DayKey, str]

    @property
    def representative_ids(self) -> frozenset[str]:
        return frozenset(self.representatives_by_day.values())


def classify(
    items: Iterable[MediaItem],
    protected_ids: frozenset[str] | set[str],
    *,
    cluster_threshold: timedelta = DEFAULT_CLUSTER_THRESHOLD,
    calendar: CalendarKeys | None = None,
) -> Classification:
    """Count eligible items and pick one representative per day in one pass.

    ``items`` must already be sorted ascending by ``create_time``. A day's
    representative is the first item of its densest burst, where a burst is a
    run of same-day items separated by at most ``cluster_threshold``.
    """
    calendar = calendar or CalendarKeys()
    trackers: dict[MonthKey, DayTrackers] = {}
    eligible_count = 0
    previous_day: DayKey | None = None
    previous_time: datetime | None = None

    for item in items:
        if item.id in protected_ids:
            continue
        eligible_count += 1
        if item.create_time is None:
            continue

        day_key = calendar.day_key(item.create_time)
        tracker = _get_or_create_tracker(trackers, day_key)

        same_day = day_key == previous_day
        within_window = (
            same_day
            and previous_time is not None
            and item.create_time - previous_time <= cluster_threshold
        )
        if within_window:
            tracker.extend(item.create_time)
        else:
            if same_day:
                tracker.finalize()
            tracker.start(item.id, item.create_time)

        previous_day = day_key
        previous_time = item.create_time

    for month_trackers in trackers.values():
        for tracker in month_trackers.values():
            tracker.finalize()

    representatives = _collect_representatives(trackers)
    logger.debug(
        "Classified %s eligible items into %s days across %s months",
        eligible_count,
        len(representatives),
        len(trackers),
    )
    return Classification(
        eligible_count=eligible_count,
        representatives_by_day=representatives,
    )


def count_eligible(items: Iterable[MediaItem], protected_ids: frozenset[str] | set[str]) -> int:
    return sum(1 for _ in iter_eligible(items, protected_ids))


def iter_eligible(
    items: Iterable[MediaItem], protected_ids: frozenset[str] | set[str]
) -> Iterator[MediaItem]:
    for item in items:
        if item.id not in protected_ids:
            yield item


def _get_or_create_tracker(
    trackers: dict[MonthKey, DayTrackers],
    day_key: DayKey,
) -> ClusterTracker:
    month_key = day_key.month_key
    month_trackers = trackers.get(month_key)
    if month_trackers is None:
        month_trackers = {}
        trackers[month_key] = month_trackers
    tracker = month_trackers.get(day_key)
    if tracker is None:
        tracker = ClusterTracker()
        month_trackers[day_key] = tracker
    return tracker


def _collect_representatives(trackers: dict[MonthKey, DayTrackers]) -> dict[DayKey, str]:
    representatives: dict[DayKey, str] = {}
    for month_key in sorted(trackers):
        month_trackers = trackers[month_key]
        for day_key in sorted(month_trackers):
            representative_id = month_trackers[day_key].representative_id
            if representative_id:
                representatives[day_key] = representative_id
    return representatives
