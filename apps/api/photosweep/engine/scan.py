from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from uuid import uuid4

from photosweep.core.config import Settings
from photosweep.engine.calendar_keys import CalendarKeys, DayKey, MonthKey
from photosweep.engine.candidates import DeletionCandidatesView
from photosweep.engine.classifier import classify, count_eligible
from photosweep.engine.errors import AuthorizationDenied
from photosweep.engine.models import MediaItem
from photosweep.engine.representatives import group_by_month, months_by_key
from photosweep.engine.schemas import (
    DayRepresentative,
    MediaItemSummary,
    MonthSheet,
    ScanResult,
    StageMetrics,
)
from photosweep.engine.sizing import estimate_total_size, format_bytes
from photosweep.engine.store import MediaStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Scan:
    run_id: str
    cutoff: datetime
    view: DeletionCandidatesView
    total_count: int
    representatives_by_day: dict[DayKey, str]
    preview: list[MediaItem]
    estimated_bytes: int
    timings_ms: dict[str, float]
    counts: dict[str, int]

    @property
    def eligible_count(self) -> int:
        return self.view.eligible_count

    @property
    def representatives_by_month(self) -> dict[MonthKey, list[str]]:
        return group_by_month(self.representatives_by_day)


def run_scan(
    store: MediaStore,
    settings: Settings,
    *,
    now: datetime | None = None,
    older_than_days: int | None = None,
    generate_contact_sheet: bool | None = None,
    protected_album_names: Sequence[str] | None = None,
) -> Scan:
    status = store.authorization_status()
    if not status.grants_access:
        raise AuthorizationDenied(status.value)

    run_id = uuid4().hex
    days = settings.backup_grace_days if older_than_days is None else older_than_days
    sample_representatives = (
        settings.generate_contact_sheet
        if generate_contact_sheet is None
        else generate_contact_sheet
    )
    album_names = (
        settings.protected_album_names
        if protected_album_names is None
        else list(protected_album_names)
    )
    cutoff = (now or datetime.now(UTC)) - timedelta(days=days)
    timings: dict[str, float] = {}

    start = time.perf_counter()
    source = store.query_images(cutoff)
    protected = store.protected_ids(album_names)
    timings["query_ms"] = _elapsed_ms(start)

    start = time.perf_counter()
    representatives: dict[DayKey, str] = {}
    if sample_representatives:
        classification = classify(
            source,
            protected,
            cluster_threshold=timedelta(minutes=settings.cluster_threshold_minutes),
            calendar=CalendarKeys(settings.calendar_timezone),
        )
        eligible_count = classification.eligible_count
        representatives = classification.representatives_by_day
    else:
        eligible_count = count_eligible(source, protected)
    timings["classification_ms"] = _elapsed_ms(start)

    view = DeletionCandidatesView(source, protected, eligible_count)

    start = time.perf_counter()
    preview = view.prefix(settings.preview_limit)
    timings["preview_ms"] = _elapsed_ms(start)

    start = time.perf_counter()
    estimated_bytes = estimate_total_size(view, settings.size_sample_size)
    timings["size_estimate_ms"] = _elapsed_ms(start)

    total_count = len(source)
    counts = {
        "total_items": total_count,
        "protected_ids": len(protected),
        "eligible_items": eligible_count,
        "excluded_items": total_count - eligible_count,
        "representatives": len(representatives),
        "months": len({day_key.month_key for day_key in representatives}),
        "preview_items": len(preview),
    }
    logger.info(
        "Scan %s: cutoff=%s total=%s eligible=%s representatives=%s estimated=%s",
        run_id,
        cutoff.isoformat(),
        total_count,
        eligible_count,
        len(representatives),
        format_bytes(estimated_bytes),
    )
    if logger.isEnabledFor(logging.DEBUG):
        for month_key, entries in months_by_key(representatives).items():
            logger.debug("Month %s: %s days with photos", month_key, len(entries))

    return Scan(
        run_id=run_id,
        cutoff=cutoff,
        view=view,
        total_count=total_count,
        representatives_by_day=representatives,
        preview=preview,
        estimated_bytes=estimated_bytes,
        timings_ms=timings,
        counts=counts,
    )


def build_scan_result(scan: Scan) -> ScanResult:
    months = [
        MonthSheet(
            monthKey=str(month_key),
            representatives=[
                DayRepresentative(dayKey=str(day_key), itemId=item_id)
                for day_key, item_id in entries
            ],
        )
        for month_key, entries in months_by_key(scan.representatives_by_day).items()
    ]
    return ScanResult(
        runId=scan.run_id,
        cutoff=scan.cutoff,
        totalCount=scan.total_count,
        eligibleCount=scan.eligible_count,
        excludedCount=scan.total_count - scan.eligible_count,
        months=months,
        preview=[
            MediaItemSummary(id=item.id, createTime=item.create_time, fileSize=item.file_size)
            for item in scan.preview
        ],
        estimatedBytes=scan.estimated_bytes,
        estimatedSize=format_bytes(scan.estimated_bytes),
        stageMetrics=StageMetrics(timingsMs=scan.timings_ms, counts=scan.counts),
    )


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)
