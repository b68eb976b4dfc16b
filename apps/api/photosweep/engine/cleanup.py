from __future__ import annotations

import logging
from collections.abc import Callable, MutableSet
from dataclasses import dataclass
from enum import StrEnum

from photosweep.engine.calendar_keys import MonthKey
from photosweep.engine.errors import CommitFailed, ContactSheetFailed, NoEligibleItems
from photosweep.engine.scan import Scan
from photosweep.engine.store import CommitStatus, MediaStore

logger = logging.getLogger(__name__)


class CleanupStatus(StrEnum):
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class CleanupStage(StrEnum):
    SAVING_KEEP = "saving_keep"
    DELETING = "deleting"


StageCallback = Callable[[CleanupStage], None]


@dataclass(frozen=True)
class CleanupOutcome:
    status: CleanupStatus
    deleted_count: int
    freed_bytes: int
    sheets_saved: int


async def save_contact_sheets(
    store: MediaStore,
    scan: Scan,
    album_name: str,
    saved_months: MutableSet[MonthKey] | None = None,
) -> int:
    """Save one contact sheet per month into the keep album.

    Months already in ``saved_months`` are skipped and each newly saved month
    is added to it, so a retried cleanup does not duplicate sheets.
    """
    if saved_months is None:
        saved_months = set()
    saved = 0
    for month_key, item_ids in scan.representatives_by_month.items():
        if month_key in saved_months:
            logger.info("Contact sheet for %s already saved; skipping", month_key)
            continue
        try:
            sheet_id = await store.create_contact_sheet(month_key, item_ids)
            await store.add_to_album(album_name, [sheet_id])
        except Exception as exc:
            logger.exception("Contact sheet for %s could not be saved", month_key)
            raise ContactSheetFailed(str(month_key), str(exc)) from exc
        saved_months.add(month_key)
        saved += 1
    logger.info("Saved %s contact sheets to album '%s'", saved, album_name)
    return saved


async def delete_candidates(store: MediaStore, scan: Scan, batch_size: int) -> tuple[bool, int]:
    """Delete every eligible item, one confirmed commit per batch.

    Returns ``(finished, committed_count)``; ``finished`` is False when the
    confirmation for a batch was declined. Batches already committed stay
    committed.
    """
    committed = 0
    batches = scan.view.iter_id_batches(batch_size)
    try:
        for batch in batches:
            outcome = await store.delete_items(batch)
            if outcome.status is CommitStatus.USER_CANCELLED:
                logger.info("Deletion cancelled after %s committed items", committed)
                return False, committed
            if outcome.status is CommitStatus.FAILED:
                detail = outcome.detail or "unknown store error"
                logger.error("Deletion batch failed after %s committed items: %s", committed, detail)
                raise CommitFailed(detail, committed_count=committed)
            committed += len(batch)
            logger.info("Committed deletion batch of %s items (%s total)", len(batch), committed)
    finally:
        batches.close()
    return True, committed


async def execute_cleanup(
    store: MediaStore,
    scan: Scan,
    *,
    keep_album_name: str,
    batch_size: int,
    on_stage: StageCallback | None = None,
    saved_months: MutableSet[MonthKey] | None = None,
) -> CleanupOutcome:
    if scan.eligible_count == 0:
        raise NoEligibleItems()

    sheets_saved = 0
    if scan.representatives_by_day:
        if on_stage is not None:
            on_stage(CleanupStage.SAVING_KEEP)
        sheets_saved = await save_contact_sheets(store, scan, keep_album_name, saved_months)

    if on_stage is not None:
        on_stage(CleanupStage.DELETING)
    finished, committed = await delete_candidates(store, scan, batch_size)
    if not finished:
        return CleanupOutcome(
            status=CleanupStatus.CANCELLED,
            deleted_count=committed,
            freed_bytes=0,
            sheets_saved=sheets_saved,
        )
    return CleanupOutcome(
        status=CleanupStatus.COMPLETED,
        deleted_count=committed,
        freed_bytes=scan.estimated_bytes,
        sheets_saved=sheets_saved,
    )
