from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta

import pytest

from photosweep.core.config import Settings
from photosweep.engine.calendar_keys import MonthKey
from photosweep.engine.cleanup import CleanupStage, CleanupStatus, execute_cleanup
from photosweep.engine.errors import CommitFailed, ContactSheetFailed, NoEligibleItems
from photosweep.engine.models import MediaItem
from photosweep.engine.scan import run_scan
from photosweep.engine.store import InMemoryMediaStore

NOW = datetime(2025, 1, 1, tzinfo=UTC)


def test_cleanup_saves_one_sheet_per_month_then_deletes_everything_eligible():
    store = _store()
    scan = run_scan(store, _settings(), now=NOW)
    stages: list[CleanupStage] = []

    outcome = asyncio.run(
        execute_cleanup(
            store,
            scan,
            keep_album_name="Keep",
            batch_size=2,
            on_stage=stages.append,
        )
    )

    assert outcome.status is CleanupStatus.COMPLETED
    assert outcome.deleted_count == 5
    assert outcome.sheets_saved == 2
    assert outcome.freed_bytes == scan.estimated_bytes
    assert stages == [CleanupStage.SAVING_KEEP, CleanupStage.DELETING]
    assert [len(batch) for batch in store.deleted_batches] == [2, 2, 1]
    assert store.fetch_by_ids(["kept"])
    months = sorted(month for month, _ in store.contact_sheets.values())
    assert months == [MonthKey(2022, 3), MonthKey(2022, 4)]
    assert set(store.album("Keep")) == {"kept", *store.contact_sheets}


def test_cleanup_without_representatives_skips_contact_sheets():
    store = _store()
    scan = run_scan(store, _settings(), now=NOW, generate_contact_sheet=False)

    outcome = asyncio.run(execute_cleanup(store, scan, keep_album_name="Keep", batch_size=10))

    assert outcome.sheets_saved == 0
    assert outcome.deleted_count == 5
    assert store.contact_sheets == {}


def test_declined_confirmation_stops_after_committed_batches():
    answers = iter([True, False])
    store = _store(confirm=lambda ids: next(answers))
    scan = run_scan(store, _settings(), now=NOW, generate_contact_sheet=False)

    outcome = asyncio.run(execute_cleanup(store, scan, keep_album_name="Keep", batch_size=2))

    assert outcome.status is CleanupStatus.CANCELLED
    assert outcome.deleted_count == 2
    assert outcome.freed_bytes == 0
    assert len(store.deleted_batches) == 1


def test_store_failure_raises_commit_failed():
    store = _store()
    store.fail_with = "library is read-only"
    scan = run_scan(store, _settings(), now=NOW, generate_contact_sheet=False)

    with pytest.raises(CommitFailed) as excinfo:
        asyncio.run(execute_cleanup(store, scan, keep_album_name="Keep", batch_size=2))

    assert excinfo.value.detail == "library is read-only"
    assert excinfo.value.committed_count == 0


def test_contact_sheet_failure_aborts_before_deleting(monkeypatch: pytest.MonkeyPatch):
    store = _store()
    scan = run_scan(store, _settings(), now=NOW)

    async def broken_sheet(month_key, item_ids):
        raise OSError("renderer unavailable")

    monkeypatch.setattr(store, "create_contact_sheet", broken_sheet)

    with pytest.raises(ContactSheetFailed, match="renderer unavailable"):
        asyncio.run(execute_cleanup(store, scan, keep_album_name="Keep", batch_size=2))
    assert store.deleted_batches == []


def test_nothing_to_delete_raises_no_eligible_items():
    store = InMemoryMediaStore([_item("kept", datetime(2022, 3, 1, tzinfo=UTC))], {"Keep": ["kept"]})
    scan = run_scan(store, _settings(), now=NOW)

    with pytest.raises(NoEligibleItems):
        asyncio.run(execute_cleanup(store, scan, keep_album_name="Keep", batch_size=2))


def test_months_already_saved_are_skipped():
    store = _store()
    scan = run_scan(store, _settings(), now=NOW)
    saved_months = {MonthKey(2022, 3)}

    outcome = asyncio.run(
        execute_cleanup(
            store,
            scan,
            keep_album_name="Keep",
            batch_size=10,
            saved_months=saved_months,
        )
    )

    assert outcome.sheets_saved == 1
    assert [month for month, _ in store.contact_sheets.values()] == [MonthKey(2022, 4)]
    assert saved_months == {MonthKey(2022, 3), MonthKey(2022, 4)}


def _settings() -> Settings:
    return Settings(_env_file=None, backup_grace_days=365)


def _store(**options) -> InMemoryMediaStore:
    march = datetime(2022, 3, 5, 10, 0, tzinfo=UTC)
    april = datetime(2022, 4, 7, 18, 0, tzinfo=UTC)
    items = [
        _item("m1", march),
        _item("m2", march + timedelta(minutes=5)),
        _item("kept", march + timedelta(minutes=7)),
        _item("m3", march + timedelta(hours=6)),
        _item("a1", april),
        _item("a2", april + timedelta(minutes=2)),
        _item("recent", datetime(2024, 10, 1, tzinfo=UTC)),
    ]
    return InMemoryMediaStore(items, {"Keep": ["kept"]}, **options)


def _item(item_id: str, create_time: datetime) -> MediaItem:
    return MediaItem(id=item_id, create_time=create_time, file_size=1000)
