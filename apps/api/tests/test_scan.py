from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from photosweep.core.config import Settings
from photosweep.engine.calendar_keys import MonthKey
from photosweep.engine.errors import AuthorizationDenied
from photosweep.engine.models import MediaItem
from photosweep.engine.scan import build_scan_result, run_scan
from photosweep.engine.store import AuthorizationStatus, InMemoryMediaStore

NOW = datetime(2025, 1, 1, tzinfo=UTC)


def test_scan_uses_grace_days_for_cutoff():
    store = _store()

    scan = run_scan(store, Settings(_env_file=None, backup_grace_days=365), now=NOW)

    assert scan.cutoff == NOW - timedelta(days=365)
    assert scan.total_count == 3
    assert scan.eligible_count == 2
    assert scan.representatives_by_month == {MonthKey(2022, 7): ["burst-1"]}
    assert set(scan.timings_ms) == {
        "query_ms",
        "classification_ms",
        "preview_ms",
        "size_estimate_ms",
    }


def test_count_only_scan_skips_representatives():
    scan = run_scan(
        _store(),
        Settings(_env_file=None, generate_contact_sheet=False),
        now=NOW,
    )

    assert scan.eligible_count == 2
    assert scan.representatives_by_day == {}
    assert scan.counts["representatives"] == 0


def test_scan_respects_cluster_threshold_setting():
    scan = run_scan(
        _store(),
        Settings(_env_file=None, cluster_threshold_minutes=1, protected_album_names=[]),
        now=NOW,
    )

    assert scan.representatives_by_month == {MonthKey(2022, 7): ["burst-1"]}
    assert scan.eligible_count == 3


def test_limited_access_is_enough_to_scan():
    store = _store(authorization=AuthorizationStatus.LIMITED)

    assert run_scan(store, Settings(_env_file=None), now=NOW).eligible_count == 2


def test_scan_without_access_raises():
    store = _store(authorization=AuthorizationStatus.NOT_DETERMINED)

    with pytest.raises(AuthorizationDenied):
        run_scan(store, Settings(_env_file=None), now=NOW)


def test_build_scan_result_serializes_with_aliases():
    scan = run_scan(_store(), Settings(_env_file=None), now=NOW)

    payload = build_scan_result(scan).model_dump(mode="json", by_alias=True)

    assert payload["runId"] == scan.run_id
    assert payload["months"][0]["monthKey"] == "2022-07"
    assert payload["preview"][0] == {
        "id": "burst-1",
        "createTime": "2022-07-04T10:00:00Z",
        "fileSize": 500,
    }


def _store(**options) -> InMemoryMediaStore:
    start = datetime(2022, 7, 4, 10, 0, tzinfo=UTC)
    items = [
        MediaItem(id="burst-1", create_time=start, file_size=500),
        MediaItem(id="keep-me", create_time=start + timedelta(minutes=1), file_size=500),
        MediaItem(id="burst-2", create_time=start + timedelta(minutes=2), file_size=500),
    ]
    return InMemoryMediaStore(items, {"Keep": ["keep-me"]}, **options)
