from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path

from photosweep.engine import normalizer


def test_normalize_library_payload_extracts_nested_fields():
    payload = {
        "items": [
            {
                "mediaFile": {
                    "id": "abc",
                    "createTime": "2024-01-01T10:00:00Z",
                    "mimeType": "image/png",
                    "mediaFileMetadata": {"fileSize": "2048"},
                }
            },
            {"id": "fav", "createTime": "2024-01-02T10:00:00+09:00", "isFavorite": True},
            {"id": "clip", "createTime": "2024-01-03T10:00:00Z", "mediaType": "video/mp4"},
            {"createTime": "2024-01-03T10:00:00Z"},
            "not-a-dict",
        ],
        "albums": {"Keep": ["fav", "ghost"]},
    }

    items, albums = normalizer.normalize_library_payload(payload)

    assert [item.id for item in items] == ["abc", "fav", "clip"]
    assert items[0].create_time == datetime(2024, 1, 1, 10, 0, tzinfo=UTC)
    assert items[0].file_size == 2048
    assert items[0].kind == "image"
    assert items[1].is_favorite is True
    assert items[1].create_time == datetime(2024, 1, 2, 1, 0, tzinfo=UTC)
    assert items[2].kind == "video"
    assert albums == {"Keep": ["fav"]}


def test_unparseable_create_time_becomes_none():
    items, _ = normalizer.normalize_library_payload(
        {"items": [{"id": "a", "createTime": "yesterday-ish"}, {"id": "b"}]}
    )

    assert [item.create_time for item in items] == [None, None]


def test_fractional_json_file_size_is_truncated():
    items, _ = normalizer.normalize_library_payload(
        {"items": [{"id": "a", "fileSize": 2048.0}, {"id": "b", "fileSize": "big"}]}
    )

    assert [item.file_size for item in items] == [2048, None]


def test_normalize_library_selection_reports_duplicates():
    selection = normalizer.normalize_library_selection(
        [
            {"id": "a", "createTime": "2024-01-01T00:00:00Z"},
            {"id": "a", "createTime": "2024-01-02T00:00:00Z"},
            42,
        ]
    )

    assert selection["summaryCounts"]["accepted"] == 1
    assert selection["summaryCounts"]["duplicates"] == 1
    assert selection["summaryCounts"]["skipped"] == 2
    assert [warning["code"] for warning in selection["warnings"]] == ["DUPLICATE_ID"]


def test_normalize_library_selection_ignores_non_list_input():
    selection = normalizer.normalize_library_selection({"id": "a"})

    assert selection["summaryCounts"]["input"] == 0


def test_load_library_builds_sorted_store(tmp_path: Path):
    manifest = tmp_path / "library.json"
    manifest.write_text(
        json.dumps(
            {
                "items": [
                    {"id": "late", "createTime": "2021-06-01T00:00:00Z", "fileSize": 10},
                    {"id": "early", "createTime": "2021-01-01T00:00:00Z", "fileSize": 20},
                ],
                "albums": {"Keep": ["late"]},
            }
        ),
        encoding="utf-8",
    )

    store = normalizer.load_library(manifest)

    result = store.query_images(datetime(2022, 1, 1, tzinfo=UTC))
    assert [item.id for item in result] == ["early", "late"]
    assert store.protected_ids(["Keep"]) == frozenset({"late"})
