from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from photosweep.engine.models import IMAGE_KIND, VIDEO_KIND, MediaItem
from photosweep.engine.store import InMemoryMediaStore

logger = logging.getLogger(__name__)

_KIND_BY_PREFIX = {"image": IMAGE_KIND, "video": VIDEO_KIND}


def load_library(path: str | Path, **store_options: Any) -> InMemoryMediaStore:
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        raise ValueError(f"Library manifest {path} must contain a JSON object.")
    items, albums = normalize_library_payload(payload)
    return InMemoryMediaStore(items, albums, **store_options)


def normalize_library_payload(
    payload: dict[str, Any],
) -> tuple[list[MediaItem], dict[str, list[str]]]:
    raw_items = _extract_items(payload)
    selection = normalize_library_selection(raw_items)
    for warning in selection["warnings"]:
        logger.warning("%s (%s occurrences)", warning["message"], warning["count"])

    items = [
        MediaItem(
            id=entry["id"],
            create_time=_parse_datetime(entry["createTime"]),
            is_favorite=entry["isFavorite"],
            kind=entry["kind"],
            file_size=_coerce_int(entry["fileSize"]),
        )
        for entry in selection["acceptedItems"]
    ]
    known_ids = {item.id for item in items}
    albums = {
        name: [item_id for item_id in members if item_id in known_ids]
        for name, members in _extract_albums(payload).items()
    }
    logger.info(
        "Loaded library manifest: %s items accepted, %s skipped, %s albums",
        selection["summaryCounts"]["accepted"],
        selection["summaryCounts"]["skipped"],
        len(albums),
    )
    return items, albums


def normalize_library_selection(items: Iterable[Any]) -> dict[str, Any]:
    accepted: list[dict[str, Any]] = []
    skipped: list[dict[str, Any]] = []
    warnings: dict[str, dict[str, Any]] = {}
    summary_counts = {
        "input": 0,
        "accepted": 0,
        "skipped": 0,
        "duplicates": 0,
        "untimed": 0,
    }
    seen_ids: set[str] = set()

    iterable_items: Iterable[Any]
    if isinstance(items, dict) or isinstance(items, (str, bytes)):
        iterable_items = []
    else:
        iterable_items = items

    for item in iterable_items:
        summary_counts["input"] += 1
        if not isinstance(item, dict):
            skipped.append(
                {
                    "reasonCode": "MALFORMED_ITEM",
                    "message": "Library item is not an object.",
                    "item": item,
                }
            )
            continue

        item_id = _get_first_value(item, ("id",), ("mediaFile", "id"))
        if not item_id:
            skipped.append(
                {
                    "reasonCode": "MISSING_FIELDS",
                    "message": "Library item is missing an id.",
                    "item": item,
                }
            )
            continue

        if item_id in seen_ids:
            _add_warning(
                warnings,
                "DUPLICATE_ID",
                "Duplicate library item id detected; keeping first occurrence.",
            )
            skipped.append(
                {
                    "reasonCode": "DUPLICATE_ID",
                    "message": "Duplicate library item id detected.",
                    "item": item,
                }
            )
            summary_counts["duplicates"] += 1
            continue
        seen_ids.add(item_id)

        create_time_raw = _get_first_value(
            item,
            ("createTime",),
            ("mediaFile", "createTime"),
            ("mediaFile", "mediaFileMetadata", "creationTime"),
        )
        if create_time_raw is None or _parse_datetime(create_time_raw) is None:
            _add_warning(
                warnings,
                "MISSING_CREATE_TIME",
                "Library item has no usable createTime; it will not match age queries.",
            )
            summary_counts["untimed"] += 1

        accepted.append(
            {
                "id": item_id,
                "createTime": create_time_raw,
                "isFavorite": _coerce_bool(
                    _get_first_value(item, ("isFavorite",), ("mediaFile", "isFavorite"))
                ),
                "kind": _media_kind(
                    _get_first_value(
                        item,
                        ("mediaType",),
                        ("mimeType",),
                        ("mediaFile", "mimeType"),
                    )
                ),
                "fileSize": _get_first_value(
                    item,
                    ("fileSize",),
                    ("mediaFile", "fileSize"),
                    ("mediaFile", "mediaFileMetadata", "fileSize"),
                ),
            }
        )

    summary_counts["accepted"] = len(accepted)
    summary_counts["skipped"] = len(skipped)

    return {
        "acceptedItems": accepted,
        "skippedItems": skipped,
        "warnings": list(warnings.values()),
        "summaryCounts": summary_counts,
    }


def _extract_items(payload: dict[str, Any]) -> list[Any]:
    items = payload.get("items") or payload.get("mediaItems") or payload.get("media_items")
    if isinstance(items, list):
        return items
    return []


def _extract_albums(payload: dict[str, Any]) -> dict[str, list[str]]:
    albums = payload.get("albums")
    if not isinstance(albums, dict):
        return {}
    return {
        str(name): [str(item_id) for item_id in members]
        for name, members in albums.items()
        if isinstance(members, list)
    }


def _get_first_value(item: dict[str, Any], *paths: tuple[str, ...]) -> str | None:
    for path in paths:
        cursor: Any = item
        for key in path:
            if not isinstance(cursor, dict) or key not in cursor:
                cursor = None
                break
            cursor = cursor[key]
        if cursor is not None:
            return str(cursor)
    return None


def _parse_datetime(value: str | None) -> datetime | None:
    if value is None:
        return None
    cleaned = value.replace("Z", "+00:00")
    try:
        parsed = datetime.fromisoformat(cleaned)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def _coerce_int(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(float(value))
    except (ValueError, OverflowError):
        return None


def _coerce_bool(value: str | None) -> bool:
    if value is None:
        return False
    return value.strip().lower() in {"true", "1", "yes"}


def _media_kind(value: str | None) -> str:
    if not value:
        return IMAGE_KIND
    prefix = value.lower().split("/", 1)[0]
    return _KIND_BY_PREFIX.get(prefix, prefix)


def _add_warning(
    warnings: dict[str, dict[str, Any]], code: str, message: str, count: int = 1
) -> None:
    if code in warnings:
        warnings[code]["count"] += count
        return
    warnings[code] = {"code": code, "message": message, "count": count}
