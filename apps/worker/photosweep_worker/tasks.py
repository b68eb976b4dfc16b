from datetime import datetime
from typing import Any

from celery import shared_task

from photosweep.core.config import get_settings
from photosweep.core.logging import setup_logging
from photosweep.engine.normalizer import load_library
from photosweep.engine.scan import build_scan_result, run_scan


@shared_task(name="tasks.ping")
def ping() -> str:
    return "pong"


@shared_task(name="tasks.scan_library")
def scan_library(
    manifest_path: str | None = None,
    older_than_days: int | None = None,
    now: str | None = None,
) -> dict[str, Any]:
    settings = get_settings()
    setup_logging(settings.log_level)
    path = manifest_path or settings.library_manifest_path
    if not path:
        raise ValueError("No library manifest configured; set LIBRARY_MANIFEST_PATH.")
    store = load_library(path, calendar_timezone=settings.calendar_timezone)
    scan = run_scan(
        store,
        settings,
        now=datetime.fromisoformat(now) if now else None,
        older_than_days=older_than_days,
    )
    return build_scan_result(scan).model_dump(mode="json", by_alias=True)
