from __future__ import annotations

from collections.abc import Mapping

from photosweep.engine.calendar_keys import DayKey, MonthKey


def group_by_month(representatives_by_day: Mapping[DayKey, str]) -> dict[MonthKey, list[str]]:
    return {
        month_key: [item_id for _, item_id in entries]
        for month_key, entries in months_by_key(representatives_by_day).items()
    }


def months_by_key(
    representatives_by_day: Mapping[DayKey, str],
) -> dict[MonthKey, list[tuple[DayKey, str]]]:
    grouped: dict[MonthKey, list[tuple[DayKey, str]]] = {}
    for day_key in sorted(representatives_by_day):
        month_key = day_key.month_key
        if month_key not in grouped:
            grouped[month_key] = []
        grouped[month_key].append((day_key, representatives_by_day[day_key]))
    return grouped
