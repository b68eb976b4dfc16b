from __future__ import annotations

from collections.abc import Iterable

from photosweep.engine.candidates import DeletionCandidatesView
from photosweep.engine.models import MediaItem

DEFAULT_SAMPLE_SIZE = 100
_BYTE_UNITS = ("KB", "MB", "GB", "TB", "PB")


def estimate_total_size(view: DeletionCandidatesView, sample_size: int = DEFAULT_SAMPLE_SIZE) -> int:
    """Extrapolate the byte size of every candidate from a leading sample.

    The average is floor-divided, so the result can undershoot the exact sum
    by up to ``eligible_count - 1`` bytes plus sampling error.
    """
    sample = view.prefix(sample_size)
    if not sample:
        return 0
    average = sum_sizes(sample) // len(sample)
    return average * view.eligible_count


def sum_sizes(items: Iterable[MediaItem]) -> int:
    return sum(item.file_size or 0 for item in items)


def format_bytes(size: int) -> str:
    if abs(size) < 1000:
        return f"{size} bytes"
    value = float(size)
    for unit in _BYTE_UNITS:
        value /= 1000
        if abs(value) < 1000 or unit == _BYTE_UNITS[-1]:
            break
    return f"{value:.1f} {unit}"
