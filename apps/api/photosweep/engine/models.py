from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime

IMAGE_KIND = "image"
VIDEO_KIND = "video"


@dataclass(frozen=True)
class MediaItem:
    id: str
    create_time: datetime | None
    is_favorite: bool = False
    kind: str = IMAGE_KIND
    file_size: int | None = None

    def __post_init__(self) -> None:
        # Naive timestamps are UTC; keep every item comparable.
        if self.create_time is not None and self.create_time.tzinfo is None:
            object.__setattr__(self, "create_time", self.create_time.replace(tzinfo=UTC))
