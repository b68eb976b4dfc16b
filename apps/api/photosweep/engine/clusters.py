from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass
class ClusterTracker:
    """Burst-detection state for a single calendar day.

    ``max_density`` only moves when a cluster is finalized, so an in-progress
    cluster is never visible through ``representative_id`` until
    :meth:`finalize` runs for it.
    """

    max_density: int = 0
    representative_id: str | None = None
    current_cluster_count: int = 0
    current_cluster_last_time: datetime | None = None
    current_cluster_representative_id: str | None = None

    def extend(self, timestamp: datetime) -> None:
        self.current_cluster_count += 1
        self.current_cluster_last_time = timestamp

    def start(self, item_id: str, timestamp: datetime) -> None:
        self.current_cluster_count = 1
        self.current_cluster_representative_id = item_id
        self.current_cluster_last_time = timestamp

    def finalize(self) -> bool:
        # Strictly greater: the earliest cluster keeps a tie.
        if self.current_cluster_count > self.max_density:
            self.max_density = self.current_cluster_count
            self.representative_id = self.current_cluster_representative_id
            return True
        return False
