from __future__ import annotations

from collections.abc import Callable, Generator, Iterable, Iterator, Sequence

from photosweep.engine.classifier import count_eligible, iter_eligible
from photosweep.engine.models import MediaItem

BatchHandler = Callable[[Sequence[str]], bool]


class DeletionCandidatesView:
    """Lazy projection of a store query minus the protected ids.

    Nothing is cached except the eligible count: every accessor walks
    ``source`` again, so ``source`` must be re-iterable. The view is only
    valid until the store mutates.
    """

    def __init__(
        self,
        source: Iterable[MediaItem],
        excluded: frozenset[str] | set[str],
        eligible_count: int | None = None,
    ) -> None:
        self._source = source
        self._excluded = frozenset(excluded)
        self._eligible_count = eligible_count

    @property
    def eligible_count(self) -> int:
        if self._eligible_count is None:
            self._eligible_count = self.count()
        return self._eligible_count

    def count(self) -> int:
        return count_eligible(self._source, self._excluded)

    def iter_eligible(self) -> Iterator[MediaItem]:
        return iter_eligible(self._source, self._excluded)

    def prefix(self, n: int) -> list[MediaItem]:
        if n <= 0:
            return []
        collected: list[MediaItem] = []
        for item in self.iter_eligible():
            collected.append(item)
            if len(collected) >= n:
                break
        return collected

    def iter_id_batches(self, batch_size: int) -> Generator[list[str], None, None]:
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1.")
        batch: list[str] = []
        for item in self.iter_eligible():
            batch.append(item.id)
            if len(batch) >= batch_size:
                yield batch
                batch = []
        if batch:
            yield batch

    def enumerate_id_batches(
        self,
        batch_size: int,
        handler: BatchHandler,
    ) -> None:
        """Hand eligible ids to ``handler`` in batches until it returns False.

        A stop leaves the rest of the stream unread and drops any partial
        batch. The trailing partial batch at exhaustion is always delivered;
        its return value is ignored.
        """
        batches = self.iter_id_batches(batch_size)
        try:
            for batch in batches:
                if not handler(batch):
                    return
        finally:
            batches.close()
