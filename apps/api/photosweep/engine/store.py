from __future__ import annotations

import bisect
import logging
from collections.abc import Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime, tzinfo
from enum import StrEnum
from typing import Protocol
from uuid import uuid4

from photosweep.engine.calendar_keys import CalendarKeys, MonthKey
from photosweep.engine.models import IMAGE_KIND, MediaItem

logger = logging.getLogger(__name__)

ConfirmCallback = Callable[[Sequence[str]], bool]


class AuthorizationStatus(StrEnum):
    AUTHORIZED = "authorized"
    LIMITED = "limited"
    DENIED = "denied"
    RESTRICTED = "restricted"
    NOT_DETERMINED = "not_determined"

    @property
    def grants_access(self) -> bool:
        return self in (AuthorizationStatus.AUTHORIZED, AuthorizationStatus.LIMITED)


class CommitStatus(StrEnum):
    COMMITTED = "committed"
    USER_CANCELLED = "user_cancelled"
    FAILED = "failed"


@dataclass(frozen=True)
class CommitOutcome:
    status: CommitStatus
    detail: str | None = None

    @classmethod
    def committed(cls) -> CommitOutcome:
        return cls(CommitStatus.COMMITTED)

    @classmethod
    def user_cancelled(cls) -> CommitOutcome:
        return cls(CommitStatus.USER_CANCELLED)

    @classmethod
    def failed(cls, detail: str) -> CommitOutcome:
        return cls(CommitStatus.FAILED, detail)


class MediaQuery(Protocol):
    def __iter__(self) -> Iterator[MediaItem]: ...

    def __len__(self) -> int: ...


class MediaStore(Protocol):
    def authorization_status(self) -> AuthorizationStatus: ...

    async def request_authorization(self) -> AuthorizationStatus: ...

    def query_images(self, created_before: datetime) -> MediaQuery: ...

    def protected_ids(self, album_names: Iterable[str]) -> frozenset[str]: ...

    def fetch_by_ids(self, ids: Iterable[str]) -> list[MediaItem]: ...

    async def delete_items(self, ids: Sequence[str]) -> CommitOutcome: ...

    async def add_to_album(self, name: str, ids: Sequence[str]) -> None: ...

    async def create_contact_sheet(self, month_key: MonthKey, item_ids: Sequence[str]) -> str: ...


class FetchResult:
    """Ordered snapshot of the items matching one query."""

    def __init__(self, items: Sequence[MediaItem]) -> None:
        self._items = tuple(items)

    def __iter__(self) -> Iterator[MediaItem]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)


class InMemoryMediaStore:
    def __init__(
        self,
        items: Iterable[MediaItem] = (),
        albums: dict[str, Iterable[str]] | None = None,
        *,
        authorization: AuthorizationStatus = AuthorizationStatus.AUTHORIZED,
        grant_on_request: bool = True,
        confirm: ConfirmCallback | None = None,
        calendar_timezone: tzinfo | str = UTC,
    ) -> None:
        self._ordered: list[MediaItem] = []
        self._by_id: dict[str, MediaItem] = {}
        for item in items:
            self._insert(item)
        self._albums: dict[str, list[str]] = {
            name: list(dict.fromkeys(ids)) for name, ids in (albums or {}).items()
        }
        self._authorization = authorization
        self._grant_on_request = grant_on_request
        self.confirm = confirm
        self._calendar = CalendarKeys(calendar_timezone)
        self.fail_with: str | None = None
        self.deleted_batches: list[list[str]] = []
        self.contact_sheets: dict[str, tuple[MonthKey, tuple[str, ...]]] = {}

    def album(self, name: str) -> list[str]:
        return list(self._albums.get(name, []))

    def authorization_status(self) -> AuthorizationStatus:
        return self._authorization

    async def request_authorization(self) -> AuthorizationStatus:
        if self._authorization is AuthorizationStatus.NOT_DETERMINED:
            self._authorization = (
                AuthorizationStatus.AUTHORIZED
                if self._grant_on_request
                else AuthorizationStatus.DENIED
            )
        return self._authorization

    def query_images(self, created_before: datetime) -> FetchResult:
        if created_before.tzinfo is None:
            created_before = created_before.replace(tzinfo=UTC)
        return FetchResult(
            [
                item
                for item in self._ordered
                if item.kind == IMAGE_KIND
                and not item.is_favorite
                and item.create_time is not None
                and item.create_time < created_before
            ]
        )

    def protected_ids(self, album_names: Iterable[str]) -> frozenset[str]:
        protected: set[str] = set()
        for name in album_names:
            members = self.album(name)
            if not members:
                continue
            logger.debug("Protected album '%s' contains %s items", name, len(members))
            protected.update(members)
        return frozenset(protected)

    def fetch_by_ids(self, ids: Iterable[str]) -> list[MediaItem]:
        return [self._by_id[item_id] for item_id in ids if item_id in self._by_id]

    async def delete_items(self, ids: Sequence[str]) -> CommitOutcome:
        if self.fail_with is not None:
            return CommitOutcome.failed(self.fail_with)
        missing = [item_id for item_id in ids if item_id not in self._by_id]
        if missing:
            return CommitOutcome.failed(f"{len(missing)} items no longer exist in the library.")
        if self.confirm is not None and not self.confirm(ids):
            return CommitOutcome.user_cancelled()
        doomed = set(ids)
        self._ordered = [item for item in self._ordered if item.id not in doomed]
        for item_id in doomed:
            del self._by_id[item_id]
        for members in self._albums.values():
            members[:] = [item_id for item_id in members if item_id not in doomed]
        self.deleted_batches.append(list(ids))
        return CommitOutcome.committed()

    async def add_to_album(self, name: str, ids: Sequence[str]) -> None:
        unknown = [item_id for item_id in ids if item_id not in self._by_id]
        if unknown:
            raise LookupError(f"Cannot add unknown items to album '{name}'.")
        members = self._albums.setdefault(name, [])
        for item_id in ids:
            if item_id not in members:
                members.append(item_id)

    async def create_contact_sheet(self, month_key: MonthKey, item_ids: Sequence[str]) -> str:
        unknown = [item_id for item_id in item_ids if item_id not in self._by_id]
        if unknown:
            raise LookupError(f"Contact sheet for {month_key} references unknown items.")
        sheet = MediaItem(
            id=f"contact-sheet-{month_key}-{uuid4().hex[:8]}",
            create_time=month_key.first_day(self._calendar.tz),
            kind=IMAGE_KIND,
        )
        self._insert(sheet)
        self.contact_sheets[sheet.id] = (month_key, tuple(item_ids))
        return sheet.id

    def _insert(self, item: MediaItem) -> None:
        if item.id in self._by_id:
            raise ValueError(f"Duplicate media item id '{item.id}'.")
        bisect.insort(self._ordered, item, key=_sort_key)
        self._by_id[item.id] = item


def _sort_key(item: MediaItem) -> tuple[bool, datetime | None, str]:
    return (item.create_time is not None, item.create_time, item.id)
