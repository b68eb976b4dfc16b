from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from datetime import datetime
from enum import StrEnum

from photosweep.core.config import Settings
from photosweep.engine.calendar_keys import MonthKey
from photosweep.engine.cleanup import (
    CleanupOutcome,
    CleanupStage,
    CleanupStatus,
    execute_cleanup,
)
from photosweep.engine.errors import (
    AuthorizationDenied,
    CommitFailed,
    ContactSheetFailed,
    NoEligibleItems,
)
from photosweep.engine.scan import Scan, run_scan
from photosweep.engine.store import AuthorizationStatus, MediaStore

logger = logging.getLogger(__name__)


class SessionState(StrEnum):
    IDLE = "idle"
    REQUESTING_PERMISSION = "requesting_permission"
    SCANNING = "scanning"
    READY = "ready"
    SAVING_KEEP = "saving_keep"
    DELETING = "deleting"
    COMPLETED = "completed"
    ERROR = "error"


class CleanerSession:
    """Drives one library through scan, review and cleanup.

    Only ``ready`` accepts a cleanup. A declined confirmation returns the
    session to ``ready``; if some batches were already committed the library
    is rescanned first so the candidates match the store again. Months whose
    contact sheet was already saved are not saved again until ``reset``.

    The scan pass runs in a worker thread.
    """

    def __init__(self, store: MediaStore, settings: Settings) -> None:
        self.store = store
        self.settings = settings
        self.state = SessionState.IDLE
        self.scan_result: Scan | None = None
        self.error: str | None = None
        self.deleted_count = 0
        self.freed_bytes = 0
        self._scan_options: dict[str, object] = {}
        self._saved_months: set[MonthKey] = set()

    @property
    def deletion_count(self) -> int:
        if self.scan_result is None:
            return 0
        return self.scan_result.eligible_count

    @property
    def is_action_enabled(self) -> bool:
        return self.state is SessionState.READY and self.deletion_count > 0

    async def check_authorization(self) -> AuthorizationStatus:
        status = self.store.authorization_status()
        if status is AuthorizationStatus.NOT_DETERMINED:
            self.state = SessionState.REQUESTING_PERMISSION
            status = await self.store.request_authorization()

        if status.grants_access:
            await self.scan()
        elif status is AuthorizationStatus.NOT_DETERMINED:
            self.state = SessionState.IDLE
        else:
            self._fail(str(AuthorizationDenied(status.value)))
        return status

    async def scan(
        self,
        *,
        now: datetime | None = None,
        older_than_days: int | None = None,
        generate_contact_sheet: bool | None = None,
        protected_album_names: Sequence[str] | None = None,
    ) -> Scan:
        self._scan_options = {
            "older_than_days": older_than_days,
            "generate_contact_sheet": generate_contact_sheet,
            "protected_album_names": protected_album_names,
        }
        self.state = SessionState.SCANNING
        self.scan_result = None
        self.error = None
        try:
            scan = await asyncio.to_thread(
                run_scan,
                self.store,
                self.settings,
                now=now,
                older_than_days=older_than_days,
                generate_contact_sheet=generate_contact_sheet,
                protected_album_names=protected_album_names,
            )
        except Exception as exc:
            self._fail(str(exc))
            raise
        self.scan_result = scan
        self.state = SessionState.READY
        return scan

    async def execute_cleanup(self) -> CleanupOutcome | None:
        if self.state is not SessionState.READY or self.scan_result is None:
            return None
        try:
            outcome = await execute_cleanup(
                self.store,
                self.scan_result,
                keep_album_name=self.settings.keep_album_name,
                batch_size=self.settings.deletion_batch_size,
                on_stage=self._enter_stage,
                saved_months=self._saved_months,
            )
        except NoEligibleItems:
            self._complete(0, 0)
            return CleanupOutcome(CleanupStatus.COMPLETED, 0, 0, 0)
        except ContactSheetFailed as exc:
            self._fail(str(exc))
            raise
        except CommitFailed as exc:
            logger.warning("Cleanup failed: %s", exc.detail)
            if exc.committed_count:
                await self._rescan()
            self.state = SessionState.READY
            self.error = str(exc)
            raise

        if outcome.status is CleanupStatus.CANCELLED:
            if outcome.deleted_count:
                await self._rescan()
            self.state = SessionState.READY
            return outcome

        self._complete(outcome.deleted_count, outcome.freed_bytes)
        return outcome

    def reset(self) -> None:
        self.state = SessionState.IDLE
        self.scan_result = None
        self.error = None
        self.deleted_count = 0
        self.freed_bytes = 0
        self._saved_months.clear()

    def _enter_stage(self, stage: CleanupStage) -> None:
        self.state = SessionState(stage.value)

    async def _rescan(self) -> None:
        await self.scan(**self._scan_options)  # type: ignore[arg-type]

    def _complete(self, deleted_count: int, freed_bytes: int) -> None:
        self.state = SessionState.COMPLETED
        self.deleted_count = deleted_count
        self.freed_bytes = freed_bytes

    def _fail(self, message: str) -> None:
        self.state = SessionState.ERROR
        self.error = message
