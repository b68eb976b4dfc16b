from __future__ import annotations


class PhotoSweepError(Exception):
    """Base class for failures surfaced by the sweep engine."""


class AuthorizationDenied(PhotoSweepError):
    def __init__(self, status: str) -> None:
        super().__init__(f"Photo library access is not authorized (status: {status}).")
        self.status = status


class NoEligibleItems(PhotoSweepError):
    def __init__(self) -> None:
        super().__init__("There are no photos eligible for deletion.")


class CommitFailed(PhotoSweepError):
    def __init__(self, detail: str, committed_count: int = 0) -> None:
        super().__init__(f"Deletion failed: {detail}")
        self.detail = detail
        self.committed_count = committed_count


class ContactSheetFailed(PhotoSweepError):
    def __init__(self, month_key: str, detail: str) -> None:
        super().__init__(f"Saving the contact sheet for {month_key} failed: {detail}")
        self.month_key = month_key
        self.detail = detail
