from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class _AliasedModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ScanRequest(_AliasedModel):
    older_than_days: int | None = Field(default=None, alias="olderThanDays", ge=0)
    generate_contact_sheet: bool | None = Field(default=None, alias="generateContactSheet")
    protected_album_names: list[str] | None = Field(default=None, alias="protectedAlbumNames")


class MediaItemSummary(_AliasedModel):
    id: str
    create_time: datetime | None = Field(alias="createTime")
    file_size: int | None = Field(default=None, alias="fileSize")


class DayRepresentative(_AliasedModel):
    day_key: str = Field(alias="dayKey")
    item_id: str = Field(alias="itemId")


class MonthSheet(_AliasedModel):
    month_key: str = Field(alias="monthKey")
    representatives: list[DayRepresentative]


class StageMetrics(_AliasedModel):
    timings_ms: dict[str, float] = Field(alias="timingsMs")
    counts: dict[str, int]


class ScanResult(_AliasedModel):
    run_id: str = Field(alias="runId")
    cutoff: datetime
    total_count: int = Field(alias="totalCount")
    eligible_count: int = Field(alias="eligibleCount")
    excluded_count: int = Field(alias="excludedCount")
    months: list[MonthSheet]
    preview: list[MediaItemSummary]
    estimated_bytes: int = Field(alias="estimatedBytes")
    estimated_size: str = Field(alias="estimatedSize")
    stage_metrics: StageMetrics = Field(alias="stageMetrics")


class CleanupRequest(_AliasedModel):
    run_id: str = Field(alias="runId")
    consent_confirmed: bool = Field(default=False, alias="consentConfirmed")


class CleanupResult(_AliasedModel):
    status: str
    state: str
    deleted_count: int = Field(alias="deletedCount")
    freed_bytes: int = Field(alias="freedBytes")
    sheets_saved: int = Field(alias="sheetsSaved")


class SessionStatus(_AliasedModel):
    state: str
    run_id: str | None = Field(default=None, alias="runId")
    deletion_count: int = Field(alias="deletionCount")
    is_action_enabled: bool = Field(alias="isActionEnabled")
    deleted_count: int | None = Field(default=None, alias="deletedCount")
    freed_bytes: int | None = Field(default=None, alias="freedBytes")
    error: str | None = None
