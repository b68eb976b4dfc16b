import json
from collections.abc import Sequence
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, EnvSettingsSource, SettingsConfigDict

_CSV_LIST_FIELDS = {"cors_origins", "protected_album_names"}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_parse_envars=False,
    )

    app_name: str = "PhotoSweep API"
    log_level: str = "INFO"
    redis_url: str = "redis://localhost:6379/0"
    cors_origins: list[str] = ["http://localhost:3000"]
    library_manifest_path: str = ""

    backup_grace_days: int = Field(default=730, ge=0)
    generate_contact_sheet: bool = True
    keep_album_name: str = "Keep"
    protected_album_names: list[str] = ["Keep"]
    cluster_threshold_minutes: float = Field(default=30, gt=0)
    calendar_timezone: str = "UTC"
    preview_limit: int = Field(default=100, ge=0)
    size_sample_size: int = Field(default=100, ge=1)
    deletion_batch_size: int = Field(default=5000, ge=1)

    @field_validator("cors_origins", "protected_album_names", mode="before")
    @classmethod
    def split_csv(cls, value: Sequence[str] | str) -> list[str]:
        if isinstance(value, str):
            stripped = value.strip()
            if stripped.startswith("["):
                return [str(entry).strip() for entry in json.loads(stripped) if str(entry).strip()]
            return [entry.strip() for entry in value.split(",") if entry.strip()]
        return list(value)

    @field_validator("calendar_timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown calendar timezone '{value}'.") from exc
        return value

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        class CsvEnvSettingsSource(EnvSettingsSource):
            def decode_complex_value(self, field_name, field, value):  # type: ignore[override]
                if field_name in _CSV_LIST_FIELDS and isinstance(value, str):
                    return value
                return super().decode_complex_value(field_name, field, value)

        return (
            init_settings,
            CsvEnvSettingsSource(settings_cls),
            dotenv_settings,
            file_secret_settings,
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()
