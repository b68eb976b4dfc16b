import pytest
from pydantic import ValidationError

from photosweep.core.config import Settings


def test_defaults_keep_two_year_grace_and_keep_album(monkeypatch):
    for name in ("BACKUP_GRACE_DAYS", "PROTECTED_ALBUM_NAMES", "KEEP_ALBUM_NAME"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings(_env_file=None)

    assert settings.backup_grace_days == 730
    assert settings.generate_contact_sheet is True
    assert settings.keep_album_name == "Keep"
    assert settings.protected_album_names == ["Keep"]
    assert settings.cluster_threshold_minutes == 30
    assert settings.calendar_timezone == "UTC"


def test_protected_album_names_accepts_csv(monkeypatch):
    monkeypatch.setenv("PROTECTED_ALBUM_NAMES", "Keep, Family ,Travel")

    settings = Settings(_env_file=None)

    assert settings.protected_album_names == ["Keep", "Family", "Travel"]


def test_protected_album_names_accepts_json_array(monkeypatch):
    monkeypatch.setenv("PROTECTED_ALBUM_NAMES", '["Keep", "Screenshots, 2019"]')

    settings = Settings(_env_file=None)

    assert settings.protected_album_names == ["Keep", "Screenshots, 2019"]


def test_protected_album_names_accepts_empty(monkeypatch):
    monkeypatch.setenv("PROTECTED_ALBUM_NAMES", "")

    settings = Settings(_env_file=None)

    assert settings.protected_album_names == []


def test_cors_origins_accepts_csv(monkeypatch):
    monkeypatch.setenv("CORS_ORIGINS", "http://localhost:3000, https://sweep.example")

    settings = Settings(_env_file=None)

    assert settings.cors_origins == ["http://localhost:3000", "https://sweep.example"]


def test_numeric_settings_read_from_env(monkeypatch):
    monkeypatch.setenv("CLUSTER_THRESHOLD_MINUTES", "45")
    monkeypatch.setenv("DELETION_BATCH_SIZE", "250")
    monkeypatch.setenv("GENERATE_CONTACT_SHEET", "false")

    settings = Settings(_env_file=None)

    assert settings.cluster_threshold_minutes == 45
    assert settings.deletion_batch_size == 250
    assert settings.generate_contact_sheet is False


def test_rejects_unknown_timezone():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, calendar_timezone="Mars/Olympus_Mons")


def test_rejects_non_positive_batch_size():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, deletion_batch_size=0)
