from __future__ import annotations

import os
from pathlib import Path

import pytest

from app.core.config import Settings, get_settings
from tests.conftest import ALIAS_TARGETS, forget_env

pytestmark = pytest.mark.no_default_env


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    for key in list(os.environ.keys()):
        if key.startswith("CLIPJURY_"):
            monkeypatch.delenv(key, raising=False)
    # load_dotenv and the alias map write os.environ directly
    for key in (*ALIAS_TARGETS, "CLIPJURY_ADMIN_SECRET"):
        forget_env(monkeypatch, key)
    monkeypatch.chdir(tmp_path)
    yield


def test_defaults():
    settings = get_settings()
    assert settings.duration_window.min_s == 60.0
    assert settings.duration_window.max_s == 120.0
    assert settings.records_path == Path("data") / "submissions.json"
    assert settings.upload_dir == Path("public") / "uploads"
    assert settings.thumbnail_wide_size == (1280, 720)
    assert settings.thumbnail_square_size == (600, 600)
    assert settings.thumbnail_offset_fraction == 0.5
    assert settings.moderation_allow_retransition is False


def test_short_aliases_set_window(monkeypatch):
    monkeypatch.setenv("CLIPJURY_MIN_SEC", "60")
    monkeypatch.setenv("CLIPJURY_MAX_SEC", "90")
    settings = get_settings()
    assert settings.duration_window.admits(90.0)
    assert not settings.duration_window.admits(90.5)


def test_dotenv_file_is_loaded(tmp_path):
    (tmp_path / ".env").write_text("CLIPJURY_MAX_DURATION_S=150\nCLIPJURY_ADMIN_SECRET=from-dotenv\n")
    settings = get_settings()
    assert settings.max_duration_s == 150.0
    assert settings.secrets.admin_secret == "from-dotenv"


def test_inverted_window_is_refused():
    with pytest.raises(ValueError):
        Settings(min_duration_s=120, max_duration_s=60)


def test_offset_fraction_is_bounded():
    with pytest.raises(ValueError):
        Settings(thumbnail_offset_fraction=1.5)


def test_production_requires_admin_secret(monkeypatch):
    monkeypatch.setenv("CLIPJURY_ENV", "production")
    with pytest.raises(ValueError):
        get_settings()

    get_settings.cache_clear()
    monkeypatch.setenv("CLIPJURY_ADMIN_SECRET", "s3cret")
    assert get_settings().secrets.admin_secret == "s3cret"
