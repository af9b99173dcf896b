from __future__ import annotations

import re
from pathlib import Path

import pytest

from app.core.storage import LocalBlobStore, get_storage, sanitize_filename
from app.domain.errors import StorageError


def test_get_storage_uses_configured_directory(settings):
    storage = get_storage(settings)
    assert isinstance(storage, LocalBlobStore)
    assert storage.base_path == Path(settings.upload_dir)
    assert storage.public_prefix == "/uploads"


@pytest.mark.parametrize(
    ("original", "expected"),
    [
        ("my clip.mp4", "my-clip.mp4"),
        ("  spaced   out \t name.mov ", "spaced-out-name.mov"),
        ("../../etc/passwd", "passwd"),
        ("C:\\Users\\me\\video final.mp4", "video-final.mp4"),
        ("", "upload"),
        (None, "upload"),
        (".hidden", "hidden"),
    ],
)
def test_sanitize_filename(original, expected):
    assert sanitize_filename(original) == expected


def test_store_moves_upload_and_creates_directory(tmp_path, make_upload):
    target = tmp_path / "nested" / "uploads"
    storage = LocalBlobStore(target)
    upload = make_upload("My Entry.mp4", b"payload")

    locator = storage.store(upload, "My Entry.mp4")

    assert re.fullmatch(r"/uploads/\d{13}-My-Entry\.mp4", locator)
    assert not upload.exists()
    stored = storage.resolve(locator)
    assert stored.read_bytes() == b"payload"
    assert storage.exists(locator)
    assert [p.name for p in target.iterdir()] == [stored.name]


def test_store_never_reuses_a_name(storage, make_upload):
    locators = {storage.store(make_upload(), "same name.mp4") for _ in range(5)}
    assert len(locators) == 5
    for locator in locators:
        assert storage.exists(locator)


def test_store_missing_temp_file_raises_storage_error(storage, tmp_path):
    with pytest.raises(StorageError):
        storage.store(tmp_path / "vanished.mp4", "vanished.mp4")
    assert not any(p.name.startswith(".incoming-") for p in storage.base_path.iterdir())


def test_delete_is_safe_for_absent_blob(storage, make_upload):
    locator = storage.store(make_upload(), "clip.mp4")
    storage.delete(locator)
    assert not storage.exists(locator)
    storage.delete(locator)


@pytest.mark.parametrize("locator", ["/elsewhere/a.mp4", "/uploads/", "/uploads/../secret", "/uploads/a/b.mp4"])
def test_resolve_rejects_foreign_locators(storage, locator):
    with pytest.raises(StorageError):
        storage.resolve(locator)


def test_resolve_accepts_relative_locator(storage):
    assert storage.resolve("uploads/file.mp4") == storage.base_path / "file.mp4"


def test_derivative_locator_naming(storage):
    assert storage.derivative_locator("/uploads/1700000000000-clip.mp4", "wide") == (
        "/uploads/1700000000000-clip-thumb-wide.jpg"
    )
    assert storage.derivative_locator("/uploads/1700000000000-clip.mp4", "square") == (
        "/uploads/1700000000000-clip-thumb-square.jpg"
    )


def test_same_stem_uploads_get_distinct_derivatives(storage, make_upload, monkeypatch):
    monkeypatch.setattr("app.core.storage.time.time", lambda: 1700000000.0)

    mp4 = storage.store(make_upload("clip.mp4"), "clip.mp4")
    mov = storage.store(make_upload("clip.mov"), "clip.mov")

    assert mp4 == "/uploads/1700000000000-clip.mp4"
    assert mov == "/uploads/1700000000000-clip-1.mov"
    for variant in ("wide", "square"):
        assert storage.derivative_locator(mp4, variant) != storage.derivative_locator(mov, variant)


def test_upload_never_takes_an_existing_thumbnail_name(storage, make_upload, monkeypatch):
    monkeypatch.setattr("app.core.storage.time.time", lambda: 1700000000.0)
    clip = storage.store(make_upload("clip.mp4"), "clip.mp4")
    wide = storage.derivative_locator(clip, "wide")

    lookalike = storage.store(make_upload("clip-thumb-wide.jpg"), "clip-thumb-wide.jpg")

    assert lookalike != wide
    assert storage.derivative_locator(lookalike, "wide") != wide


def test_upload_stem_avoids_existing_thumbnail(storage, make_upload, monkeypatch):
    monkeypatch.setattr("app.core.storage.time.time", lambda: 1700000000.0)
    thumb_like = storage.store(make_upload("clip-thumb-wide.jpg"), "clip-thumb-wide.jpg")

    clip = storage.store(make_upload("clip.mp4"), "clip.mp4")

    assert storage.derivative_locator(clip, "wide") != thumb_like


def test_publish_overwrites_when_not_unique(storage):
    first = storage.stage_path("thumb.jpg")
    first.write_bytes(b"one")
    locator = storage.publish(first, "thumb.jpg", unique=False)
    second = storage.stage_path("thumb.jpg")
    second.write_bytes(b"two")
    assert storage.publish(second, "thumb.jpg", unique=False) == locator
    assert storage.resolve(locator).read_bytes() == b"two"


def test_publish_suffixes_taken_names(storage):
    first = storage.stage_path("a.mp4")
    first.write_bytes(b"1")
    second = storage.stage_path("a.mp4")
    second.write_bytes(b"2")
    assert storage.publish(first, "a.mp4") == "/uploads/a.mp4"
    assert storage.publish(second, "a.mp4") == "/uploads/a-1.mp4"
