import shutil
import subprocess
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from app.core.config import get_settings
from app.core.storage import LocalBlobStore
from app.domain.errors import ProbeError, ThumbnailError
from app.ingest.ffprobe_parser import MediaProber
from app.ingest.thumbnails import ThumbnailGenerator, ThumbnailResult
from app.main import create_app
from app.services import Components, IngestService, ModerationService, ReprocessJob
from app.store.submissions import SubmissionStore

ADMIN_SECRET = "test-secret"

requires_ffmpeg = pytest.mark.skipif(
    shutil.which("ffmpeg") is None or shutil.which("ffprobe") is None,
    reason="ffmpeg/ffprobe not installed",
)

# get_settings writes these straight into os.environ
ALIAS_TARGETS = (
    "CLIPJURY_ENVIRONMENT",
    "CLIPJURY_MIN_SEC",
    "CLIPJURY_MAX_SEC",
    "CLIPJURY_MIN_DURATION_S",
    "CLIPJURY_MAX_DURATION_S",
)


def forget_env(monkeypatch, key: str) -> None:
    """Unset ``key`` and make sure it is unset again at teardown."""
    monkeypatch.setenv(key, "")
    monkeypatch.delenv(key)


def pytest_configure(config):
    config.addinivalue_line(
        "markers",
        "no_default_env: disable the default clipjury environment bootstrap fixture for tests that manage their own env",
    )


@pytest.fixture(autouse=True)
def configure_environment(request, monkeypatch, tmp_path):
    if request.node.get_closest_marker("no_default_env"):
        get_settings.cache_clear()
        yield
        get_settings.cache_clear()
        return

    monkeypatch.setenv("CLIPJURY_ENV", "test")
    monkeypatch.setenv("CLIPJURY_LOG_LEVEL", "debug")
    monkeypatch.setenv("CLIPJURY_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("CLIPJURY_UPLOAD_DIR", str(tmp_path / "public" / "uploads"))
    monkeypatch.setenv("CLIPJURY_ADMIN_SECRET", ADMIN_SECRET)
    for key in ALIAS_TARGETS:
        forget_env(monkeypatch, key)

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class FakeProber(MediaProber):
    """Returns a configurable duration instead of running ffprobe."""

    def __init__(self, duration: float = 75.0, error: str | None = None):
        super().__init__()
        self.duration = duration
        self.error = error
        self.calls: list[Path] = []

    def probe(self, media_path: Path) -> float:
        self.calls.append(Path(media_path))
        if self.error:
            raise ProbeError(self.error)
        return self.duration


class FakeThumbnailer(ThumbnailGenerator):
    """Writes placeholder JPEG bytes instead of running ffmpeg."""

    def __init__(self, storage: LocalBlobStore, fail: tuple[str, ...] = ()):
        super().__init__(storage)
        self.fail = set(fail)
        self.calls: list[tuple] = []

    def generate(self, locator, target_name, dimensions, offset_fraction, *, duration_s=None):
        self.calls.append((locator, target_name, tuple(dimensions), offset_fraction, duration_s))
        for variant in self.fail:
            if target_name.endswith(f"-thumb-{variant}.jpg"):
                raise ThumbnailError(f"{variant} render failed")
        staged = self.storage.stage_path(target_name)
        staged.write_bytes(b"\xff\xd8fake-jpeg")
        published = self.storage.publish(staged, target_name, unique=False)
        return ThumbnailResult(locator=published, width=dimensions[0], height=dimensions[1])


@pytest.fixture()
def settings():
    return get_settings()


@pytest.fixture()
def storage(settings):
    return LocalBlobStore(settings.upload_dir, public_prefix=settings.public_prefix)


@pytest.fixture()
def store(settings):
    return SubmissionStore(settings.records_path)


@pytest.fixture()
def prober():
    return FakeProber()


@pytest.fixture()
def thumbnailer(storage):
    return FakeThumbnailer(storage)


@pytest.fixture()
def ingest_service(settings, storage, store, prober, thumbnailer):
    return IngestService(settings, storage, store, prober, thumbnailer)


@pytest.fixture()
def moderation(settings, store):
    return ModerationService(settings, store)


@pytest.fixture()
def reprocess_job(settings, storage, store, prober, thumbnailer):
    return ReprocessJob(settings, storage, store, prober, thumbnailer)


@pytest.fixture()
def make_upload(tmp_path):
    """Write a fake uploaded temp file and return its path."""
    incoming = tmp_path / "incoming"
    incoming.mkdir(exist_ok=True)
    counter = {"n": 0}

    def _make(name: str = "clip.mp4", payload: bytes = b"not-really-video") -> Path:
        counter["n"] += 1
        path = incoming / f"upload-{counter['n']}{Path(name).suffix}"
        path.write_bytes(payload)
        return path

    return _make


@pytest.fixture()
def client(settings, storage, store, prober, thumbnailer):
    app = create_app()
    app.state.components = Components(storage=storage, store=store, prober=prober, thumbnailer=thumbnailer)
    with TestClient(app) as client:
        yield client


@pytest.fixture()
def admin_params() -> dict[str, str]:
    return {"secret": ADMIN_SECRET}


@pytest.fixture(scope="session")
def generated_video_file(tmp_path_factory) -> Path:
    """
    Generates a small, valid MP4 video file for testing in a temporary directory.
    """
    if shutil.which("ffmpeg") is None:
        pytest.skip("ffmpeg not installed")
    video_path = tmp_path_factory.mktemp("media") / "test_video.mp4"

    # Two seconds of a moving test pattern
    command = [
        "ffmpeg",
        "-f", "lavfi",
        "-i", "testsrc=size=320x240:rate=25",
        "-t", "2",
        "-pix_fmt", "yuv420p",
        str(video_path)
    ]
    subprocess.run(command, check=True, capture_output=True)
    return video_path
