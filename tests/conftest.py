"""
Pytest fixtures for Tubely tests.
SQLite database in a temp dir, fake ffprobe/ffmpeg/S3 backends, and a TestClient wired to them.
"""

import os
import shutil
import tempfile
import uuid
from pathlib import Path

import pytest

# Set up test environment BEFORE importing app config (settings and engine are built at import)
_test_temp_dir = tempfile.mkdtemp()
os.environ["DATABASE_URL"] = f"sqlite:///{Path(_test_temp_dir) / 'test.db'}"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["THUMBNAIL_STORAGE"] = "memory"
os.environ["PUBLIC_BASE_URL"] = "http://testserver"
os.environ["S3_BUCKET"] = "tubely-test"

from app.config import get_settings  # noqa: E402
from app.errors import ProcessingError, StorageError  # noqa: E402
from app.services.fast_start import processing_path  # noqa: E402
from app.services.media_inspector import ProbeResult, StreamInfo  # noqa: E402

TEST_BUCKET = "tubely-test"


class FakeObjectStore:
    """Records puts in memory; presign returns a deterministic URL carrying the TTL."""

    def __init__(self):
        self.objects: dict[tuple[str, str], tuple[bytes, str]] = {}
        self.fail_put = False
        self.presigned: list[tuple[str, str, int]] = []

    def put(self, bucket, key, fileobj, content_type):
        if self.fail_put:
            raise StorageError("Couldn't save video to object store: simulated outage")
        self.objects[(bucket, key)] = (fileobj.read(), content_type)

    def presign_read(self, bucket, key, ttl):
        self.presigned.append((bucket, key, ttl))
        return f"https://{bucket}.s3.amazonaws.com/{key}?X-Amz-Expires={ttl}&X-Amz-Signature=fake"


class FakeProber:
    """Returns an audio stream followed by a video stream of the configured size."""

    def __init__(self, width=1920, height=1080):
        self.width = width
        self.height = height
        self.fail = False
        self.probed: list[Path] = []

    def probe(self, path):
        self.probed.append(Path(path))
        if self.fail:
            raise ProcessingError("ffprobe failed: simulated")
        return ProbeResult(
            streams=[
                StreamInfo(codec_type="audio", width=0, height=0),
                StreamInfo(codec_type="video", width=self.width, height=self.height),
            ]
        )


class FakeRemuxer:
    """Copies input to <input>.processing like ffmpeg -c copy would."""

    def __init__(self):
        self.fail = False
        self.inputs: list[Path] = []
        self.outputs: list[Path] = []

    def remux(self, path):
        path = Path(path)
        self.inputs.append(path)
        if self.fail:
            raise ProcessingError("ffmpeg fast-start remux failed: simulated")
        out = processing_path(path)
        shutil.copyfile(path, out)
        self.outputs.append(out)
        return out


@pytest.fixture
def scratch_dir(tmp_path_factory: pytest.TempPathFactory) -> Path:
    return tmp_path_factory.mktemp("scratch")


@pytest.fixture
def settings(scratch_dir: Path):
    return get_settings().model_copy(update={"scratch_dir": str(scratch_dir), "s3_bucket": TEST_BUCKET})


@pytest.fixture
def db_session():
    from app.database import Base, SessionLocal, engine
    import app.models  # noqa: F401 - register tables

    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def owner(db_session):
    from app.models.user import User

    user = User(id=str(uuid.uuid4()), email=f"owner-{uuid.uuid4().hex[:6]}@example.com")
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def other_user(db_session):
    from app.models.user import User

    user = User(id=str(uuid.uuid4()), email=f"other-{uuid.uuid4().hex[:6]}@example.com")
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def sample_video(db_session, owner):
    from app.models.video import Video

    video = Video(id=str(uuid.uuid4()), user_id=owner.id, title="Boots on the ground", description="demo")
    db_session.add(video)
    db_session.commit()
    return video


@pytest.fixture
def fake_store() -> FakeObjectStore:
    return FakeObjectStore()


@pytest.fixture
def fake_prober() -> FakeProber:
    return FakeProber()


@pytest.fixture
def fake_remuxer() -> FakeRemuxer:
    return FakeRemuxer()


@pytest.fixture
def thumbnail_store():
    from app.services.thumbnail_store import InMemoryThumbnailStore

    return InMemoryThumbnailStore("http://testserver")


@pytest.fixture
def client(db_session, settings, fake_store, fake_prober, fake_remuxer, thumbnail_store):
    from starlette.testclient import TestClient

    from app.config import get_settings as settings_provider
    from app.core.storage import get_object_store, get_thumbnail_store
    from app.dependencies import get_media_inspector, get_remuxer
    from app.main import app
    from app.services.media_inspector import MediaInspector

    app.dependency_overrides[settings_provider] = lambda: settings
    app.dependency_overrides[get_object_store] = lambda: fake_store
    app.dependency_overrides[get_thumbnail_store] = lambda: thumbnail_store
    app.dependency_overrides[get_media_inspector] = lambda: MediaInspector(fake_prober)
    app.dependency_overrides[get_remuxer] = lambda: fake_remuxer
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    from app.auth import create_access_token

    def _headers(user_id: str) -> dict:
        return {"Authorization": f"Bearer {create_access_token(user_id)}"}

    return _headers


@pytest.fixture
def reload_video():
    """Fresh read from the database, bypassing any session identity map."""
    from app.database import SessionLocal
    from app.models.video import Video

    def _reload(video_id: str):
        session = SessionLocal()
        try:
            return session.get(Video, video_id)
        finally:
            session.close()

    return _reload
