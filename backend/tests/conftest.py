"""
Shared pytest fixtures for the Samwad test suite.

Every test gets fresh, isolated state: its own SQLite file, its own
coordinator, and a recording emitter in place of the Socket.IO server.
"""
import httpx
import pytest
import pytest_asyncio

from samwad.config import Settings
from samwad.database import build_engine, build_session_factory, init_db
from samwad.main import create_app
from samwad.services.call_coordinator import CallCoordinator
from samwad.services.grievance_service import GrievanceIntake
from samwad.services.record_store import RecordStore


class RecordingEmitter:
    """Stands in for socketio.AsyncServer.emit and remembers every event."""

    def __init__(self):
        self.sent = []

    async def emit(self, event, data=None, to=None, **kwargs):
        self.sent.append((event, data, to))

    def to(self, sid, event=None):
        return [d for e, d, t in self.sent if t == sid and (event is None or e == event)]

    def last(self, sid, event):
        items = self.to(sid, event)
        return items[-1] if items else None

    def broadcasts(self, event):
        return [d for e, d, t in self.sent if t is None and e == event]


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        DATABASE_URL=f"sqlite:///{tmp_path / 'samwad-test.db'}",
        UPLOAD_DIR=str(tmp_path / "uploads"),
        LOG_DIR=str(tmp_path / "logs"),
        WAIT_REBROADCAST_SECONDS=0,
    )


@pytest.fixture
def store(settings):
    engine = build_engine(settings.DATABASE_URL)
    init_db(engine)
    yield RecordStore(build_session_factory(engine))
    engine.dispose()


@pytest.fixture
def emitter():
    return RecordingEmitter()


@pytest.fixture
def coordinator(emitter, store, settings):
    return CallCoordinator(emitter, store, settings)


@pytest.fixture
def intake(store, coordinator, settings):
    return GrievanceIntake(store, coordinator, settings)


@pytest.fixture
def app(settings, emitter):
    application = create_app(settings)
    application.state.coordinator.emitter = emitter
    return application


@pytest_asyncio.fixture
async def client(app):
    """In-process httpx AsyncClient against the FastAPI app."""
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c


async def register(coordinator, sid, role="citizen", **profile):
    data = {"name": profile.pop("name", f"User {sid}"), "mobile": profile.pop("mobile", ""), "role": role}
    data.update(profile)
    await coordinator.register(sid, data)
