import io
import itertools
import os
import pytest
from PIL import Image
from fastapi.testclient import TestClient

# Set test environment variables BEFORE importing app modules
os.environ["TESTING"] = "true"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["JWT_EXPIRE_MINUTES"] = "5"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["CLOUDINARY_CLOUD_NAME"] = "demo"
os.environ["CLOUDINARY_API_KEY"] = "key"
os.environ["CLOUDINARY_API_SECRET"] = "secret"

from app.main import app
from app.storage.database import build_engine, build_session_factory, init_db
from app.storage.tables import User
from app.exceptions import UpstreamException


def make_png_bytes(color="red", size=(10, 10)):
    """Generate a simple valid PNG in-memory."""
    img = Image.new("RGB", size, color=color)
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def gateway_result(public_id, tags=None, colors=None, caption=None):
    """Shape of a Cloudinary upload response, limited to the fields we read."""
    result = {
        "public_id": public_id,
        "secure_url": f"https://res.cloudinary.com/demo/image/upload/{public_id}.png",
        "tags": tags or [],
        "predominant": {"google": [[c, 30.0] for c in (colors or [])]},
    }
    if caption is not None:
        result["info"] = {"detection": {"captioning": {"data": {"caption": caption}}}}
    return result


class FakeGateway:
    """In-process stand-in for the Cloudinary gateway, keyed by payload bytes."""

    def __init__(self):
        self.results = {}
        self.failing = set()
        self.calls = []
        self._ids = itertools.count(1)

    def upload(self, content: bytes):
        self.calls.append(content)
        if content in self.failing:
            raise UpstreamException("Failed to upload image to Cloudinary: boom")
        if content in self.results:
            return self.results[content]
        return gateway_result(f"img_{next(self._ids)}", tags=["generic"], colors=["Gray"])

    def close(self):
        pass


@pytest.fixture(scope="function")
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'test.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture(scope="function")
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture(scope="function")
def gateway():
    return FakeGateway()


@pytest.fixture(scope="function")
def user(session_factory):
    session = session_factory()
    with session.begin():
        user = User(email="owner@example.com", password="not-a-real-hash")
        session.add(user)
    session.close()
    return user


@pytest.fixture(scope="function")
def test_client(session_factory, gateway):
    with TestClient(app) as client:
        # Replace the lifespan resources with test ones
        app.state.session_factory = session_factory
        app.state.gateway = gateway
        yield client


@pytest.fixture(scope="function")
def auth_headers(test_client):
    """Registers a user and returns bearer headers for it."""
    def _auth_headers(email="alice@example.com", password="correct-horse"):
        test_client.post("/user/register", json={"email": email, "password": password})
        resp = test_client.post("/auth/login", json={"email": email, "password": password})
        assert resp.status_code == 200
        return {"Authorization": f"Bearer {resp.json()['access_token']}"}
    return _auth_headers
