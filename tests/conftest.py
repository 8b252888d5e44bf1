import os
import tempfile

# keep app.log out of the working tree when dropshare.main is imported
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="dropshare-logs-"))

import pytest
from fastapi.testclient import TestClient

from dropshare.core.config import Settings
from dropshare.main import create_app
from dropshare.services.filestore import FileStore

PASSWORD = "s3cret"


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture
def store(upload_dir):
    return FileStore(upload_dir, blocked_extensions=["exe", "bat", "php"])


@pytest.fixture
def app_settings(tmp_path, upload_dir):
    return Settings(
        ADMIN_PASSWORD=PASSWORD,
        UPLOAD_DIR=str(upload_dir),
        BLOCKED_EXTENSIONS=frozenset({"exe", "bat", "php"}),
        LOG_DIR=str(tmp_path / "logs"),
    )


@pytest.fixture
def client(app_settings):
    return TestClient(create_app(app_settings))


@pytest.fixture
def admin_headers():
    return {"X-Admin-Password": PASSWORD}
