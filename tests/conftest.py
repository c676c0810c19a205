# tests/conftest.py

import pytest

from config import Config


def _test_config(instance_dir):
    class TestConfig(Config):
        TESTING = True
        SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
        WTF_CSRF_ENABLED = False
        ADMIN_PASSWORD = "test-password"
        UPLOAD_FOLDER = str(instance_dir / "uploads")
        BLOB_STORAGE_ROOT = str(instance_dir / "blobs")
        BLOB_PUBLIC_URL = "/blobs"
    return TestConfig


@pytest.fixture
def app_with_db(tmp_path):
    """
    Creates a new app instance for a test, sets up an in-memory database,
    and yields the app within an application context.
    """
    from payportal import create_app, db

    app = create_app(_test_config(tmp_path))

    with app.app_context():
        db.create_all()
        yield app  # The tests will run here
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app_with_db):
    return app_with_db.test_client()


@pytest.fixture
def admin_client(client):
    """A test client with an admin session."""
    with client.session_transaction() as sess:
        sess['admin_logged_in'] = True
    return client


@pytest.fixture
def make_grid():
    """Builds a SheetGrid from plain row lists."""
    from payportal.payroll.structure import SheetGrid
    return SheetGrid.from_rows
