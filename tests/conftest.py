from __future__ import annotations

import os
import sys
from pathlib import Path

import mongomock
import pytest

from tests.helpers import ADMIN, RecordingTransport


def pytest_configure():
    # Ensure project root is on sys.path for absolute imports like 'intake'
    root = Path(__file__).resolve().parents[1]
    if str(root) not in sys.path:
        sys.path.insert(0, str(root))
    os.environ.setdefault("APP_ENV", "test")


@pytest.fixture
def settings(tmp_path):
    from settings import load_settings

    return load_settings({
        "APP_ENV": "test",
        "ADMIN_EMAIL": ADMIN,
        "UPLOAD_DIR": str(tmp_path / "resumes"),
    })


@pytest.fixture
def db():
    from database import ensure_indexes

    database = mongomock.MongoClient()["website_test"]
    ensure_indexes(database)
    return database


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def resume_dir(tmp_path):
    return tmp_path / "resumes"


@pytest.fixture
def orchestrators(db, transport, resume_dir):
    from forms import build_orchestrators
    from mailer import NotificationDispatcher
    from notifications import MailContext
    from uploads import LocalDiskStorage, ResumeIntake

    ctx = MailContext(company="Tzur Global", admin_email=ADMIN)
    resume = ResumeIntake(LocalDiskStorage(str(resume_dir)))
    return build_orchestrators(db, NotificationDispatcher(transport), resume, ctx)


@pytest.fixture
def app(settings, db, orchestrators):
    from main import AppServices, create_app

    return create_app(settings, AppServices(db=db, orchestrators=orchestrators))


@pytest.fixture
def client(app):
    from fastapi.testclient import TestClient

    return TestClient(app, raise_server_exceptions=False)
