"""
Shared test setup: every test runs against its own temporary SQLite file.
The environment is set before any src module is imported so the import-time
database initialization never touches ./data.
"""

import os
import shutil
import tempfile

import pytest

_SESSION_DIR = tempfile.mkdtemp()
os.environ['DB_PATH'] = os.path.join(_SESSION_DIR, "import.db")
os.environ['CHANGE_FEED_ENABLED'] = 'false'


@pytest.fixture(autouse=True)
def test_db():
    """Create a temporary database for each test."""
    test_dir = tempfile.mkdtemp()
    db_path = os.path.join(test_dir, "test_schedule.db")

    original_db_path = os.environ.get('DB_PATH')
    os.environ['DB_PATH'] = db_path

    from src.core import db
    db.init_db()

    yield db_path

    if original_db_path:
        os.environ['DB_PATH'] = original_db_path
    else:
        del os.environ['DB_PATH']

    shutil.rmtree(test_dir, ignore_errors=True)


@pytest.fixture
def standup_fields():
    return {
        "title": "Standup",
        "person": "Louis",
        "context": "Training",
        "day": "2",
        "type": "Meeting",
        "time_slot": "AM",
    }


def make_fields(**overrides):
    fields = {
        "title": "Weekly sync",
        "person": "Nilson",
        "context": "Management",
        "day": "1",
        "type": "Meeting",
        "time_slot": "AM",
    }
    fields.update(overrides)
    return fields


@pytest.fixture
def entry_fields():
    """Factory for valid entry fields with overrides."""
    return make_fields
