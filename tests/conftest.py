"""
Global test configuration for the EPG updater.

Every test gets its own SQLite database file under pytest's tmp_path.
"""
import os
import tempfile
from pathlib import Path

# Keep the import-time settings away from the working directory
os.environ.setdefault("DATABASE_PATH", str(Path(tempfile.gettempdir()) / "epg_updater_tests" / "epg.db"))
os.environ.setdefault("EPG_IMPORT_WEBHOOK_URL", "")

import pytest
import pytest_asyncio

from epg_updater import database
from epg_updater.services.epg_store import EpgStore, reset_epg_store
from epg_updater.services.notification_service import reset_import_notifier


@pytest.fixture(autouse=True)
def _reset_singletons():
    reset_epg_store()
    reset_import_notifier()
    yield
    reset_epg_store()
    reset_import_notifier()


@pytest_asyncio.fixture
async def db(tmp_path):
    """Initialise a fresh database for the test and close it afterwards."""
    await database.init_db(str(tmp_path / "epg.db"))
    yield
    await database.close_db()


@pytest_asyncio.fixture
async def store(db) -> EpgStore:
    return EpgStore()
