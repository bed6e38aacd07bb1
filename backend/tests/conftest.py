"""
Student Records - Test Configuration and Fixtures
"""
import os
import tempfile

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

# Keep the default engine away from the working directory
_tmp_dir = tempfile.mkdtemp(prefix="student-records-tests-")
os.environ['DATABASE_URL'] = f"sqlite:///{os.path.join(_tmp_dir, 'default.db')}"
os.environ['LOG_LEVEL'] = 'DEBUG'

from app.database import build_engine, create_tables
from app.exceptions import StorageError
from app.main import create_app
from app.services.form_session import FormSession
from app.services.record_store import RecordStore
from app.storage.memory_slot import MemorySlot


ALICE = {
    'studentName': 'Alice Stone',
    'studentId': '1001',
    'emailId': 'alice@x.com',
    'contactNumber': '9998887777',
}

BOB = {
    'studentName': 'Bob Marsh',
    'studentId': '1002',
    'emailId': 'bob@x.com',
    'contactNumber': '9998887778',
}

CAROL = {
    'studentName': 'Carol Reyes',
    'studentId': '1003',
    'emailId': 'carol@x.com',
    'contactNumber': '9998887779',
}


class FailingSlot(MemorySlot):
    """Memory slot whose writes can be switched to fail."""

    def __init__(self, initial=None):
        super().__init__(initial)
        self.fail_writes = False
        self.fail_reads = False

    def get(self, key):
        if self.fail_reads:
            raise StorageError("Could not read stored data.")
        return super().get(key)

    def set(self, key, value):
        if self.fail_writes:
            raise StorageError()
        super().set(key, value)


@pytest.fixture
def slot() -> FailingSlot:
    return FailingSlot()


@pytest.fixture
def store(slot) -> RecordStore:
    """Empty store over a memory slot"""
    record_store = RecordStore(slot)
    record_store.load()
    return record_store


@pytest.fixture
def populated_store(store) -> RecordStore:
    """Store holding Alice, Bob and Carol in that order"""
    for fields in (ALICE, BOB, CAROL):
        store.add(fields)
    return store


@pytest.fixture
def session(store) -> FormSession:
    return FormSession(store, delay_ms=0)


@pytest.fixture
def session_factory(tmp_path):
    """Session factory bound to a fresh SQLite file with the kv_store table"""
    engine = build_engine(f"sqlite:///{tmp_path / 'slot.db'}")
    create_tables(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def client(store):
    """Test client for an app owning the memory-backed store"""
    with TestClient(create_app(store)) as test_client:
        yield test_client
