import pytest

from presupuestos.schemas.budget import BudgetCreate
from presupuestos.services.attachment_manager import AttachmentManager
from tests.fakes import InMemoryObjectStore, InMemoryRecordStore


# Make anyio run on asyncio
@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture
def events():
    return []


@pytest.fixture
def record_store(events):
    return InMemoryRecordStore(events)


@pytest.fixture
def object_store(events):
    return InMemoryObjectStore(events)


@pytest.fixture
def manager(record_store, object_store):
    return AttachmentManager(record_store, object_store)


@pytest.fixture
def budget_fields():
    return BudgetCreate(title="Q1 Marketing", deadline="2025-03-31", details=None)

