"""Shared fixtures: an in-memory Mongo collection, a temp receipt root and an HTTP client."""
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from mongomock_motor import AsyncMongoMockClient
from pymongo.errors import PyMongoError
from config import Settings
from main import create_app
from services.expense_store import ExpenseStore
from utils.receipt_storage import ReceiptStorage


@pytest.fixture
def collection():
    return AsyncMongoMockClient()["expense_tracker_test"]["expenses"]


@pytest.fixture
def store(collection):
    return ExpenseStore(collection)


@pytest.fixture
def storage(tmp_path):
    receipts = ReceiptStorage(str(tmp_path / "uploads"), "/uploads")
    receipts.initialize()
    return receipts


@pytest.fixture
def settings(storage):
    return Settings(upload_dir=str(storage.root))


@pytest.fixture
def app(settings, collection, storage):
    application = create_app(settings)
    # The lifespan does not run under ASGITransport; wire state directly
    application.state.expenses_collection = collection
    application.state.receipt_storage = storage
    return application


@pytest_asyncio.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http_client:
        yield http_client


class ReadOnlyCollection:
    """Delegates reads to a real collection while every update or delete fails."""

    def __init__(self, collection):
        self._collection = collection

    async def find_one(self, *args, **kwargs):
        return await self._collection.find_one(*args, **kwargs)

    async def find_one_and_update(self, *args, **kwargs):
        raise PyMongoError("not primary")

    async def delete_one(self, *args, **kwargs):
        raise PyMongoError("not primary")


@pytest.fixture
def read_only_collection(collection):
    return ReadOnlyCollection(collection)
