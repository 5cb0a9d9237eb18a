"""Async client for the Clinic Desk API with session caching and silent token refresh."""

from app.client.errors import SessionExpiredError
from app.client.session import ClientSession
from app.client.storage import DurableStorage, JsonFileStorage, MemoryStorage
from app.client.transport import ApiClient

__all__ = [
    "ApiClient",
    "ClientSession",
    "DurableStorage",
    "JsonFileStorage",
    "MemoryStorage",
    "SessionExpiredError",
]
