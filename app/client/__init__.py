from app.client.api import DiffDigestClient, NotesClientError, SessionExpiredError
from app.client.batch import generate_all
from app.client.controller import NoteSessionController, NoteState
from app.client.listing import ItemListing
from app.client.models import Item, PaginationState, StreamingSnapshot
from app.client.storage import (
    JsonFileBackend,
    LocalRecordStore,
    MemoryBackend,
    open_local_store,
)

__all__ = [
    "DiffDigestClient",
    "NotesClientError",
    "SessionExpiredError",
    "generate_all",
    "NoteSessionController",
    "NoteState",
    "ItemListing",
    "Item",
    "PaginationState",
    "StreamingSnapshot",
    "JsonFileBackend",
    "LocalRecordStore",
    "MemoryBackend",
    "open_local_store",
]
