"""Blob Pet: a squishy virtual pet whose needs, mood and achievements live in BlobEngine."""

from blobpet.blob_entity import BlobEngine
from blobpet.models import Action, BlobView, Mood, MouthState, NeedState
from blobpet.database import JsonStore, MemoryStore, SqliteStore, open_store

__all__ = [
    "BlobEngine", "Action", "BlobView", "Mood", "MouthState", "NeedState",
    "JsonStore", "MemoryStore", "SqliteStore", "open_store",
]
