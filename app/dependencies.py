"""
FastAPI dependencies

Tests swap these through app.dependency_overrides.
"""
from fastapi import Depends

from database.supabase_client import ScoringDB, get_supabase_client
from database.storage import PhotoStorage
from change_feed.events import EventPublisher, get_publisher


def get_event_publisher() -> EventPublisher:
    return get_publisher()


def get_db(publisher: EventPublisher = Depends(get_event_publisher)) -> ScoringDB:
    """ScoringDB on the shared client, publishing to the process publisher"""
    return ScoringDB(get_supabase_client(), publisher=publisher)


def get_storage() -> PhotoStorage:
    return PhotoStorage(get_supabase_client())
