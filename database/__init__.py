"""
Supabase persistence for competitions, scores, medals and photos
"""
from .supabase_client import (
    ScoringDB,
    DatabaseError,
    RecordNotFoundError,
    get_supabase_client,
)
from .storage import PhotoStorage, PhotoStorageError, compress_image

__all__ = [
    "ScoringDB",
    "DatabaseError",
    "RecordNotFoundError",
    "get_supabase_client",
    "PhotoStorage",
    "PhotoStorageError",
    "compress_image",
]
