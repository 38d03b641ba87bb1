"""
Database package for Show Ingest.
"""

from .base import Base, get_db, get_engine, init_database
from .models import MixcloudOAuthTokenModel, ProfileModel, ShowModel, TrackModel

__all__ = [
    "Base",
    "get_db",
    "get_engine",
    "init_database",
    "MixcloudOAuthTokenModel",
    "ProfileModel",
    "ShowModel",
    "TrackModel",
]
