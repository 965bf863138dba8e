"""
Affinity Profile Store and its persistence port.

Public API: AffinityProfileStore, apply_reading_event, ProfilePersistence and
its implementations.
"""

from .persistence import (
    FirestoreProfilePersistence,
    InMemoryProfilePersistence,
    JsonProfilePersistence,
    ProfilePersistence,
)
from .store import AffinityProfileStore, apply_reading_event

__all__ = [
    "AffinityProfileStore",
    "apply_reading_event",
    "ProfilePersistence",
    "InMemoryProfilePersistence",
    "JsonProfilePersistence",
    "FirestoreProfilePersistence",
]
