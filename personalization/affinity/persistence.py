"""
Profile persistence: load/save one affinity profile document per viewer.

Implementations: in-memory (tests, single process), JSON file (local), and
Firestore (production, collection userPreferences). Swap via server config.
Absent documents load as None; the store treats that as an empty profile.
"""

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, Union

from ..models.profile import AffinityProfile

logger = logging.getLogger(__name__)

# Optional async client (required by FirestoreProfilePersistence)
try:
    from google.cloud.firestore import AsyncClient
    from google.oauth2 import service_account
    _HAS_ASYNC_FIRESTORE = True
except ImportError:
    _HAS_ASYNC_FIRESTORE = False
    AsyncClient = None
    service_account = None


class ProfilePersistence(Protocol):
    """Protocol for per-viewer profile documents. Implement for memory, JSON file, or Firestore."""

    async def load(self, viewer_id: str) -> Optional[AffinityProfile]:
        """Return the stored profile, or None when the viewer has no document."""
        ...

    async def save(self, viewer_id: str, profile: AffinityProfile) -> None:
        """Persist the full profile document. Raises on failure."""
        ...


class InMemoryProfilePersistence:
    """Profile documents kept as JSON-mode dicts in process memory."""

    def __init__(self):
        self._docs: Dict[str, Dict[str, Any]] = {}

    async def load(self, viewer_id: str) -> Optional[AffinityProfile]:
        doc = self._docs.get(viewer_id)
        return AffinityProfile.model_validate(doc) if doc is not None else None

    async def save(self, viewer_id: str, profile: AffinityProfile) -> None:
        self._docs[viewer_id] = profile.model_dump(mode="json")

    def __len__(self) -> int:
        return len(self._docs)


class JsonProfilePersistence:
    """Profile documents backed by a single JSON file (e.g. data/profiles.json)."""

    def __init__(self, path: Union[Path, str]):
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._docs: Dict[str, Dict[str, Any]] = {}
        self._write_lock = asyncio.Lock()
        self._load()

    def _load(self) -> None:
        if not self._path.exists():
            return
        try:
            with open(self._path) as f:
                data = json.load(f)
            profiles = data.get("profiles", {}) if isinstance(data, dict) else {}
            if isinstance(profiles, dict):
                self._docs = {vid: doc for vid, doc in profiles.items() if isinstance(doc, dict)}
        except (json.JSONDecodeError, IOError) as e:
            logger.warning("[profile] JSON_LOAD_FAILED path=%s error=%s", self._path, e)
            self._docs = {}

    def _write(self, docs: Dict[str, Dict[str, Any]]) -> None:
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        with open(tmp, "w") as f:
            json.dump({"profiles": docs}, f, indent=2)
        os.replace(tmp, self._path)

    async def load(self, viewer_id: str) -> Optional[AffinityProfile]:
        doc = self._docs.get(viewer_id)
        return AffinityProfile.model_validate(doc) if doc is not None else None

    async def save(self, viewer_id: str, profile: AffinityProfile) -> None:
        async with self._write_lock:
            docs = dict(self._docs)
            docs[viewer_id] = profile.model_dump(mode="json")
            write = asyncio.ensure_future(asyncio.to_thread(self._write, docs))
            try:
                await asyncio.shield(write)
            except asyncio.CancelledError:
                # The worker thread cannot be stopped: hold the lock until the file
                # is replaced so the next save (e.g. a rollback) lands after it.
                await asyncio.wait([write])
                if not write.cancelled() and write.exception() is not None:
                    logger.warning("[profile] JSON_WRITE_FAILED path=%s error=%s", self._path, write.exception())
                raise
            self._docs = docs


def _to_firestore_doc(profile: AffinityProfile) -> Dict[str, Any]:
    """Firestore document layout (camelCase, as written by the web client)."""
    return {
        "categoryScores": dict(profile.category_scores),
        "lastReadPosts": list(profile.last_read_items),
        "readingHistory": [
            {
                "postId": e.item_id,
                "timestamp": e.timestamp.isoformat(),
                "timeSpent": e.time_spent_seconds,
                "completed": e.completed,
                "categories": list(e.categories),
            }
            for e in profile.history
        ],
    }


def _from_firestore_doc(viewer_id: str, doc: Dict[str, Any]) -> AffinityProfile:
    history = []
    for h in doc.get("readingHistory") or []:
        history.append({
            "viewer_id": viewer_id,
            "item_id": h.get("postId", ""),
            "timestamp": h.get("timestamp"),
            "time_spent_seconds": h.get("timeSpent", 0),
            "completed": bool(h.get("completed", False)),
            "categories": h.get("categories") or [],
        })
    return AffinityProfile.model_validate({
        "viewer_id": viewer_id,
        "category_scores": doc.get("categoryScores") or {},
        "last_read_items": doc.get("lastReadPosts") or [],
        "history": history,
    })


class FirestoreProfilePersistence:
    """
    Profile documents in Firestore collection userPreferences/{viewer_id}.
    Uses google.cloud.firestore.AsyncClient with service account credentials.
    """

    COLLECTION = "userPreferences"

    def __init__(
        self,
        project_id: Optional[str] = None,
        credentials_path: Optional[Union[Path, str]] = None,
    ):
        if not _HAS_ASYNC_FIRESTORE:
            raise ImportError(
                "google-cloud-firestore is required for FirestoreProfilePersistence. "
                "pip install 'personalization-engine[firebase]'"
            )
        if not credentials_path:
            raise ValueError("FirestoreProfilePersistence requires credentials_path")
        path = str(Path(credentials_path).resolve())
        creds = service_account.Credentials.from_service_account_file(path)
        self._db = AsyncClient(project=project_id or creds.project_id, credentials=creds)

    def _doc_ref(self, viewer_id: str):
        return self._db.collection(self.COLLECTION).document(viewer_id)

    async def load(self, viewer_id: str) -> Optional[AffinityProfile]:
        snapshot = await self._doc_ref(viewer_id).get()
        if not snapshot.exists:
            return None
        return _from_firestore_doc(viewer_id, snapshot.to_dict() or {})

    async def save(self, viewer_id: str, profile: AffinityProfile) -> None:
        await self._doc_ref(viewer_id).set(_to_firestore_doc(profile))
