# =======================================================================================
# checkin_station/services/session_context.py - Operator Session & Credential Store
# =======================================================================================
import json
import logging
import threading
from typing import NamedTuple, Optional

from sqlalchemy import text

from ..database import DatabaseManager, db_manager
from ..models.schemas import UserProfile
from ..utils.exceptions import (
    AccessDeniedError, BackendError, NotAuthenticatedError, ServerOfflineError,
)

logger = logging.getLogger(__name__)

TOKEN_KEY = "token"
PROFILE_KEY = "user"


class CredentialStore:
    """Key/value rows in the station's local store."""

    def __init__(self, db: Optional[DatabaseManager] = None):
        self.db = db or db_manager

    def get(self, key: str) -> Optional[str]:
        row = self.db.fetch_one(
            "SELECT value FROM station_credentials WHERE name = :key", {"key": key}
        )
        return row["value"] if row else None

    def set(self, key: str, value: str) -> None:
        with self.db.get_connection() as conn:
            conn.execute(text("DELETE FROM station_credentials WHERE name = :key"), {"key": key})
            conn.execute(
                text("""
                    INSERT INTO station_credentials (name, value, updated_at)
                    VALUES (:key, :value, CURRENT_TIMESTAMP)
                """),
                {"key": key, "value": value},
            )

    def delete(self, *keys: str) -> None:
        with self.db.get_connection() as conn:
            for key in keys:
                conn.execute(text("DELETE FROM station_credentials WHERE name = :key"), {"key": key})


class ProfileLookup(NamedTuple):
    profile: Optional[UserProfile]
    # True when the backend was unreachable and `profile` is the cached copy
    offline: bool = False


class SessionContext:
    """
    The operator's session, passed explicitly to pages and routes.

    Reads: `token`, `cached_profile`.
    Writes: `sign_in()` stores token + profile, `remember_profile()` refreshes the cache.
    Invalidation: `invalidate()` removes both; it runs on every 401 and on logout.
    The cached profile is for display only and never used to authorise.
    """

    def __init__(self, store: Optional[CredentialStore] = None, client=None):
        self.store = store or CredentialStore()
        self.client = client
        self._lock = threading.Lock()

    def bind_client(self, client):
        self.client = client

    @property
    def token(self) -> Optional[str]:
        return self.store.get(TOKEN_KEY)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    @property
    def cached_profile(self) -> Optional[UserProfile]:
        raw = self.store.get(PROFILE_KEY)
        if not raw:
            return None
        try:
            return UserProfile.model_validate(json.loads(raw))
        except ValueError:
            logger.warning("[session] Dropping unreadable cached profile")
            self.store.delete(PROFILE_KEY)
            return None

    def sign_in(self, token: str, profile: Optional[UserProfile] = None):
        with self._lock:
            self.store.set(TOKEN_KEY, token)
            if profile is not None:
                self.remember_profile(profile)
            else:
                self.store.delete(PROFILE_KEY)
        logger.info("[session] Signed in%s", f" as {profile.email}" if profile else "")

    def remember_profile(self, profile: UserProfile):
        self.store.set(PROFILE_KEY, profile.model_dump_json())

    def invalidate(self):
        """Forget the stored credential and the cached profile."""
        with self._lock:
            self.store.delete(TOKEN_KEY, PROFILE_KEY)
        logger.info("[session] Credentials cleared")

    def load_profile(self) -> ProfileLookup:
        """
        Fetch the profile fresh from the backend.

        - no token or 401: credentials cleared, NotAuthenticatedError raised
        - any other failure (unreachable, 403, 5xx, malformed body): credentials kept,
          cached copy returned with offline=True
        """
        if not self.token:
            raise NotAuthenticatedError("No stored credential")

        try:
            profile = self.client.fetch_user_profile()
        except NotAuthenticatedError:
            self.invalidate()
            raise
        except (ServerOfflineError, AccessDeniedError, BackendError) as e:
            logger.warning("[session] Profile fetch failed (%s); falling back to cached profile", e)
            return ProfileLookup(self.cached_profile, offline=True)

        self.remember_profile(profile)
        return ProfileLookup(profile)
