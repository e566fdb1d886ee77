"""
Elevated-access check for question uploads.

Resolution order for a signed-in user:
  1. app_metadata claim  admin == true  or  role == "admin"
  2. a row for the email in the admin_users table
  3. the ADMIN_EMAILS allow-list from settings

Results are cached per email in an explicit PermissionCache so tests can
inspect, expire or bypass entries. Lookup failures deny access and are not
cached.
"""
import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger("tenq.permissions")


@dataclass
class CacheEntry:
    key: str
    value: bool
    stored_at: float


class PermissionCache:
    def __init__(self, ttl_seconds: float = 300, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def entry(self, key: str) -> Optional[CacheEntry]:
        return self._entries.get(key)

    def is_expired(self, entry: CacheEntry) -> bool:
        return self.clock() - entry.stored_at >= self.ttl_seconds

    def get(self, key: str) -> Optional[bool]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self.is_expired(entry):
            del self._entries[key]
            return None
        return entry.value

    def set(self, key: str, value: bool) -> None:
        self._entries[key] = CacheEntry(key=key, value=value, stored_at=self.clock())

    def invalidate(self, key: str | None = None) -> None:
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)


def _metadata(user) -> dict:
    meta = getattr(user, "app_metadata", None)
    if meta is None and isinstance(user, dict):
        meta = user.get("app_metadata")
    return meta or {}


def _email(user) -> str:
    email = getattr(user, "email", None)
    if email is None and isinstance(user, dict):
        email = user.get("email")
    return (email or "").strip().lower()


class PermissionService:
    def __init__(self, supabase_client=None, admin_emails: list[str] | None = None,
                 cache: PermissionCache | None = None):
        self.client = supabase_client
        self.admin_emails = {e.strip().lower() for e in (admin_emails or [])}
        self.cache = cache or PermissionCache()

    def has_elevated_access(self, user) -> bool:
        email = _email(user)
        if not email:
            return False

        cached = self.cache.get(email)
        if cached is not None:
            return cached

        meta = _metadata(user)
        if meta.get("admin") is True or meta.get("role") == "admin":
            logger.info("Admin access granted for %s via claim", email)
            self.cache.set(email, True)
            return True

        if self.client is not None:
            try:
                result = self.client.table("admin_users") \
                    .select("email") \
                    .eq("email", email) \
                    .execute()
            except Exception as exc:
                logger.error("Admin lookup failed for %s: %s", email, exc, exc_info=True)
                return False
            if result.data:
                logger.info("Admin access granted for %s via admin_users", email)
                self.cache.set(email, True)
                return True

        granted = email in self.admin_emails
        if granted:
            logger.info("Admin access granted for %s via allow-list", email)
        else:
            logger.info("Admin access denied for %s", email)
        self.cache.set(email, granted)
        return granted
