# utils/cache.py
"""
Small in-process TTL cache.

Entries live for ``ttl_seconds`` (5 minutes by default). There is no
invalidation across processes, so only a single-process deployment sees
consistent reads after a write.
"""
import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple

DEFAULT_TTL_SECONDS = 300


class TTLCache:
     def __init__(self, ttl_seconds: int = DEFAULT_TTL_SECONDS, clock: Callable[[], float] = time.monotonic):
          self.ttl_seconds = ttl_seconds
          self._clock = clock
          self._data: Dict[str, Tuple[Any, float]] = {}
          self._lock = threading.Lock()

     def get(self, key: str) -> Optional[Any]:
          with self._lock:
               entry = self._data.get(key)
               if entry is None:
                    return None
               value, expires_at = entry
               if self._clock() > expires_at:
                    del self._data[key]
                    return None
               return value

     def set(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> None:
          ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
          with self._lock:
               self._data[key] = (value, self._clock() + ttl)

     def delete(self, key: str) -> None:
          with self._lock:
               self._data.pop(key, None)

     def clear(self) -> None:
          with self._lock:
               self._data.clear()

     def get_or_set(self, key: str, loader: Callable[[], Any]) -> Any:
          value = self.get(key)
          if value is None:
               value = loader()
               if value is not None:
                    self.set(key, value)
          return value


def notification_preferences_key(user_id: int) -> str:
     return f"user:notification_preferences:{user_id}"


# Process-wide cache for user profile / preference reads
profile_cache = TTLCache()
