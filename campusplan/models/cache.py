import logging
import threading
import weakref
from collections import OrderedDict
from typing import Any, Dict, Optional

from ..interfaces import ModelCache
from .parameters import Params, finite_params, get_model_cache_limit

logger = logging.getLogger("CampusModel")


def create_params_cache_key(params: Params) -> str:
    """Canonical fixed-precision key for a params record."""
    params = finite_params(params)
    return "|".join([
        f"{params.critical_load_mw:.4f}",
        str(int(round(params.whitespace_area_sqft))),
        str(int(round(params.data_halls))),
        f"{params.whitespace_ratio:.4f}",
        f"{params.rack_power_density:.4f}",
        params.redundancy.value,
        f"{params.pue:.4f}",
        params.cooling_type.value,
        params.containment.value,
    ])


class CampusModelCache(ModelCache):
    """
    Bounded model cache keyed by campus object identity, then by params key.

    Each campus object gets at most `limit` entries; inserting a new key beyond
    that evicts the oldest inserted key (FIFO, not LRU). A campus's entries are
    dropped automatically once the campus object is garbage collected.
    """

    def __init__(self, limit: Optional[int] = None):
        self._limit = limit or get_model_cache_limit()
        self._entries: Dict[int, "OrderedDict[str, Any]"] = {}
        # Reentrant: finalizers may fire from a collection triggered inside a locked section.
        self._lock = threading.RLock()

    @property
    def limit(self) -> int:
        return self._limit

    def get(self, campus: Any, key: str) -> Optional[Any]:
        with self._lock:
            cached = self._entries.get(id(campus))
            if cached is None:
                return None
            return cached.get(key)

    def put(self, campus: Any, key: str, model: Any) -> Any:
        with self._lock:
            campus_id = id(campus)
            cached = self._entries.get(campus_id)
            if cached is None:
                cached = OrderedDict()
                self._entries[campus_id] = cached
                weakref.finalize(campus, self._discard, campus_id)

            existing = cached.get(key)
            if existing is not None:
                # Another caller computed the same entry first; keep its reference.
                return existing

            if len(cached) >= self._limit:
                evicted_key, _ = cached.popitem(last=False)
                logger.debug(f"Evicted campus model cache entry {evicted_key}")
            cached[key] = model
            return model

    def size(self, campus: Any) -> int:
        with self._lock:
            return len(self._entries.get(id(campus), ()))

    def tracked_campus_count(self) -> int:
        with self._lock:
            return len(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def _discard(self, campus_id: int) -> None:
        with self._lock:
            self._entries.pop(campus_id, None)


_model_cache: Optional[CampusModelCache] = None


def get_model_cache() -> CampusModelCache:
    """Get the global campus model cache instance."""
    global _model_cache
    if _model_cache is None:
        _model_cache = CampusModelCache()
    return _model_cache
