"""Ceiling on simultaneous external provider jobs.

Slots live in the Django cache so every web and Celery process shares the same
budget when the cache is Redis. Each holder claims one of `limit` slot keys
with an atomic `cache.add`, so a slot is only ever freed by its own holder or
by `reclaim_stale()`.
"""

import logging
import time
import uuid
from contextlib import contextmanager

from django.conf import settings
from django.core.cache import cache

from roomlift.utils.exceptions import ProviderCapacityError

logger = logging.getLogger(__name__)

SLOTS_CACHE_KEY = "roomlift:provider_slots"


class ProviderSlots:
    """Counting semaphore shared through the cache"""

    def __init__(self, limit=None, key=SLOTS_CACHE_KEY, ttl=None):
        self.limit = limit or settings.PROVIDER_MAX_CONCURRENT_JOBS
        self.key = key
        # Held slots never lapse on their own; older ones are only freed by reclaim_stale()
        self.ttl = ttl or settings.STALE_JOB_SECONDS

    def slot_keys(self):
        return [f"{self.key}:{index}" for index in range(self.limit)]

    def holders(self) -> dict:
        return cache.get_many(self.slot_keys())

    def in_use(self) -> int:
        return len(self.holders())

    def _claim(self):
        token = uuid.uuid4().hex
        holder = {"token": token, "acquired_at": time.time()}
        for slot_key in self.slot_keys():
            if cache.add(slot_key, holder, timeout=None):
                return slot_key, token
        return None, None

    def _release(self, slot_key, token):
        holder = cache.get(slot_key)
        # The slot may have been reclaimed and handed to another job meanwhile
        if holder and holder.get("token") == token:
            cache.delete(slot_key)

    def reclaim_stale(self) -> int:
        """
        Free slots held longer than `ttl`.

        A worker that died mid-job never releases its slot; the stale-job
        sweep calls this so the leak does not shrink the budget for good.
        """
        cutoff = time.time() - self.ttl
        reclaimed = 0
        for slot_key, holder in self.holders().items():
            if holder.get("acquired_at", 0) < cutoff:
                cache.delete(slot_key)
                reclaimed += 1
        if reclaimed:
            logger.warning(f"Reclaimed {reclaimed} provider slots held longer than {self.ttl}s")
        return reclaimed

    @contextmanager
    def acquire(self):
        """
        Hold one slot for the duration of the block.

        Raises:
            ProviderCapacityError: every slot is taken
        """
        slot_key, token = self._claim()
        if slot_key is None:
            logger.warning(f"Provider capacity exhausted ({self.limit} jobs in flight)")
            raise ProviderCapacityError(self.limit)
        try:
            yield slot_key
        finally:
            self._release(slot_key, token)
