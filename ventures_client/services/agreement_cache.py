"""Agreement Cache: normalized agreement documents kept in the durable store with a TTL.

Invariants:
    - All records live as one JSON object under STORAGE_KEY
    - Expired and malformed records are purged on every read
    - ttl_seconds <= 0 stores a record that never expires (expiresAt None)
    - Investment ids are keyed by their string form
    - A corrupt stored value reads as an empty cache
"""

import json
import logging
import time
from typing import Any, Callable

from ventures_client.core.storage_protocols import KeyValueStore

logger = logging.getLogger(__name__)

STORAGE_KEY = "investmentAgreementCache"


class AgreementCache:
    def __init__(
        self,
        store: KeyValueStore,
        ttl_seconds: float = 1800,
        clock: Callable[[], float] = time.time,
    ):
        self._store = store
        self.ttl_seconds = ttl_seconds
        self._clock = clock

    async def set(
        self,
        investment_id: object,
        agreement: dict,
        ttl_seconds: float | None = None,
        meta: dict | None = None,
    ) -> None:
        key = _cache_key(investment_id)
        if not key or not isinstance(agreement, dict):
            return
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        records = await self._read_clean()
        stored_at = self._clock()
        records[key] = {
            "agreement": agreement,
            "meta": meta or {},
            "storedAt": stored_at,
            "expiresAt": stored_at + ttl if ttl > 0 else None,
        }
        await self._write(records)

    async def get(self, investment_id: object) -> dict | None:
        key = _cache_key(investment_id)
        if not key:
            return None
        return (await self._read_clean()).get(key)

    async def get_all(self) -> dict[str, dict]:
        return await self._read_clean()

    async def remove(self, investment_id: object) -> None:
        key = _cache_key(investment_id)
        if not key:
            return
        records = await self._read()
        if key in records:
            del records[key]
            await self._write(records)

    async def clear(self) -> None:
        await self._store.remove(STORAGE_KEY)

    # ─── Persistence ─────────────────────────────────────────────

    async def _read(self) -> dict[str, Any]:
        raw = await self._store.get(STORAGE_KEY)
        if not raw:
            return {}
        try:
            records = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Discarding unreadable agreement cache", extra={"storage_key": STORAGE_KEY})
            return {}
        return records if isinstance(records, dict) else {}

    async def _read_clean(self) -> dict[str, Any]:
        records = await self._read()
        now = self._clock()
        stale = [
            key for key, record in records.items()
            if not isinstance(record, dict)
            or (record.get("expiresAt") is not None and record["expiresAt"] <= now)
        ]
        for key in stale:
            del records[key]
        if stale:
            await self._write(records)
        return records

    async def _write(self, records: dict[str, Any]) -> None:
        await self._store.set(STORAGE_KEY, json.dumps(records))


def _cache_key(investment_id: object) -> str | None:
    if investment_id is None:
        return None
    return str(investment_id) or None
