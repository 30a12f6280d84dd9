import asyncio
import json
from datetime import datetime, timezone
from typing import Optional

import redis

from app.core_settings import Settings
from app.domain.models import HistoryRecord
from shared.core import get_logger

logger = get_logger(__name__)

class KeyValueStore:
    """String key/value storage used for lookup history"""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError

    def ping(self) -> bool:
        return True

class InMemoryKeyValueStore(KeyValueStore):
    def __init__(self):
        self._data: dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

class RedisKeyValueStore(KeyValueStore):
    """
    Redis backed store. A Redis error on any call is logged and served from
    process memory instead, so history never fails a lookup.
    """

    def __init__(self, client: redis.Redis, fallback: Optional[KeyValueStore] = None):
        self.client = client
        self.fallback = fallback or InMemoryKeyValueStore()

    def get(self, key: str) -> Optional[str]:
        try:
            return self.client.get(key)
        except redis.RedisError as e:
            logger.warning(f"Redis read failed for {key}, using local copy: {e}")
            return self.fallback.get(key)

    def set(self, key: str, value: str) -> None:
        try:
            self.client.set(key, value)
            return
        except redis.RedisError as e:
            logger.warning(f"Redis write failed for {key}, keeping it locally: {e}")
        self.fallback.set(key, value)

    def delete(self, key: str) -> None:
        self.fallback.delete(key)
        try:
            self.client.delete(key)
        except redis.RedisError as e:
            logger.warning(f"Redis delete failed for {key}: {e}")

    def ping(self) -> bool:
        return bool(self.client.ping())

def build_key_value_store(settings: Settings) -> KeyValueStore:
    """Redis when REDIS_URL is reachable, otherwise process memory."""
    if not settings.REDIS_URL:
        return InMemoryKeyValueStore()
    try:
        client = redis.from_url(settings.REDIS_URL, decode_responses=True, socket_connect_timeout=1)
        client.ping()
    except redis.RedisError as e:
        logger.warning(f"Redis unavailable at startup, keeping history in memory: {e}")
        return InMemoryKeyValueStore()
    logger.info("History store backed by Redis")
    return RedisKeyValueStore(client)

def _encode(records: list[HistoryRecord]) -> str:
    return json.dumps(
        [
            {
                "trackingNumber": r.tracking_number,
                "courierName": r.carrier_name,
                "timestamp": r.timestamp.isoformat(),
            }
            for r in records
        ],
        ensure_ascii=False,
    )

def _decode(raw: Optional[str]) -> list[HistoryRecord]:
    if not raw:
        return []
    try:
        items = json.loads(raw)
        return [
            HistoryRecord(
                tracking_number=item["trackingNumber"],
                carrier_name=item["courierName"],
                timestamp=datetime.fromisoformat(item["timestamp"]),
            )
            for item in items
        ]
    except (ValueError, KeyError, TypeError) as e:
        logger.warning(f"Discarding unreadable lookup history: {e}")
        return []

class HistoryStore:
    """
    Most-recent-first list of past lookups stored as one JSON document.

    Unique by tracking number: recording a number again moves it to the front
    with the new timestamp. When the list grows past `limit` the oldest entry
    is dropped. Each read-modify-write runs under a lock so concurrent
    lookups cannot interleave.
    """

    def __init__(self, kv: KeyValueStore, key: str = "expressHistory", limit: int = 20):
        if limit < 1:
            raise ValueError("History limit must be positive")
        self.kv = kv
        self.key = key
        self.limit = limit
        self._lock = asyncio.Lock()

    async def get_history(self) -> list[HistoryRecord]:
        return _decode(self.kv.get(self.key))

    async def record(
        self,
        tracking_number: str,
        carrier_name: str,
        timestamp: Optional[datetime] = None,
    ) -> list[HistoryRecord]:
        entry = HistoryRecord(
            tracking_number=tracking_number,
            carrier_name=carrier_name,
            timestamp=timestamp or datetime.now(timezone.utc),
        )
        async with self._lock:
            history = _decode(self.kv.get(self.key))
            history = [r for r in history if r.tracking_number != tracking_number]
            history.insert(0, entry)
            del history[self.limit:]
            self.kv.set(self.key, _encode(history))
        return history

    async def clear(self) -> None:
        async with self._lock:
            self.kv.delete(self.key)

    def ping(self) -> bool:
        return self.kv.ping()
