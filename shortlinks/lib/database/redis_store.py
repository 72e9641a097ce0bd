"""Redis implementation of the link store."""

import json
import logging
from typing import List, Optional, Set

import redis.asyncio as redis

from .base import LinkStoreBase
from .models import ClickEvent, LinkRecord

# Append only while the record key exists, so a click racing a delete
# cannot resurrect an orphaned click list.
APPEND_CLICK_SCRIPT = """
if redis.call('EXISTS', KEYS[1]) == 1 then
    return redis.call('RPUSH', KEYS[2], ARGV[1])
end
return 0
"""


class RedisLinkStore(LinkStoreBase):
    """Redis store for link records.

    Layout per code:
        ``{prefix}:link:{code}``   JSON of the record without clicks
        ``{prefix}:clicks:{code}`` list of JSON click events, oldest first
    """

    name = "redis"

    def __init__(
        self,
        redis_url: str,
        key_prefix: str = "shortlinks",
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize Redis store.

        Args:
            redis_url: Redis connection URL (e.g., redis://localhost:6379/0)
            key_prefix: Namespace for every key this store writes
            logger: Optional logger instance
        """
        super().__init__(redis_url)
        self.redis_url = redis_url
        self.key_prefix = key_prefix
        self.logger = logger or logging.getLogger(__name__)
        self.client: Optional[redis.Redis] = None

    async def connect(self) -> None:
        """Connect to Redis."""
        if self.client is not None:
            return

        self.client = redis.from_url(
            self.redis_url,
            encoding="utf-8",
            decode_responses=True,
        )
        await self.client.ping()
        self.logger.info("Connected to Redis")

    async def _get_client(self) -> redis.Redis:
        if self.client is None:
            await self.connect()
        return self.client

    def link_key(self, code: str) -> str:
        return f"{self.key_prefix}:link:{code}"

    def clicks_key(self, code: str) -> str:
        return f"{self.key_prefix}:clicks:{code}"

    async def insert(self, record: LinkRecord) -> bool:
        client = await self._get_client()
        payload = json.dumps(record.to_dict(include_clicks=False))

        try:
            created = await client.set(self.link_key(record.code), payload, nx=True)
        except Exception as e:
            self.logger.error(f"Redis insert error for {record.code}: {e}")
            raise

        if not created:
            self.logger.warning(f"Short code already exists: {record.code}")
            return False
        return True

    async def fetch(self, code: str) -> Optional[LinkRecord]:
        client = await self._get_client()

        async with client.pipeline(transaction=True) as pipe:
            pipe.get(self.link_key(code))
            pipe.lrange(self.clicks_key(code), 0, -1)
            payload, raw_clicks = await pipe.execute()

        if payload is None:
            return None
        return self._to_record(payload, raw_clicks)

    async def remove(self, code: str) -> bool:
        client = await self._get_client()

        try:
            async with client.pipeline(transaction=True) as pipe:
                pipe.delete(self.link_key(code))
                pipe.delete(self.clicks_key(code))
                deleted, _ = await pipe.execute()
        except Exception as e:
            self.logger.error(f"Redis delete error for {code}: {e}")
            raise
        return deleted > 0

    async def append_click(self, code: str, event: ClickEvent) -> bool:
        client = await self._get_client()

        try:
            length = await client.eval(
                APPEND_CLICK_SCRIPT,
                2,
                self.link_key(code),
                self.clicks_key(code),
                json.dumps(event.to_dict()),
            )
        except Exception as e:
            self.logger.error(f"Redis click append error for {code}: {e}")
            raise
        return int(length) > 0

    async def codes(self) -> Set[str]:
        client = await self._get_client()
        prefix = self.link_key("")
        return {
            key[len(prefix):]
            async for key in client.scan_iter(match=f"{prefix}*")
        }

    async def records(self) -> List[LinkRecord]:
        records = []
        for code in await self.codes():
            record = await self.fetch(code)
            # Deleted between the scan and the fetch
            if record is not None:
                records.append(record)
        return records

    @staticmethod
    def _to_record(payload: str, raw_clicks: List[str]) -> LinkRecord:
        data = json.loads(payload)
        data["clicks"] = [json.loads(raw) for raw in raw_clicks]
        return LinkRecord.from_dict(data)

    async def health_check(self) -> bool:
        try:
            client = await self._get_client()
            await client.ping()
            return True
        except Exception as e:
            self.logger.error(f"Redis health check failed: {e}")
            return False

    async def close(self) -> None:
        """Close Redis connection."""
        if self.client:
            await self.client.aclose()
            self.client = None
            self.logger.info("Redis connection closed")
