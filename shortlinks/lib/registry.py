"""Link registry: the single owner of stored short link records."""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

from .database.base import LinkStoreBase
from .database.models import ClickEvent, LinkRecord, ensure_utc
from .errors import (
    CollisionError,
    CustomCodesDisabledError,
    ExhaustedError,
    InvalidDurationError,
    InvalidUrlError,
    NotFoundError,
)
from .expiry import LinkState, classify
from .shortcode import DEFAULT_MAX_RETRIES, ShortCodeGenerator, allocate
from .common.validators import is_valid_url, is_valid_validity


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class LinkRegistry:
    """Creates, looks up, lists and deletes link records.

    All reads and writes of persisted state pass through here. Mutations of a
    single code (create, delete, click append) are serialized on a lock
    stripe chosen by the code, so unrelated codes rarely contend. Creates
    also share an allocation lock that makes "snapshot codes, pick one,
    insert it" a single step.
    """

    def __init__(
        self,
        store: LinkStoreBase,
        short_code_generator: Optional[ShortCodeGenerator] = None,
        logger: Optional[logging.Logger] = None,
        enable_custom_codes: bool = True,
        max_collision_retries: int = DEFAULT_MAX_RETRIES,
        lock_stripes: int = 64,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize the registry.

        Args:
            store: Storage backend
            short_code_generator: Optional short code generator
            logger: Optional logger
            enable_custom_codes: Whether callers may request their own codes
            max_collision_retries: Maximum generated candidates per create
            lock_stripes: Number of per-code locks
            clock: Source of the creation time when ``now`` is not passed
        """
        if lock_stripes < 1:
            raise ValueError("lock_stripes must be at least 1")
        self.store = store
        self.generator = short_code_generator or ShortCodeGenerator()
        self.logger = logger or logging.getLogger(__name__)
        self.enable_custom_codes = enable_custom_codes
        self.max_collision_retries = max_collision_retries
        self.clock = clock or utc_now
        self._allocation_lock = asyncio.Lock()
        self._locks = [asyncio.Lock() for _ in range(lock_stripes)]

    def _lock_for(self, code: str) -> asyncio.Lock:
        return self._locks[hash(code) % len(self._locks)]

    async def create(
        self,
        destination: str,
        validity_minutes: float,
        requested_code: Optional[str] = None,
        owner: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> LinkRecord:
        """Create a new link record.

        Args:
            destination: Absolute http(s) URL to redirect to
            validity_minutes: Length of the validity window, must be > 0
            requested_code: Optional custom short code
            owner: Opaque creator identity, stored as-is
            now: Creation time (the registry clock if not given)

        Returns:
            The stored record, with no clicks

        Raises:
            InvalidUrlError: If the destination is not a valid http(s) URL
            InvalidDurationError: If the validity is not a positive number
            CustomCodesDisabledError: If a code is requested while disabled
            CollisionError: If the requested code is taken
            ExhaustedError: If no free code could be generated
        """
        is_valid, error = is_valid_url(destination)
        if not is_valid:
            raise InvalidUrlError(f"Invalid URL: {error}")

        is_valid, error = is_valid_validity(validity_minutes)
        if not is_valid:
            raise InvalidDurationError(error)

        if requested_code and not self.enable_custom_codes:
            raise CustomCodesDisabledError("Custom short codes are not enabled")

        created_at = ensure_utc(now) if now is not None else self.clock()
        try:
            expires_at = created_at + timedelta(minutes=validity_minutes)
        except OverflowError:
            raise InvalidDurationError("Validity is too large") from None
        if expires_at <= created_at:
            raise InvalidDurationError("Validity is shorter than the clock resolution")

        async with self._allocation_lock:
            # Each lost insert race on a generated code spends one retry
            for _ in range(self.max_collision_retries):
                code = allocate(
                    requested_code,
                    await self.store.codes(),
                    generator=self.generator,
                    max_retries=self.max_collision_retries,
                )
                record = LinkRecord(
                    code=code,
                    destination=destination,
                    created_at=created_at,
                    expires_at=expires_at,
                    owner=owner,
                )
                async with self._lock_for(code):
                    inserted = await self.store.insert(record)

                if inserted:
                    break
                if requested_code:
                    # Another process sharing the store took the code first
                    raise CollisionError(code)
                self.logger.warning(f"Generated code {code} was taken concurrently, retrying")
            else:
                raise ExhaustedError(self.max_collision_retries)

        self.logger.info(
            f"Created short link: {code} -> {destination} "
            f"(expires {expires_at.isoformat()})"
        )
        return record

    async def get(self, code: str) -> Optional[LinkRecord]:
        """Look up a record without evaluating its expiry."""
        return await self.store.fetch(code)

    async def get_detail(self, code: str) -> LinkRecord:
        """Look up a record with its full click history.

        Raises:
            NotFoundError: If the code does not exist
        """
        record = await self.store.fetch(code)
        if record is None:
            raise NotFoundError(code)
        return record

    async def delete(self, code: str) -> None:
        """Delete a record, freeing its code for reuse.

        Raises:
            NotFoundError: If the code does not exist
        """
        async with self._lock_for(code):
            removed = await self.store.remove(code)

        if not removed:
            raise NotFoundError(code)

        self.logger.info(f"Deleted short link: {code}")

    async def list(self, owner: Optional[str] = None) -> List[LinkRecord]:
        """List records, newest first.

        Args:
            owner: Only return records created by this identity

        Returns:
            Records ordered by ``created_at`` descending
        """
        records = await self.store.records()
        if owner is not None:
            records = [r for r in records if r.owner == owner]
        return sorted(records, key=lambda r: (r.created_at, r.code), reverse=True)

    async def append_click(self, code: str, event: ClickEvent) -> ClickEvent:
        """Persist a click event. Use ``record_click`` rather than calling this directly.

        Raises:
            NotFoundError: If the code no longer exists
        """
        async with self._lock_for(code):
            appended = await self.store.append_click(code, event)

        if not appended:
            raise NotFoundError(code)

        self.logger.debug(f"Recorded click on {code} from {event.source}")
        return event

    async def get_statistics(self, now: datetime) -> Dict[str, Any]:
        """Get registry-wide statistics.

        Args:
            now: Instant live/expired counts are evaluated at

        Returns:
            Dictionary with statistics
        """
        records = await self.store.records()
        expired = sum(1 for r in records if classify(r, now) is LinkState.EXPIRED)

        return {
            "total_links": len(records),
            "live_links": len(records) - expired,
            "expired_links": expired,
            "total_clicks": sum(r.click_count for r in records),
            "storage": self.store.name,
            "custom_codes_enabled": self.enable_custom_codes,
        }

    async def health_check(self) -> Dict[str, bool]:
        healthy = await self.store.health_check()
        return {"storage": healthy, "overall": healthy}

    async def close(self) -> None:
        """Close store connections."""
        await self.store.close()
