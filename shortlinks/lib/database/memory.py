"""In-memory link store."""

import logging
from typing import Dict, List, Optional, Set

from .base import LinkStoreBase
from .models import ClickEvent, LinkRecord


class MemoryLinkStore(LinkStoreBase):
    """Dictionary backed store living for the lifetime of the process.

    Each method completes without awaiting, so under asyncio every call is
    atomic with respect to the others.
    """

    name = "memory"

    def __init__(self, logger: Optional[logging.Logger] = None):
        super().__init__(None)
        self.logger = logger or logging.getLogger(__name__)
        self._records: Dict[str, LinkRecord] = {}

    async def insert(self, record: LinkRecord) -> bool:
        if record.code in self._records:
            return False
        self._records[record.code] = record
        return True

    async def fetch(self, code: str) -> Optional[LinkRecord]:
        return self._records.get(code)

    async def remove(self, code: str) -> bool:
        return self._records.pop(code, None) is not None

    async def append_click(self, code: str, event: ClickEvent) -> bool:
        record = self._records.get(code)
        if record is None:
            return False
        self._records[code] = record.with_click(event)
        return True

    async def codes(self) -> Set[str]:
        return set(self._records)

    async def records(self) -> List[LinkRecord]:
        return list(self._records.values())

    async def close(self) -> None:
        self.logger.debug(f"Discarding {len(self._records)} in-memory records")
        self._records.clear()
