"""Abstract base class for link store implementations."""

from abc import ABC, abstractmethod
from typing import List, Optional, Set

from .models import ClickEvent, LinkRecord


class LinkStoreBase(ABC):
    """Durable key-value surface the registry persists records through.

    Every method is atomic for the single code it touches. Writes to distinct
    codes are independent, and a read observes the most recent completed
    write to that code.
    """

    name = "base"

    def __init__(self, db_config: Optional[str] = None):
        """Initialize store.

        Args:
            db_config: Backend connection string, if the backend needs one
        """
        self.db_config = db_config

    @abstractmethod
    async def insert(self, record: LinkRecord) -> bool:
        """Store a new record.

        Args:
            record: Record to insert

        Returns:
            True if inserted, False if the code already exists
        """
        pass

    @abstractmethod
    async def fetch(self, code: str) -> Optional[LinkRecord]:
        """Get the record for a code, including its full click history.

        Args:
            code: Short code to lookup

        Returns:
            The record, or None if not found
        """
        pass

    @abstractmethod
    async def remove(self, code: str) -> bool:
        """Delete a record and its clicks.

        Args:
            code: Short code to delete

        Returns:
            True if deleted, False if not found
        """
        pass

    @abstractmethod
    async def append_click(self, code: str, event: ClickEvent) -> bool:
        """Append a click event to a record's history.

        Concurrent appends to the same code must all survive.

        Args:
            code: Short code the click belongs to
            event: Click to append

        Returns:
            True if appended, False if the code does not exist
        """
        pass

    @abstractmethod
    async def codes(self) -> Set[str]:
        """Return every code currently stored."""
        pass

    @abstractmethod
    async def records(self) -> List[LinkRecord]:
        """Return every stored record, in no particular order."""
        pass

    async def health_check(self) -> bool:
        """Check if the store is reachable.

        Returns:
            True if healthy, False otherwise
        """
        return True

    async def close(self) -> None:
        """Release connections held by the store."""
        pass
