"""Click recording."""

from datetime import datetime

from .database.models import DIRECT_SOURCE, SIMULATED_SOURCE, ClickEvent
from .registry import LinkRegistry

__all__ = ["DIRECT_SOURCE", "SIMULATED_SOURCE", "record_click"]


async def record_click(
    registry: LinkRegistry,
    code: str,
    source: str,
    now: datetime,
) -> ClickEvent:
    """Append a click event to the record for ``code``.

    This is the only path through which a record's click history grows.
    Expiry is not checked here; ``resolve`` decides whether a click counts.

    Raises:
        NotFoundError: If the code does not exist
    """
    event = ClickEvent(timestamp=now, source=source)
    return await registry.append_click(code, event)
