"""Resolution of a short code to its current actionable state."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from .clicks import record_click
from .database.models import ClickEvent
from .errors import NotFoundError
from .expiry import LinkState, classify
from .registry import LinkRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotFound:
    """No record exists for the code."""

    code: str
    outcome = "not_found"


@dataclass(frozen=True)
class Expired:
    """The record exists but its validity window has closed."""

    code: str
    expires_at: datetime
    outcome = "expired"


@dataclass(frozen=True)
class Redirect:
    """The record is live; a click was recorded and the caller should redirect."""

    code: str
    destination: str
    click: ClickEvent
    outcome = "redirect"


ResolutionOutcome = Union[NotFound, Expired, Redirect]


async def resolve(
    registry: LinkRegistry,
    code: str,
    source: str,
    now: datetime,
    log: Optional[logging.Logger] = None,
) -> ResolutionOutcome:
    """Decide what dereferencing ``code`` at ``now`` does.

    Steps run in a fixed order: lookup, expiry check, click recording.
    Expired links never accrue clicks. If the record is deleted between the
    lookup and the click append, the outcome is ``NotFound``.

    Args:
        registry: Registry holding the records
        code: Short code being dereferenced
        source: Context of the request (referrer, "direct", "manual-sim", ...)
        now: Instant of the resolution
        log: Optional logger

    Returns:
        One of NotFound, Expired or Redirect
    """
    log = log or logger

    record = await registry.get(code)
    if record is None:
        log.warning(f"Short code not found: {code}")
        return NotFound(code)

    if classify(record, now) is LinkState.EXPIRED:
        log.info(f"Short code expired: {code} (at {record.expires_at.isoformat()})")
        return Expired(code, record.expires_at)

    try:
        click = await record_click(registry, code, source, now)
    except NotFoundError:
        log.warning(f"Short code deleted during resolution: {code}")
        return NotFound(code)

    log.debug(f"Resolved {code} -> {record.destination} ({source})")
    return Redirect(code, record.destination, click)
