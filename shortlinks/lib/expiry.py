"""Validity window evaluation."""

from datetime import datetime
from enum import Enum

from .database.models import LinkRecord, ensure_utc


class LinkState(str, Enum):
    """Whether a record can currently be resolved."""

    LIVE = "live"
    EXPIRED = "expired"


def classify(record: LinkRecord, now: datetime) -> LinkState:
    """Classify ``record`` at instant ``now``.

    The boundary is inclusive: at exactly ``expires_at`` the record is
    already expired.
    """
    if ensure_utc(now) >= record.expires_at:
        return LinkState.EXPIRED
    return LinkState.LIVE


def is_expired(record: LinkRecord, now: datetime) -> bool:
    return classify(record, now) is LinkState.EXPIRED
