"""Data models for the short link registry."""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Optional, Tuple, Union

DIRECT_SOURCE = "direct"
SIMULATED_SOURCE = "manual-sim"


def ensure_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime; naive values are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _parse_timestamp(value: Union[str, datetime]) -> datetime:
    if isinstance(value, datetime):
        return ensure_utc(value)
    return ensure_utc(datetime.fromisoformat(value))


@dataclass(frozen=True)
class ClickEvent:
    """One successful resolution of a short code."""

    timestamp: datetime
    source: str

    def __post_init__(self):
        object.__setattr__(self, "timestamp", ensure_utc(self.timestamp))

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "source": self.source,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ClickEvent":
        """Create from dictionary."""
        return cls(
            timestamp=_parse_timestamp(data["timestamp"]),
            source=data["source"],
        )


@dataclass(frozen=True)
class LinkRecord:
    """A short code mapped to its destination, validity window and click history.

    Records are immutable snapshots. A new click produces a new record through
    ``with_click``; the stored copy is only ever replaced by the store backend.
    """

    code: str
    destination: str
    created_at: datetime
    expires_at: datetime
    owner: Optional[str] = None
    clicks: Tuple[ClickEvent, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "created_at", ensure_utc(self.created_at))
        object.__setattr__(self, "expires_at", ensure_utc(self.expires_at))
        if self.expires_at <= self.created_at:
            raise ValueError(
                f"expires_at ({self.expires_at.isoformat()}) must be after "
                f"created_at ({self.created_at.isoformat()})"
            )
        # Lists coming from storage are frozen into a tuple
        if not isinstance(self.clicks, tuple):
            object.__setattr__(self, "clicks", tuple(self.clicks))

    @property
    def click_count(self) -> int:
        return len(self.clicks)

    @property
    def last_clicked(self) -> Optional[datetime]:
        return self.clicks[-1].timestamp if self.clicks else None

    def with_click(self, event: ClickEvent) -> "LinkRecord":
        """Return a copy with ``event`` appended to the click history."""
        return replace(self, clicks=self.clicks + (event,))

    def to_dict(self, include_clicks: bool = True) -> dict:
        """Convert to dictionary."""
        data = {
            "code": self.code,
            "destination": self.destination,
            "created_at": self.created_at.isoformat(),
            "expires_at": self.expires_at.isoformat(),
            "owner": self.owner,
            "click_count": self.click_count,
        }
        if include_clicks:
            data["clicks"] = [click.to_dict() for click in self.clicks]
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "LinkRecord":
        """Create from dictionary."""
        return cls(
            code=data["code"],
            destination=data["destination"],
            created_at=_parse_timestamp(data["created_at"]),
            expires_at=_parse_timestamp(data["expires_at"]),
            owner=data.get("owner"),
            clicks=tuple(ClickEvent.from_dict(c) for c in data.get("clicks", ())),
        )
