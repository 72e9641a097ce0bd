"""Core logic for the short link registry."""

from .errors import (
    ShortLinkError,
    CreationError,
    InvalidUrlError,
    InvalidDurationError,
    CustomCodesDisabledError,
    CollisionError,
    ExhaustedError,
    NotFoundError,
)
from .shortcode import ShortCodeGenerator, allocate
from .expiry import LinkState, classify
from .registry import LinkRegistry
from .clicks import record_click
from .resolver import NotFound, Expired, Redirect, ResolutionOutcome, resolve

__all__ = [
    "ShortLinkError",
    "CreationError",
    "InvalidUrlError",
    "InvalidDurationError",
    "CustomCodesDisabledError",
    "CollisionError",
    "ExhaustedError",
    "NotFoundError",
    "ShortCodeGenerator",
    "allocate",
    "LinkState",
    "classify",
    "LinkRegistry",
    "record_click",
    "NotFound",
    "Expired",
    "Redirect",
    "ResolutionOutcome",
    "resolve",
]
