"""Short code generation and allocation."""

import random
import string
from typing import AbstractSet, Optional

from .errors import CollisionError, ExhaustedError

DEFAULT_MAX_RETRIES = 10


class ShortCodeGenerator:
    """Generate short codes for URLs."""

    # Base62 characters (alphanumeric, case-sensitive)
    BASE62_CHARS = string.ascii_letters + string.digits  # a-zA-Z0-9

    def __init__(
        self,
        default_length: int = 6,
        alphabet: str = BASE62_CHARS,
        rng: Optional[random.Random] = None,
    ):
        """Initialize short code generator.

        Args:
            default_length: Default length for generated codes
            alphabet: Characters codes are drawn from
            rng: Random source (a fresh ``random.Random`` if not given)
        """
        if default_length < 1:
            raise ValueError("default_length must be at least 1")
        if not alphabet:
            raise ValueError("alphabet must not be empty")
        self.default_length = default_length
        self.alphabet = alphabet
        self.rng = rng or random.Random()

    def generate_random(self, length: Optional[int] = None) -> str:
        """Generate a random short code.

        Args:
            length: Length of the code (uses default if not specified)

        Returns:
            Random short code
        """
        length = length or self.default_length
        return ''.join(self.rng.choices(self.alphabet, k=length))

    @staticmethod
    def is_valid_format(code: str) -> bool:
        """Check if code has valid format (alphanumeric, '-' or '_')."""
        return bool(code) and all(
            c in ShortCodeGenerator.BASE62_CHARS or c in '-_' for c in code
        )


def allocate(
    requested_code: Optional[str],
    existing_codes: AbstractSet[str],
    generator: Optional[ShortCodeGenerator] = None,
    max_retries: int = DEFAULT_MAX_RETRIES,
) -> str:
    """Pick the short code for a new link.

    A requested code is returned unchanged unless it is already taken. No
    case or whitespace normalization is applied; an empty string counts as
    "not requested". Without a requested code, random candidates are drawn
    until one is free or ``max_retries`` attempts have been made.

    This does not reserve anything. The caller must insert the returned code
    atomically with respect to other allocations.

    Args:
        requested_code: Caller supplied code, or None to generate one
        existing_codes: Snapshot of codes currently held by the registry
        generator: Code generator (a default 6-character Base62 one if None)
        max_retries: Maximum number of generated candidates to try

    Returns:
        The allocated short code

    Raises:
        CollisionError: If the requested code is already taken
        ExhaustedError: If no free code was generated within the bound
    """
    if requested_code:
        if requested_code in existing_codes:
            raise CollisionError(requested_code)
        return requested_code

    generator = generator or ShortCodeGenerator()
    for _ in range(max_retries):
        code = generator.generate_random()
        if code not in existing_codes:
            return code

    raise ExhaustedError(max_retries)
