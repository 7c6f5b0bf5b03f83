"""
Seed handling utilities.

Seeds are exchanged as base36 strings so they stay short enough to print
and type back on the command line. Each generation run owns its own
``AleaPRNG`` instance; there is no module level generator, so concurrent
generations never share random state.
"""

import secrets
import string
from typing import Optional

from ..core.alea_prng import AleaPRNG

_BASE36_ALPHABET = string.digits + string.ascii_lowercase


def to_base36(value: int) -> str:
    """Encode a non-negative integer as a base36 string."""
    if value < 0:
        raise ValueError("Seed value must be non-negative")
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36_ALPHABET[rem])
    return "".join(reversed(digits))


def normalize_seed(seed: str) -> str:
    """
    Canonicalize a user supplied seed.

    Base36 seeds are lower-cased and stripped of leading zeros so that
    ``"00AbC"`` and ``"abc"`` produce the same map.

    Raises:
        ValueError: If the seed contains non base36 characters
    """
    value = int(seed.strip(), 36)
    return to_base36(value)


def random_seed() -> str:
    """Draw a fresh 64-bit seed from the OS entropy pool."""
    return to_base36(secrets.randbits(64))


def create_prng(seed: Optional[str] = None) -> AleaPRNG:
    """
    Create a PRNG for one generation run.

    Args:
        seed: Base36 seed string; a random one is drawn when omitted

    Returns:
        AleaPRNG whose ``seed`` attribute holds the canonical seed
    """
    canonical = normalize_seed(seed) if seed is not None else random_seed()
    return AleaPRNG(canonical)
