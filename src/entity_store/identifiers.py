"""Short alphabetic identifiers for entities.

Sequence numbers map onto ``a``, ``b``, ... ``z``, ``aa``, ``ab``, ... in
bijective base 26, so every positive integer has exactly one code and the
codes sort by length first.
"""

from string import ascii_lowercase

ALPHABET = ascii_lowercase
BASE = len(ALPHABET)


def encode(number: int) -> str:
    """Return the identifier for a 1-based sequence number."""
    if number < 1:
        raise ValueError(f"Sequence numbers start at 1, got {number}")

    chars = []
    while number:
        number, remainder = divmod(number - 1, BASE)
        chars.append(ALPHABET[remainder])
    return "".join(reversed(chars))
