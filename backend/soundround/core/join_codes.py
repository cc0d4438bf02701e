"""Join Codes — short, human-typed round identifiers.

Invariants:
    - Codes are JOIN_CODE_LENGTH characters drawn from JOIN_CODE_ALPHABET
    - Randomness comes from the secrets module (CSPRNG), never random
    - Uniqueness is NOT decided here; the caller checks the store (services/round_lifecycle.py)
"""

import secrets

from soundround.core.domain_types import JOIN_CODE_ALPHABET, JOIN_CODE_LENGTH


def generate_join_code(length: int = JOIN_CODE_LENGTH) -> str:
    return "".join(secrets.choice(JOIN_CODE_ALPHABET) for _ in range(length))


def normalize_join_code(raw: str) -> str:
    """Users type codes loosely; stored codes are stripped uppercase."""
    return raw.strip().upper()
