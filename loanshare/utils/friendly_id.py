"""
Friendly share codes for loans.

A code is six characters from an alphabet without look-alike glyphs
(no 0/O, 1/I), shown as two groups of three: ``"K7P-2QX"``.
"""

import secrets
from typing import Callable

from loanshare.core.constants import FRIENDLY_ID_ALPHABET, FRIENDLY_ID_LENGTH


def generate_friendly_id(choice: Callable[[str], str] = secrets.choice) -> str:
    chars = "".join(choice(FRIENDLY_ID_ALPHABET) for _ in range(FRIENDLY_ID_LENGTH))
    half = FRIENDLY_ID_LENGTH // 2
    return f"{chars[:half]}-{chars[half:]}"


def normalize_friendly_id(code: str) -> str:
    """Trim and upper-case user input; a missing dash is inserted."""
    code = (code or "").strip().upper()
    if len(code) == FRIENDLY_ID_LENGTH and "-" not in code:
        half = FRIENDLY_ID_LENGTH // 2
        code = f"{code[:half]}-{code[half:]}"
    return code
