"""
Tests for loan share codes.
"""

import re
from itertools import cycle

from loanshare.core.constants import FRIENDLY_ID_ALPHABET
from loanshare.utils.friendly_id import generate_friendly_id, normalize_friendly_id


def test_generated_code_format():
    for _ in range(50):
        code = generate_friendly_id()
        assert re.fullmatch(r"[A-Z2-9]{3}-[A-Z2-9]{3}", code)
        assert all(ch in FRIENDLY_ID_ALPHABET for ch in code.replace("-", ""))


def test_generated_code_avoids_lookalikes():
    codes = "".join(generate_friendly_id() for _ in range(200))
    assert not set(codes) & set("01OI")


def test_generation_with_injected_choice():
    letters = cycle("ABC234")
    assert generate_friendly_id(choice=lambda alphabet: next(letters)) == "ABC-234"


def test_normalize_friendly_id():
    assert normalize_friendly_id("  abc-234 ") == "ABC-234"
    assert normalize_friendly_id("abc234") == "ABC-234"
    assert normalize_friendly_id("") == ""
    assert normalize_friendly_id(None) == ""
