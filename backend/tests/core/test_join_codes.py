"""Join Codes — tests for code generation and normalization.

Tests cover:
    - generated codes have the configured length and alphabet
    - normalize_join_code strips whitespace and uppercases
"""

from soundround.core.domain_types import JOIN_CODE_ALPHABET, JOIN_CODE_LENGTH
from soundround.core.join_codes import generate_join_code, normalize_join_code


def test_generated_code_has_default_length():
    assert len(generate_join_code()) == JOIN_CODE_LENGTH


def test_generated_code_uses_alphabet_only():
    for _ in range(50):
        code = generate_join_code()
        assert set(code) <= set(JOIN_CODE_ALPHABET)


def test_generated_code_custom_length():
    assert len(generate_join_code(10)) == 10


def test_normalize_strips_and_uppercases():
    assert normalize_join_code("  ab12cd \n") == "AB12CD"


def test_normalize_keeps_normalized_code():
    assert normalize_join_code("XYZ789") == "XYZ789"
