"""Unit tests for attendance code generation."""

import re

from app.core.attendance_code import (
    CODE_ALPHABET,
    CODE_LENGTH,
    generate_attendance_code,
    is_well_formed_code,
)


def test_attendance_code_format() -> None:
    """Code must be 6 characters from the unambiguous uppercase alphabet."""
    code = generate_attendance_code()
    assert len(code) == CODE_LENGTH == 6
    assert re.match(r"^[A-Z2-9]{6}$", code)
    assert all(ch in CODE_ALPHABET for ch in code)


def test_alphabet_has_no_look_alikes() -> None:
    for ch in "01IO":
        assert ch not in CODE_ALPHABET


def test_new_code_differs_from_previous() -> None:
    previous = generate_attendance_code()
    for _ in range(50):
        assert generate_attendance_code(previous=previous) != previous


def test_codes_are_random() -> None:
    """Multiple calls produce different codes."""
    codes = {generate_attendance_code() for _ in range(20)}
    # 32^6 possibilities, 20 draws should essentially never collide
    assert len(codes) >= 19


def test_generated_codes_are_well_formed() -> None:
    for _ in range(20):
        assert is_well_formed_code(generate_attendance_code())


def test_malformed_codes_rejected() -> None:
    assert not is_well_formed_code("")
    assert not is_well_formed_code("ABC")
    assert not is_well_formed_code("ABCDEFG")
    assert not is_well_formed_code("abcdef")
    assert not is_well_formed_code("AB CD1")
    assert not is_well_formed_code("ABCD0O")
