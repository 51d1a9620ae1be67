"""
Attendance code generation.
Short codes students type in to prove they are in the room. Format: 6 uppercase
characters from an alphabet without look-alike glyphs (no 0/O, 1/I).
"""

import secrets
from typing import Optional

CODE_LENGTH = 6
CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"


def generate_attendance_code(previous: Optional[str] = None) -> str:
    """
    Generate a fresh attendance code.

    Codes are only compared against the single active session of a class, so no
    global uniqueness is needed. When previous is given the new code is
    guaranteed to differ from it, so a rotation always changes what students see.

    Examples:
        generate_attendance_code()          -> "K7MWQ3"
        generate_attendance_code("K7MWQ3")  -> "P2XHDA"
    """
    while True:
        code = "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))
        if code != previous:
            return code


def is_well_formed_code(code: str) -> bool:
    """True if code has the shape of a generated code (length and alphabet)."""
    if not code or len(code) != CODE_LENGTH:
        return False
    return all(ch in CODE_ALPHABET for ch in code)
