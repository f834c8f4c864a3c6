"""
Payment id and receipt number generation.
Format: prefix + date (YYYYMMDD) + '-' + random uppercase alphanumerics.
"""

import secrets
import string
from datetime import date
from typing import Optional

_ALPHABET = string.ascii_uppercase + string.digits


def _random_part(length: int) -> str:
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


def generate_receipt_number(on: Optional[date] = None) -> str:
    """
    Examples:
        R20250410-7Q2K9A
        R20251102-B81XZD

    Uniqueness is enforced by storage; a collision surfaces as a conflict.
    """
    on = on or date.today()
    return f"R{on:%Y%m%d}-{_random_part(6)}"


def generate_payment_id(on: Optional[date] = None) -> str:
    on = on or date.today()
    return f"P{on:%Y%m%d}-{_random_part(10)}"
