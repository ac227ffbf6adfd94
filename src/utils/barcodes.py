"""Barcode digit helpers.

EAN-13 check digit: weights alternate 1, 3, 1, 3 ... over the first twelve
digits; the check digit brings the weighted sum up to a multiple of ten.
"""

import re

_NON_DIGIT = re.compile(r"\D")


def digits_only(value: str) -> str:
    """Strip everything that is not an ASCII digit."""
    return _NON_DIGIT.sub("", value)


def is_valid_ean13(barcode: str) -> bool:
    """Return ``True`` if *barcode* is 13 digits with a correct check digit."""
    if len(barcode) != 13 or not barcode.isdigit():
        return False
    total = sum(int(d) * (1 if i % 2 == 0 else 3) for i, d in enumerate(barcode[:12]))
    check = (10 - total % 10) % 10
    return check == int(barcode[12])
