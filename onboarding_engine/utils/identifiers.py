"""Identifier generation utilities"""

import secrets
import string
import time

BASE36_ALPHABET = string.digits + string.ascii_lowercase


def to_base36(value: int) -> str:
    """Non-negative integer to lowercase base36"""
    if value == 0:
        return "0"

    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(BASE36_ALPHABET[remainder])
    return "".join(reversed(digits))


def generate_customer_id() -> str:
    """Customer id for the compliance backend: cust_<base36 ms timestamp>_<8 random chars>"""
    timestamp = to_base36(int(time.time() * 1000))
    random_part = "".join(secrets.choice(BASE36_ALPHABET) for _ in range(8))
    return f"cust_{timestamp}_{random_part}"
