import secrets
import string
import time

BASE36_ALPHABET = string.digits + string.ascii_uppercase


def to_base36(value: int) -> str:
    """Render a non-negative integer in upper-case base 36"""
    if value < 0:
        raise ValueError("value must be non-negative")
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(BASE36_ALPHABET[remainder])
    return "".join(reversed(digits))


def random_base36(length: int) -> str:
    return "".join(secrets.choice(BASE36_ALPHABET) for _ in range(length))


def generate_check_in_code() -> str:
    """Unique token printed on a registration's QR code, e.g. SEM-LXK2J9QF-1A2B3C4D"""
    timestamp = to_base36(int(time.time() * 1000))
    return f"SEM-{timestamp}-{secrets.token_hex(4)}".upper()
