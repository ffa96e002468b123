from __future__ import annotations

from werkzeug.security import check_password_hash, generate_password_hash


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password_hash: str, password: str) -> bool:
    if not password_hash:
        return False
    return check_password_hash(password_hash, password)


def mask_card_number(number: str) -> str:
    digits = "".join(ch for ch in number if ch.isdigit())
    return digits[-4:]
