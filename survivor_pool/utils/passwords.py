# survivor_pool/utils/passwords.py
import secrets

import bcrypt

from ..config import bcrypt_rounds

# bcrypt only looks at the first 72 bytes
_MAX_BYTES = 72


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:_MAX_BYTES]


def hash_password(password: str) -> str:
    return bcrypt.hashpw(_encode(password), bcrypt.gensalt(rounds=bcrypt_rounds())).decode("ascii")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(_encode(password), password_hash.encode("ascii"))
    except ValueError:
        return False


def new_invite_code() -> str:
    """Six uppercase hex characters, e.g. 'A1B2C3'."""
    return secrets.token_hex(3).upper()
