"""
Password hashing helpers

bcrypt only looks at the first 72 bytes of a password and current releases
refuse longer input outright. Hashing is therefore limited to 72 bytes and a
longer candidate simply never matches.
"""

import bcrypt

BCRYPT_ROUNDS = 12
MAX_PASSWORD_BYTES = 72

# Spent on unknown emails so they cost the same as a real check
_DUMMY_HASH = bcrypt.hashpw(b"bookit-dummy-password", bcrypt.gensalt(BCRYPT_ROUNDS))


def password_too_long(password: str) -> bool:
    return len(password.encode("utf-8")) > MAX_PASSWORD_BYTES


def hash_password(password: str) -> str:
    """bcrypt hash of password; raises ValueError past MAX_PASSWORD_BYTES"""
    if password_too_long(password):
        raise ValueError(f"password cannot be longer than {MAX_PASSWORD_BYTES} bytes")
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    if password_too_long(password):
        return False
    return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))


def burn_password_check(password: str) -> None:
    encoded = password.encode("utf-8")[:MAX_PASSWORD_BYTES]
    bcrypt.checkpw(encoded, _DUMMY_HASH)
