"""bcrypt 비밀번호 해시 (bcrypt password hashing).

Accounts created through the email code flow have no hash until a password
is set, so ``verify_password`` treats a missing or malformed hash as a
mismatch instead of raising.
"""

import bcrypt

_ENCODING: str = "utf-8"


def hash_password(password: str) -> str:
    """솔트 포함 bcrypt 해시 (Salted bcrypt hash of ``password``)."""
    return bcrypt.hashpw(password.encode(_ENCODING), bcrypt.gensalt()).decode(_ENCODING)


def verify_password(password: str, password_hash: str | None) -> bool:
    """평문이 저장된 해시와 일치하는지 (Whether ``password`` matches ``password_hash``)."""
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode(_ENCODING), password_hash.encode(_ENCODING))
    except ValueError:
        return False
