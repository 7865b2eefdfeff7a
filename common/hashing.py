import bcrypt

from settings.config import get_settings


def hash_password(plain_password: str) -> str:
    """
    bcrypt hash of an admin password; the cost factor comes from BCRYPT_ROUNDS.
    """
    salt = bcrypt.gensalt(rounds=get_settings().BCRYPT_ROUNDS)
    return bcrypt.hashpw(plain_password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # malformed stored hash
        return False
