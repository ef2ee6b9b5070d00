from passlib.context import CryptContext

# Hashes are stored in users.password_hash and never leave the store layer.
password_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(raw_password: str) -> str:
    return password_context.hash(raw_password)


def verify_password(raw_password: str, password_hash: str | None) -> bool:
    if not password_hash:
        return False
    return password_context.verify(raw_password, password_hash)
