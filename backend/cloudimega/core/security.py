import hashlib
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Union

import bcrypt
from jose import JWTError, jwt

from cloudimega.core.config import settings

SHARE_TOKEN_SCOPE = "share"


def _bcrypt_safe(password: str) -> bytes:
    b = password.encode("utf-8")
    # bcrypt only looks at the first 72 bytes
    if len(b) <= 72:
        return b
    return hashlib.sha256(b).hexdigest().encode("ascii")


def get_password_hash(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(_bcrypt_safe(password), salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(_bcrypt_safe(plain_password), hashed_password.encode("utf-8"))
    except ValueError:
        # Malformed hash in storage
        return False


def create_access_token(subject: Union[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    expire = datetime.now(timezone.utc) + expires_delta
    to_encode = {"exp": expire, "sub": str(subject)}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def password_fingerprint(password_hash: Optional[str]) -> str:
    # Changes whenever the share password is set, rotated or cleared
    return hashlib.sha256((password_hash or "").encode("utf-8")).hexdigest()[:16]


def create_share_access_token(share_id: str, password_hash: Optional[str]) -> str:
    """
    Short-lived proof that the holder already passed the password check of
    one share. It is useless against any other share, and against the same
    share once its password has changed.
    """
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.SHARE_ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode = {
        "exp": expire,
        "sub": share_id,
        "scope": SHARE_TOKEN_SCOPE,
        "pwd": password_fingerprint(password_hash),
    }
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def verify_share_access_token(token: str, share_id: str, password_hash: Optional[str]) -> bool:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return False
    return (
        payload.get("scope") == SHARE_TOKEN_SCOPE
        and payload.get("sub") == share_id
        and payload.get("pwd") == password_fingerprint(password_hash)
    )
