from datetime import datetime, timedelta, UTC
from typing import Optional

from jose import jwt, JWTError, ExpiredSignatureError
from passlib.context import CryptContext

from taskai import errors
from taskai.config import SECRET_KEY, ALGORITHM
from taskai.schemas.user import Identity

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    # Length is bounded by UserCreate before a password gets here
    return pwd_context.hash(password)


def verify_password(plain, hashed):
    """Verify a plaintext password against a hash.

    If verification raises a ValueError (for example plain >72 bytes), return False
    to allow the caller to respond with an authentication failure instead of an error.
    """
    try:
        return pwd_context.verify(plain, hashed)
    except ValueError:
        return False


def create_token(data: dict):
    data = data.copy()
    # read expiry at call-time so tests (and runtime overrides) that modify
    # taskai.config.ACCESS_TOKEN_EXPIRE_MINUTES take effect immediately
    import taskai.config as _cfg
    expire = datetime.now(UTC) + timedelta(minutes=_cfg.ACCESS_TOKEN_EXPIRE_MINUTES)
    data.update({"exp": int(expire.timestamp())})  # JWT spec uses Unix timestamp
    return jwt.encode(data, SECRET_KEY, algorithm=ALGORITHM)


def create_identity_token(user) -> str:
    return create_token({"sub": user.id, "name": user.name, "email": user.email})


def decode_identity(token: Optional[str]) -> Identity:
    """Resolve a bearer token into the caller's identity.

    Raises AuthenticationRequiredError for a missing, expired or forged token.
    """
    if not token:
        raise errors.AuthenticationRequiredError("Missing token")
    try:
        # jwt.decode validates exp automatically
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except ExpiredSignatureError:
        raise errors.AuthenticationRequiredError("Token has expired")
    except JWTError:
        raise errors.AuthenticationRequiredError("Invalid token")

    user_id = payload.get("sub")
    if not user_id:
        raise errors.AuthenticationRequiredError("Invalid token: missing user")
    return Identity(id=user_id, name=payload.get("name", ""), email=payload.get("email", ""))
