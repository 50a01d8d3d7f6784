"""
Credential hashing and bearer token issuance.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional

import structlog
from jose import jwt
from jose.exceptions import JOSEError
from passlib.context import CryptContext
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from config import Settings
from database import create_document, serialize_doc
from errors import AuthError, DuplicateError, InternalError
from schemas import User

logger = structlog.get_logger(__name__)


def build_password_context(rounds: int = 10) -> CryptContext:
    return CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)


# Helper functions for auth

def verify_password(pwd_context: CryptContext, plain_password, hashed_password):
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(pwd_context: CryptContext, password):
    return pwd_context.hash(password)


def create_access_token(data: dict, settings: Settings, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    to_encode.update({"exp": expire})
    try:
        return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)
    except JOSEError as exc:
        logger.error("token_signing_failed", error=str(exc))
        raise InternalError() from exc


def decode_access_token(token: str, settings: Settings) -> Optional[str]:
    """Return the token subject. Raises ``JWTError`` on a bad signature or expiry."""
    payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    return payload.get("sub")


def register_user(db: Database, pwd_context: CryptContext, username: str, password: str) -> dict:
    if db["user"].find_one({"username": username}):
        raise DuplicateError()
    user = User(username=username, password_hash=get_password_hash(pwd_context, password))
    try:
        created = create_document(db, "user", user.model_dump())
    except DuplicateKeyError:
        # lost a race against a concurrent signup
        raise DuplicateError()
    created.pop("password_hash", None)
    logger.info("user_registered", user_id=created["id"])
    return created


def authenticate_user(db: Database, pwd_context: CryptContext, username: str, password: str) -> dict:
    """Return the user for valid credentials.

    Unknown usernames and wrong passwords raise the same ``AuthError``, and
    both paths run one hash verification.
    """
    user = db["user"].find_one({"username": username})
    if not user:
        pwd_context.dummy_verify()
        logger.info("login_failed")
        raise AuthError()
    if not verify_password(pwd_context, password, user["password_hash"]):
        logger.info("login_failed")
        raise AuthError()
    user = serialize_doc(user)
    user.pop("password_hash", None)
    logger.info("login_succeeded", user_id=user["id"])
    return user
