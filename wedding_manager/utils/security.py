"""
Security utilities and authentication
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
import hashlib
import hmac
import time
from collections import defaultdict

import bcrypt
from fastapi import HTTPException, Depends, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt

from wedding_manager.core.config import settings

# Simple in-memory rate limiter
rate_limiter = defaultdict(list)

security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)

def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")

# salt:hex-digest hashes written by the old JSON-file deployment
LEGACY_PBKDF2_ITERATIONS = 100000
LEGACY_PBKDF2_KEY_LENGTH = 64

def is_legacy_hash(hashed_password: str) -> bool:
    return bool(hashed_password) and not hashed_password.startswith("$2") and ":" in hashed_password

def _verify_legacy_password(plain_password: str, hashed_password: str) -> bool:
    salt, _, expected = hashed_password.partition(":")
    if not salt or not expected:
        return False
    digest = hashlib.pbkdf2_hmac(
        "sha512",
        plain_password.encode("utf-8"),
        salt.encode("utf-8"),
        LEGACY_PBKDF2_ITERATIONS,
        LEGACY_PBKDF2_KEY_LENGTH,
    )
    return hmac.compare_digest(digest.hex(), expected.lower())

def verify_password(plain_password: str, hashed_password: str) -> bool:
    if not hashed_password:
        return False
    if is_legacy_hash(hashed_password):
        return _verify_legacy_password(plain_password, hashed_password)
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        # not a bcrypt hash
        return False

def create_access_token(admin_id: int, username: str) -> str:
    """Issue a signed admin session token"""
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {"sub": str(admin_id), "username": username, "is_admin": True, "exp": expire}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)

def decode_access_token(token: str) -> Optional[dict]:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None
    if payload.get("is_admin") is not True:
        return None
    return payload

def is_admin_token(token: Optional[str]) -> bool:
    if not token:
        return False
    return token == settings.ADMIN_TOKEN or decode_access_token(token) is not None

def verify_admin_token(credentials: HTTPAuthorizationCredentials = Depends(security)):
    """Verify admin authentication token (static token or login JWT)"""
    if not is_admin_token(credentials.credentials):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid admin token"
        )
    return credentials.credentials

def optional_admin(credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_security)) -> bool:
    """True when the request carries a valid admin token; public pages use it to show admin controls"""
    return credentials is not None and is_admin_token(credentials.credentials)

def rate_limit_check(client_ip: str, limit: int = None) -> bool:
    """Simple rate limiting by IP address"""
    if limit is None:
        limit = settings.RATE_LIMIT_PER_MINUTE

    current_time = time.time()
    minute_ago = current_time - 60

    # Clean old requests
    rate_limiter[client_ip] = [
        req_time for req_time in rate_limiter[client_ip]
        if req_time > minute_ago
    ]

    if len(rate_limiter[client_ip]) >= limit:
        return False

    rate_limiter[client_ip].append(current_time)
    return True

def get_client_ip(request) -> str:
    """Extract client IP from request"""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    return request.client.host if request.client else "unknown"
