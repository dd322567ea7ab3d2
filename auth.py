import json
import hmac
import base64
import hashlib
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

import policy
from config import JWT_SECRET, PWD_SALT, ACCESS_TOKEN_EXPIRE_MINUTES
from database import get_db, object_id

logger = logging.getLogger(__name__)

# HS256 JWT on top of hmac/hashlib
def _b64url_encode(b: bytes) -> str:
    return base64.urlsafe_b64encode(b).rstrip(b"=").decode()

def _b64url_decode(s: str) -> bytes:
    pad = '=' * (-len(s) % 4)
    return base64.urlsafe_b64decode(s + pad)

def jwt_encode(payload: dict, secret: str) -> str:
    header = {"alg": "HS256", "typ": "JWT"}
    header_b64 = _b64url_encode(json.dumps(header, separators=(',', ':')).encode())
    payload_b64 = _b64url_encode(json.dumps(payload, default=str, separators=(',', ':')).encode())
    signing_input = f"{header_b64}.{payload_b64}".encode()
    signature = hmac.new(secret.encode(), signing_input, hashlib.sha256).digest()
    return f"{header_b64}.{payload_b64}.{_b64url_encode(signature)}"

def jwt_decode(token: str, secret: str) -> dict:
    try:
        header_b64, payload_b64, sig_b64 = token.split('.')
        signing_input = f"{header_b64}.{payload_b64}".encode()
        expected_sig = hmac.new(secret.encode(), signing_input, hashlib.sha256).digest()
        if not hmac.compare_digest(_b64url_encode(expected_sig), sig_b64):
            raise ValueError("Invalid signature")
        payload = json.loads(_b64url_decode(payload_b64))
        if 'exp' in payload:
            exp = datetime.fromisoformat(payload['exp']) if isinstance(payload['exp'], str) else datetime.fromtimestamp(payload['exp'], tz=timezone.utc)
            if datetime.now(timezone.utc) > exp:
                raise ValueError("Token expired")
        return payload
    except Exception as e:
        raise ValueError(str(e))

def hash_password(password: str) -> str:
    return hashlib.sha256((password + PWD_SALT).encode()).hexdigest()

def verify_password(password: str, hashed: str) -> bool:
    return hmac.compare_digest(hash_password(password), hashed)

def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt_encode(to_encode, JWT_SECRET)


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


def _user_from_token(token: str, db) -> dict:
    try:
        payload = jwt_decode(token, JWT_SECRET)
        user_id = payload.get("sub")
        if not user_id:
            raise ValueError("No sub")
    except ValueError as e:
        logger.info("rejected token: %s", e)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Could not validate credentials")
    oid = object_id(user_id)
    user = db["user"].find_one({"_id": oid}) if oid is not None else None
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    return user


async def get_current_user(token: str = Depends(oauth2_scheme), db=Depends(get_db)) -> dict:
    return _user_from_token(token, db)


def require_area(area: str):
    """Dependency allowing only roles that the routing policy lets into `area`."""
    async def dependency(current_user: dict = Depends(get_current_user)) -> dict:
        if not policy.can_access(current_user.get("role"), area):
            raise HTTPException(status_code=403, detail="Not allowed for your role")
        return current_user
    return dependency


def public_user(user: dict) -> dict:
    return {
        "id": str(user["_id"]),
        "name": user["name"],
        "email": user["email"],
        "role": user.get("role", "buyer"),
        "seller_status": user.get("seller_status"),
    }
