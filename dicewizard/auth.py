from datetime import timedelta
from typing import Optional
from jose import jwt, JWTError
import hashlib
import hmac
import secrets
from dicewizard.config import Settings
from dicewizard.database import utcnow

PBKDF2_ROUNDS = 120_000

def hash_password(password: str, salt: Optional[str] = None) -> str:
    """PBKDF2-SHA256, stored as ``salt$hexdigest``"""
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), PBKDF2_ROUNDS)
    return f"{salt}${digest.hex()}"

def verify_password(plain: str, hashed: str) -> bool:
    salt, sep, _ = hashed.partition("$")
    if not sep:
        return False
    return hmac.compare_digest(hash_password(plain, salt), hashed)

def create_token(user_id: int, config: Settings) -> str:
    expire = utcnow() + timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES)
    return jwt.encode({"sub": str(user_id), "exp": expire}, config.SECRET_KEY, algorithm=config.ALGORITHM)

def decode_token(token: str, config: Settings) -> Optional[int]:
    try:
        payload = jwt.decode(token, config.SECRET_KEY, algorithms=[config.ALGORITHM])
        return int(payload.get("sub"))
    except (JWTError, ValueError, TypeError):
        return None
