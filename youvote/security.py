from passlib.context import CryptContext
from datetime import datetime, timedelta, timezone
from jose import JWTError, jwt
from uuid import uuid4

from . import config
from .errors import AuthenticationError

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


# Hash a password
def hash_password(password: str) -> str:
    return pwd_context.hash(password)


# Verify a plain password against a hash
def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


# Random one-time code cut from a uuid4 hex string
def generate_code(length: int) -> str:
    code = ""
    while len(code) < length:
        code += uuid4().hex
    return code[:length]


# Create JWT access token
def create_access_token(data: dict, expires_delta: int = config.ACCESS_TOKEN_EXPIRE_MINUTES):
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_delta)
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, config.SECRET_KEY, algorithm=config.ALGORITHM)
    return encoded_jwt


# Decode and verify a JWT access token
def decode_access_token(token: str) -> dict:
    try:
        payload = jwt.decode(token, config.SECRET_KEY, algorithms=[config.ALGORITHM])
    except JWTError:
        raise AuthenticationError("Invalid or expired token")
    if not payload.get("sub"):
        raise AuthenticationError("Invalid token payload")
    return payload
