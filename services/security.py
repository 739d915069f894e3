# path: services/security.py
from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone

from dotenv import load_dotenv
from jose import JWTError, jwt
from passlib.context import CryptContext

load_dotenv()

SECRET_KEY = os.getenv("SECRET_KEY", "cambiar-en-produccion")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "480"))

# bcrypt ignora lo que pase de 72 bytes
BCRYPT_MAX_BYTES = 72

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def _recortar(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    return pwd_context.hash(_recortar(password))


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(_recortar(password), password_hash)


def create_access_token(data: dict, expires_minutes: int | None = None) -> str:
    """JWT firmado; `data["sub"]` es el id del vecino como string."""
    claims = dict(data)
    claims["exp"] = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes or ACCESS_TOKEN_EXPIRE_MINUTES)
    return jwt.encode(claims, SECRET_KEY, algorithm=ALGORITHM)


def user_id_from_token(token: str) -> int | None:
    """Id del `sub`, o None si el token no valida, venció o no trae un sub numérico."""
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        return int(payload["sub"])
    except (JWTError, KeyError, TypeError, ValueError):
        return None
