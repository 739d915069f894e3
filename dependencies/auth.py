# path: dependencies/auth.py
from __future__ import annotations

from fastapi import Depends, HTTPException, Request
from sqlmodel import Session

from database import get_session
from models.users import User
from services.security import user_id_from_token

COOKIE_NAME = "access_token"


def _get_token(request: Request) -> str | None:
    # la web manda la cookie httponly; apps y Postman, el header
    token = request.cookies.get(COOKIE_NAME)
    if token:
        return token

    scheme, _, credentials = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()

    return None


def _vecino_del_token(token: str, session: Session) -> User:
    user_id = user_id_from_token(token)
    if user_id is None:
        raise HTTPException(status_code=401, detail="Token inválido o expirado")

    user = session.get(User, user_id)
    if not user or not user.activo:
        raise HTTPException(status_code=401, detail="Usuario inválido")

    return user


def get_current_user(
    request: Request,
    session: Session = Depends(get_session),
) -> User:
    token = _get_token(request)
    if not token:
        raise HTTPException(status_code=401, detail="No autenticado")
    return _vecino_del_token(token, session)


def get_optional_user(
    request: Request,
    session: Session = Depends(get_session),
) -> User | None:
    """Para lecturas públicas (listado y detalle de pedidos): sin token, el visitante es anónimo."""
    token = _get_token(request)
    if not token:
        return None
    return _vecino_del_token(token, session)
