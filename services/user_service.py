# path: services/user_service.py
from __future__ import annotations

from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from errors import Conflict, NotFound
from models.users import User
from services.security import hash_password


def perfil_publico(user: User | None) -> dict[str, Any] | None:
    if user is None:
        return None
    return {"id": user.id, "nombre": user.nombre, "avatar": user.avatar}


def obtener_usuario_publico(session: Session, user_id: int) -> dict[str, Any]:
    user = session.get(User, user_id)
    if not user:
        raise NotFound("Usuario no encontrado")
    return perfil_publico(user)


def nombre_para_mostrar(session: Session, user_id: int | None) -> str:
    if user_id is None:
        return "Alguien"
    user = session.get(User, user_id)
    return user.nombre if user else "Alguien"


def _email_registrado(session: Session, email: str) -> bool:
    return session.exec(select(User.id).where(User.email == email)).first() is not None


def crear_usuario(
    session: Session,
    *,
    nombre: str,
    email: str,
    password: str,
    avatar: str | None = None,
) -> User:
    # solo para dar un mensaje más claro; la garantía es el UNIQUE del email
    if _email_registrado(session, email):
        raise Conflict("El email ya existe")

    user = User(
        nombre=nombre,
        email=email,
        password_hash=hash_password(password),
        avatar=avatar,
        activo=True,
    )

    session.add(user)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise Conflict("El email ya existe")

    session.refresh(user)
    return user
